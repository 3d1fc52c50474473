"""Tests for the client-side playback state machine."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from voice_relay.client.api import VoiceApiError
from voice_relay.client.controller import ClientState, VoiceController
from voice_relay.client.player import PlaybackError


class FakeApi:
    def __init__(self, audio: bytes = b"wav", error: Optional[Exception] = None):
        self.audio = audio
        self.error = error
        self.calls: list[tuple[str, str, str]] = []
        self.gate: Optional[asyncio.Event] = None

    async def synthesize(self, text: str, language: str, mode: str = "cloned") -> bytes:
        self.calls.append((text, language, mode))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.audio


class FakePlayer:
    def __init__(self, play_error: Optional[Exception] = None):
        self.clip: Optional[bytes] = None
        self.loads = 0
        self.playing = False
        self.play_error = play_error
        self.closed = False

    @property
    def has_clip(self) -> bool:
        return self.clip is not None

    @property
    def is_playing(self) -> bool:
        return self.playing

    def load(self, audio: bytes) -> None:
        self.playing = False
        self.clip = audio
        self.loads += 1

    def play(self) -> None:
        if self.clip is None:
            raise PlaybackError("No audio prepared")
        if self.play_error is not None:
            raise self.play_error
        self.playing = True

    def stop(self) -> None:
        self.playing = False

    def close(self) -> None:
        self.closed = True
        self.clip = None


def _controller(api: FakeApi, player: FakePlayer):
    alerts: list[str] = []
    statuses: list[str] = []
    controller = VoiceController(
        api, player, alert=alerts.append, status=statuses.append  # type: ignore[arg-type]
    )
    return controller, alerts, statuses


@pytest.mark.asyncio
async def test_send_prepares_without_playing() -> None:
    api, player = FakeApi(b"clip-1"), FakePlayer()
    controller, alerts, statuses = _controller(api, player)

    assert await controller.send("Hello", "en") is True

    assert controller.state is ClientState.READY
    assert player.clip == b"clip-1"
    assert player.playing is False
    assert api.calls == [("Hello", "en", "cloned")]
    assert alerts == []
    assert statuses[0] == "Processing..."


@pytest.mark.asyncio
async def test_speak_prepares_and_plays() -> None:
    api, player = FakeApi(), FakePlayer()
    controller, _, statuses = _controller(api, player)

    assert await controller.speak("Hello", "en") is True

    assert controller.state is ClientState.PLAYING
    assert player.playing is True
    assert statuses[-1] == "Playing..."


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", None])
async def test_empty_text_never_calls_network(text) -> None:
    api, player = FakeApi(), FakePlayer()
    controller, alerts, _ = _controller(api, player)

    assert await controller.speak(text, "en") is False

    assert api.calls == []
    assert alerts == ["Type text to send."]
    assert controller.state is ClientState.IDLE


@pytest.mark.asyncio
async def test_failure_returns_to_idle_and_keeps_previous_clip() -> None:
    api, player = FakeApi(b"first"), FakePlayer()
    controller, alerts, statuses = _controller(api, player)
    await controller.send("one", "en")

    api.error = VoiceApiError('Server error: {"error": "Missing text"}')
    assert await controller.send("two", "en") is False

    assert controller.state is ClientState.IDLE
    assert player.clip == b"first"
    assert player.loads == 1
    assert alerts == ['Error: Server error: {"error": "Missing text"}']
    assert statuses[-1] == alerts[-1]

    # The earlier clip is still playable
    assert controller.play() is True
    assert controller.state is ClientState.PLAYING


@pytest.mark.asyncio
async def test_autoplay_failure_is_not_fatal() -> None:
    api, player = FakeApi(), FakePlayer(play_error=PlaybackError("blocked"))
    controller, alerts, _ = _controller(api, player)

    assert await controller.speak("Hello", "en") is True

    assert controller.state is ClientState.READY
    assert alerts == []
    assert player.has_clip


@pytest.mark.asyncio
async def test_second_request_ignored_while_preparing() -> None:
    api, player = FakeApi(), FakePlayer()
    api.gate = asyncio.Event()
    controller, _, _ = _controller(api, player)

    first = asyncio.create_task(controller.send("one", "en"))
    await asyncio.sleep(0)
    assert controller.state is ClientState.PREPARING

    assert await controller.send("two", "en") is False
    api.gate.set()
    assert await first is True

    assert [call[0] for call in api.calls] == ["one"]
    assert controller.state is ClientState.READY


@pytest.mark.asyncio
async def test_stop_and_natural_end_return_to_ready() -> None:
    api, player = FakeApi(), FakePlayer()
    controller, _, statuses = _controller(api, player)
    await controller.speak("Hello", "en")

    controller.stop()
    assert controller.state is ClientState.READY
    assert player.has_clip

    assert controller.play() is True
    player.playing = False
    assert controller.poll() is ClientState.READY
    assert statuses[-1] == "Playback finished."


def test_play_without_clip_reports_status() -> None:
    controller, alerts, statuses = _controller(FakeApi(), FakePlayer())

    assert controller.play() is False

    assert controller.state is ClientState.IDLE
    assert statuses == ["No audio prepared. Use /send or /speak first."]
    assert alerts == []


@pytest.mark.asyncio
async def test_close_releases_player() -> None:
    api, player = FakeApi(), FakePlayer()
    controller, _, _ = _controller(api, player)
    await controller.send("Hello", "en")

    controller.close()

    assert player.closed is True
    assert controller.state is ClientState.IDLE
