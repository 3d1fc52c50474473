"""Client-side state machine driving the relay call and playback."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from .api import VoiceApiClient, VoiceApiError
from .player import AudioPlayer, PlaybackError

logger = logging.getLogger(__name__)


class ClientState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    READY = "ready"
    PLAYING = "playing"


def _ignore(message: str) -> None:
    return None


class VoiceController:
    """Bind send/speak/play/stop actions to one relay call and one player.

    ``IDLE -> PREPARING -> READY -> PLAYING -> (READY|IDLE)``. Only one request
    is in flight at a time; a send issued while PREPARING is ignored. A failed
    request returns to IDLE and leaves any previously prepared clip in place.
    """

    def __init__(
        self,
        api: VoiceApiClient,
        player: AudioPlayer,
        *,
        alert: Callable[[str], None] = _ignore,
        status: Callable[[str], None] = _ignore,
    ):
        self._api = api
        self._player = player
        self._alert = alert
        self._status = status
        self.state = ClientState.IDLE

    def _set_status(self, message: str) -> None:
        logger.info(message)
        self._status(message)

    async def send(self, text: str, language: str) -> bool:
        """Prepare audio for ``text`` without playing it."""

        return await self._prepare(text, language, autoplay=False)

    async def speak(self, text: str, language: str) -> bool:
        """Prepare audio for ``text`` and start playing it."""

        return await self._prepare(text, language, autoplay=True)

    async def _prepare(self, text: str, language: str, *, autoplay: bool) -> bool:
        text = (text or "").strip()
        language = (language or "").strip() or "en"
        if not text:
            self._alert("Type text to send.")
            return False
        if self.state is ClientState.PREPARING:
            logger.debug("Request already in flight; ignoring")
            return False

        self.state = ClientState.PREPARING
        self._set_status("Processing...")

        try:
            audio = await self._api.synthesize(text, language, mode="cloned")
            self._player.load(audio)
        except (VoiceApiError, OSError) as err:
            logger.error("Voice request failed: %s", err)
            self.state = ClientState.IDLE
            self._alert(f"Error: {err}")
            self._set_status(f"Error: {err}")
            return False

        self.state = ClientState.READY
        if not autoplay:
            self._set_status("Audio prepared. Use /play to listen.")
            return True

        try:
            self._player.play()
        except PlaybackError as exc:
            logger.warning("Autoplay failed: %s", exc)
            self._set_status("Audio prepared. Use /play to listen.")
            return True

        self.state = ClientState.PLAYING
        self._set_status("Playing...")
        return True

    def play(self) -> bool:
        if self.state is ClientState.PREPARING:
            return False
        if not self._player.has_clip:
            self._set_status("No audio prepared. Use /send or /speak first.")
            return False
        try:
            self._player.play()
        except PlaybackError as exc:
            logger.warning("Playback failed: %s", exc)
            self._set_status(f"Playback failed: {exc}")
            return False
        self.state = ClientState.PLAYING
        self._set_status("Playing...")
        return True

    def stop(self) -> None:
        self._player.stop()
        if self.state is ClientState.PLAYING:
            self.state = ClientState.READY
        self._set_status("Stopped.")

    def poll(self) -> ClientState:
        """Notice when playback has run to its natural end."""

        if self.state is ClientState.PLAYING and not self._player.is_playing:
            self.state = ClientState.READY
            self._set_status("Playback finished.")
        return self.state

    def close(self) -> None:
        self._player.close()
        self.state = ClientState.IDLE


__all__ = ["ClientState", "VoiceController"]
