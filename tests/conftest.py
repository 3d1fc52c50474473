import json
import pathlib
import sys
from typing import Any, Callable, Iterator, Optional, Union

import httpx
import pytest
from pydantic import SecretStr

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from voice_relay.config import Settings, get_settings  # noqa: E402

WAV_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt \x10\x00\x00\x00\x01\x00\x01\x00\xc0]\x00\x00"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """Stand-in for the text-generation API, clone server and TTS API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.text_reply: Reply = httpx.Response(
            200, json={"candidates": [{"output": "Hi there!"}]}
        )
        self.clone_reply: Reply = httpx.Response(200, content=WAV_BYTES)
        self.tts_reply: Reply = httpx.Response(200, content=b"tts-audio")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith(":generateText") or path.endswith(":generateContent"):
            reply = self.text_reply
        elif path.endswith("/synthesize"):
            reply = self.clone_reply
        elif path.endswith("speech:generate"):
            reply = self.tts_reply
        else:
            return httpx.Response(404, text=f"unexpected {path}")

        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "gemini_api_key": SecretStr("test-key"),
        "voice_clone_url": "http://clone.local:5000/",
        "upstream_retry_backoff": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # pyright: ignore[reportCallIssue]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def connect_error(message: str = "connection refused") -> Callable[[httpx.Request], httpx.Response]:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return _raise


def json_body(request: httpx.Request) -> Optional[Any]:
    return json.loads(request.content) if request.content else None
