"""HTTP client for the relay's voice endpoint."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

VOICE_PATH = "/api/voice"
AUDIO_ENCODING_HEADER = "Content-Transfer-Encoding"


class VoiceApiError(Exception):
    """Raised when the relay cannot produce audio for a request."""


def decode_audio(response: httpx.Response) -> bytes:
    """Return the audio bytes carried by a successful relay response.

    The body is decoded from base64 only when the response says so through
    ``Content-Transfer-Encoding``; otherwise it is taken as raw audio.
    """

    encoding = response.headers.get(AUDIO_ENCODING_HEADER, "").strip().lower()
    if encoding == "base64":
        try:
            return base64.b64decode(response.content.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise VoiceApiError(f"Malformed base64 audio from server: {exc}") from exc
    return response.content


class VoiceApiClient:
    """Post text to the relay and get back playable WAV bytes."""

    def __init__(
        self,
        server_url: str,
        *,
        timeout: float = 120.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def health(self) -> dict:
        resp = await self._http.get(f"{self.server_url}/health", timeout=5.0)
        resp.raise_for_status()
        return resp.json()

    async def synthesize(
        self, text: str, language: str, mode: str = "cloned"
    ) -> bytes:
        try:
            resp = await self._http.post(
                f"{self.server_url}{VOICE_PATH}",
                json={"text": text, "language": language, "mode": mode},
            )
        except httpx.HTTPError as exc:
            raise VoiceApiError(f"Cannot reach server: {exc}") from exc

        if not resp.is_success:
            body = resp.text or "<no body>"
            raise VoiceApiError(f"Server error: {body}")

        audio = decode_audio(resp)
        if not audio:
            raise VoiceApiError("Empty response from server.")
        logger.debug("Received %d bytes of audio", len(audio))
        return audio


__all__ = ["VoiceApiClient", "VoiceApiError", "decode_audio"]
