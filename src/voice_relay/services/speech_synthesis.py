"""Speech synthesis backends: the cloned-voice server and the generic TTS API."""

from __future__ import annotations

import logging

import httpx
from fastapi import status

from ..config import Settings
from ..errors import RelayError
from .text_generation import gemini_auth
from .upstream import post_with_retry, response_snippet

logger = logging.getLogger(__name__)

SAMPLE_RATE = 24000
AUDIO_ENCODING = "LINEAR16"


class _Synthesizer:
    """Shared plumbing for a backend that POSTs JSON and returns audio bytes."""

    label = "Synthesis"
    failed_error = "Synthesis failed"
    request_error = "Synthesis request error"

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http = http_client

    @property
    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.synthesis_timeout,
            connect=self._settings.upstream_connect_timeout,
        )

    async def _post_for_audio(self, url: str, **kwargs) -> bytes:
        try:
            response = await post_with_retry(
                self._http,
                url,
                timeout=self._timeout,
                max_retries=self._settings.upstream_max_retries,
                backoff=self._settings.upstream_retry_backoff,
                label=self.label,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            logger.error("%s: %s", self.request_error, exc)
            raise RelayError(
                status.HTTP_502_BAD_GATEWAY,
                self.request_error,
                details=str(exc) or type(exc).__name__,
            ) from exc

        if not response.is_success:
            logger.error("%s with status %s", self.failed_error, response.status_code)
            raise RelayError(
                status.HTTP_502_BAD_GATEWAY,
                self.failed_error,
                upstream_status=response.status_code,
                details=response_snippet(response),
            )

        audio = response.content
        logger.info("%s returned %d bytes of audio", self.label, len(audio))
        return audio


class VoiceCloneSynthesizer(_Synthesizer):
    """Synthesize with the separately operated cloned-voice server."""

    label = "Voice clone"
    failed_error = "Voice clone server failed"
    request_error = "Voice clone connection error"

    @property
    def configured(self) -> bool:
        return bool(self._settings.voice_clone_url)

    async def synthesize(self, text: str, language: str) -> bytes:
        url = f"{self._settings.voice_clone_url}/synthesize"
        return await self._post_for_audio(
            url,
            headers={"Content-Type": "application/json"},
            json={"text": text, "language": language},
        )


class SpeechApiSynthesizer(_Synthesizer):
    """Generic (non-cloned) speech from the third-party TTS API."""

    label = "Speech synthesis"
    failed_error = "Speech synthesis failed"
    request_error = "Speech synthesis request error"

    async def synthesize(self, text: str) -> bytes:
        headers, params = gemini_auth(self._settings)
        headers["Content-Type"] = "application/json"
        payload = {
            "input": {"text": text},
            "audio": {"encoding": AUDIO_ENCODING, "sampleRateHertz": SAMPLE_RATE},
        }
        return await self._post_for_audio(
            self._settings.gemini_tts_url,
            headers=headers,
            params=params,
            json=payload,
        )


__all__ = [
    "AUDIO_ENCODING",
    "SAMPLE_RATE",
    "SpeechApiSynthesizer",
    "VoiceCloneSynthesizer",
]
