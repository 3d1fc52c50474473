"""Two-step voice pipeline: generate a reply, then synthesize it."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import status

from ..config import Settings
from ..errors import RelayError
from ..schemas.voice import VoiceRequest
from .speech_synthesis import SpeechApiSynthesizer, VoiceCloneSynthesizer
from .text_generation import TextGenerationClient

logger = logging.getLogger(__name__)


class VoiceRelayService:
    """Relay a voice request through text generation and speech synthesis.

    Holds no per-request state; one instance serves every request of the app.
    The shared ``httpx.AsyncClient`` is created lazily unless one is injected,
    and is only closed by ``aclose`` when this service created it.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
            follow_redirects=True,
        )
        self.text_generation = TextGenerationClient(settings, self._http)
        self.voice_clone = VoiceCloneSynthesizer(settings, self._http)
        self.speech_api = SpeechApiSynthesizer(settings, self._http)

    @property
    def settings(self) -> Settings:
        return self._settings

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def relay(self, request: VoiceRequest) -> bytes:
        """Return synthesized audio bytes for ``request``."""

        if not request.text:
            raise RelayError(status.HTTP_400_BAD_REQUEST, "Missing text")
        if not self._settings.has_gemini_key:
            logger.error("GEMINI_API_KEY is not configured")
            raise RelayError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "GEMINI_API_KEY not configured",
            )

        reply = await self.text_generation.generate(request.text)

        if request.wants_clone and self.voice_clone.configured:
            logger.info("Synthesizing reply with cloned voice (%s)", request.language)
            return await self.voice_clone.synthesize(reply, request.language)

        logger.info(
            "Synthesizing reply with speech API (mode=%s, clone configured=%s)",
            request.mode,
            self.voice_clone.configured,
        )
        return await self.speech_api.synthesize(reply)


__all__ = ["VoiceRelayService"]
