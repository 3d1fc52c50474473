"""Relay endpoint: text in, base64 WAV out."""

from __future__ import annotations

import base64
import json
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError

from ..errors import RelayError
from ..schemas.voice import ErrorResponse, VoiceRequest
from ..services.relay import VoiceRelayService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["voice"])

AUDIO_MEDIA_TYPE = "audio/wav"
# Marks the body as base64 text; clients must decode before use
AUDIO_ENCODING_HEADER = "Content-Transfer-Encoding"


def get_voice_relay(request: Request) -> VoiceRelayService:
    service = getattr(request.app.state, "voice_relay", None)
    if service is None:
        raise RelayError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Voice relay unavailable"
        )
    return service


def parse_voice_request(raw: bytes) -> VoiceRequest:
    """Decode and validate the JSON body of a voice request."""

    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise RelayError(
            status.HTTP_400_BAD_REQUEST, "Invalid JSON", details=str(exc)
        ) from exc

    if not isinstance(data, dict):
        raise RelayError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request body",
            details="Expected a JSON object",
        )

    try:
        return VoiceRequest.model_validate(data)
    except ValidationError as exc:
        raise RelayError(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request body",
            details="; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ),
        ) from exc


@router.post(
    "/voice",
    response_class=Response,
    responses={
        200: {"content": {AUDIO_MEDIA_TYPE: {}}, "description": "Base64 WAV audio"},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def relay_voice(
    request: Request,
    service: VoiceRelayService = Depends(get_voice_relay),
) -> Response:
    """Generate a spoken reply to the posted text."""

    voice_request = parse_voice_request(await request.body())
    if not voice_request.text:
        raise RelayError(status.HTTP_400_BAD_REQUEST, "Missing text")

    logger.info(
        "Voice request received (language=%s, mode=%s, %d chars)",
        voice_request.language,
        voice_request.mode,
        len(voice_request.text),
    )

    try:
        audio = await service.relay(voice_request)
    except RelayError:
        raise
    except Exception as exc:
        logger.exception("Unhandled error while relaying voice request")
        raise RelayError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error", details=str(exc)
        ) from exc

    return Response(
        content=base64.b64encode(audio),
        media_type=AUDIO_MEDIA_TYPE,
        headers={AUDIO_ENCODING_HEADER: "base64"},
    )


__all__ = [
    "AUDIO_ENCODING_HEADER",
    "AUDIO_MEDIA_TYPE",
    "get_voice_relay",
    "parse_voice_request",
    "router",
]
