"""Client for the generative text API that produces the spoken reply."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import status

from ..config import Settings
from ..errors import RelayError
from .reply_extraction import FALLBACK_LIMIT, extract_reply_text, fallback_dump
from .upstream import post_with_retry, response_snippet

logger = logging.getLogger(__name__)


def gemini_auth(settings: Settings) -> tuple[dict[str, str], dict[str, str]]:
    """Return ``(headers, params)`` carrying the configured Gemini credential."""

    key = settings.gemini_api_key.get_secret_value() if settings.gemini_api_key else ""
    if settings.gemini_auth_mode == "query":
        return {}, {"key": key}
    return {"Authorization": f"Bearer {key}"}, {}


def _body_text(response: httpx.Response) -> str:
    try:
        return response.text
    except (UnicodeDecodeError, LookupError):
        return response.content.decode("utf-8", errors="replace")


class TextGenerationClient:
    """Turn user text into reply text with a single generateText/generateContent call."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http = http_client

    @property
    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.text_generation_timeout,
            connect=self._settings.upstream_connect_timeout,
        )

    def build_prompt(self, user_text: str) -> str:
        return f"{self._settings.assistant_prompt} User: {user_text}"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        if self._settings.gemini_text_method == "generateContent":
            return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        return {"prompt": {"text": prompt}}

    async def generate(self, user_text: str) -> str:
        """Return the model's reply to ``user_text``.

        Raises ``RelayError`` (502) when the API is unreachable or answers with
        a non-success status. A body that is not JSON is spoken as-is.
        """

        headers, params = gemini_auth(self._settings)
        headers["Content-Type"] = "application/json"
        payload = self.build_payload(self.build_prompt(user_text))
        url = self._settings.text_generation_url

        logger.debug("Requesting reply from %s", url)
        try:
            response = await post_with_retry(
                self._http,
                url,
                timeout=self._timeout,
                max_retries=self._settings.upstream_max_retries,
                backoff=self._settings.upstream_retry_backoff,
                label="Generative text",
                headers=headers,
                params=params,
                json=payload,
            )
        except httpx.HTTPError as exc:
            logger.error("Generative text request error: %s", exc)
            raise RelayError(
                status.HTTP_502_BAD_GATEWAY,
                "Generative text request error",
                details=str(exc) or type(exc).__name__,
            ) from exc

        if not response.is_success:
            logger.error("Generative text failed with status %s", response.status_code)
            raise RelayError(
                status.HTTP_502_BAD_GATEWAY,
                "Generative text failed",
                upstream_status=response.status_code,
                details=response_snippet(response),
            )

        try:
            body = response.json()
        except ValueError:
            # Not JSON; speak whatever text came back rather than failing
            reply = _body_text(response).strip()[:FALLBACK_LIMIT]
            logger.warning("Generative text response was not JSON; using raw body")
            return reply or fallback_dump(None)

        reply = extract_reply_text(body)
        logger.info("Generated reply (%d chars)", len(reply))
        return reply


__all__ = ["TextGenerationClient", "gemini_auth"]
