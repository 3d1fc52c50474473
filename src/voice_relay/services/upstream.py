"""Outbound HTTP helpers shared by the text-generation and synthesis clients."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Faults worth a second attempt; HTTP error statuses are never retried
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: httpx.Timeout,
    max_retries: int,
    backoff: float,
    label: str,
    **kwargs: Any,
) -> httpx.Response:
    """POST ``url``, retrying transient transport faults with random jitter.

    Any response, whatever its status, is returned to the caller. Only the
    transport errors in ``TRANSIENT_ERRORS`` trigger another attempt; the last
    one is re-raised once ``max_retries`` is exhausted.
    """

    attempt = 0
    while True:
        try:
            return await client.post(
                url, timeout=timeout, follow_redirects=True, **kwargs
            )
        except TRANSIENT_ERRORS as exc:
            if attempt >= max_retries:
                raise
            attempt += 1
            delay = random.uniform(0, backoff) if backoff > 0 else 0.0
            logger.warning(
                "%s request failed (%s); retry %d/%d in %.2fs",
                label,
                type(exc).__name__,
                attempt,
                max_retries,
                delay,
            )
            await asyncio.sleep(delay)


def response_snippet(response: httpx.Response) -> str:
    """Best-effort decoded body of an error response for diagnostics."""

    try:
        return response.text
    except (UnicodeDecodeError, LookupError):
        return "<no body>"


__all__ = ["TRANSIENT_ERRORS", "post_with_retry", "response_snippet"]
