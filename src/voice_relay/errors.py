"""Relay error type and the JSON shape it is rendered as."""

from __future__ import annotations

from typing import Any

DETAIL_LIMIT = 300


def truncate(value: Any, limit: int = DETAIL_LIMIT) -> str:
    """Return ``str(value)`` bounded to ``limit`` characters."""

    text = value if isinstance(value, str) else str(value)
    return text[:limit]


class RelayError(Exception):
    """A failure that maps onto a structured JSON error response."""

    def __init__(
        self,
        status_code: int,
        error: str,
        *,
        upstream_status: int | None = None,
        details: Any = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.upstream_status = upstream_status
        self.details = truncate(details) if details is not None else None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        if self.details is not None:
            payload["details"] = self.details
        return payload


__all__ = ["DETAIL_LIMIT", "RelayError", "truncate"]
