"""Pydantic models for voice relay requests and responses."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CLONED_MODE = "cloned"
DEFAULT_LANGUAGE = "en"


class VoiceRequest(BaseModel):
    """Incoming voice request payload."""

    text: str = ""
    language: str = DEFAULT_LANGUAGE
    mode: str = CLONED_MODE

    model_config = ConfigDict(extra="ignore")

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("text", mode="after")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_LANGUAGE
        return value.strip() if isinstance(value, str) else value

    @field_validator("mode", mode="before")
    @classmethod
    def _default_mode(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return CLONED_MODE
        return value.strip() if isinstance(value, str) else value

    @property
    def wants_clone(self) -> bool:
        return self.mode == CLONED_MODE


class ErrorResponse(BaseModel):
    """Error body returned by the relay for every non-200 response."""

    error: str
    status: Optional[int] = None
    details: Optional[str] = Field(default=None, max_length=300)


__all__ = ["CLONED_MODE", "DEFAULT_LANGUAGE", "ErrorResponse", "VoiceRequest"]
