"""Application configuration using environment variables."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional
from urllib.parse import quote

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_ASSISTANT_PROMPT = (
    "You are a helpful assistant. Reply in the same language as the user."
)


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required for text generation and the fallback TTS; checked per request
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key"),
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta2",
        validation_alias=AliasChoices("GEMINI_API_BASE", "gemini_api_base"),
    )
    gemini_model: str = Field(
        default="text-bison-001",
        validation_alias=AliasChoices("GEMINI_MODEL", "gemini_model"),
    )
    gemini_text_method: Literal["generateText", "generateContent"] = Field(
        default="generateText",
        validation_alias=AliasChoices("GEMINI_TEXT_METHOD", "gemini_text_method"),
    )
    gemini_auth_mode: Literal["bearer", "query"] = Field(
        default="bearer",
        validation_alias=AliasChoices("GEMINI_AUTH_MODE", "gemini_auth_mode"),
    )
    gemini_tts_url: str = Field(
        default="https://api.generativeai.googleapis.com/v1beta2/speech:generate",
        validation_alias=AliasChoices("GEMINI_TTS_URL", "gemini_tts_url"),
    )
    assistant_prompt: str = Field(
        default=DEFAULT_ASSISTANT_PROMPT,
        validation_alias=AliasChoices("ASSISTANT_PROMPT", "assistant_prompt"),
    )

    # Optional cloned-voice server; used when a request asks for mode="cloned"
    voice_clone_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "RVC_SERVER_URL",
            "VOICE_CLONE_URL",
            "voice_clone_url",
        ),
    )

    text_generation_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices(
            "TEXT_GENERATION_TIMEOUT", "text_generation_timeout"
        ),
    )
    synthesis_timeout: float = Field(
        default=60.0,
        ge=1,
        validation_alias=AliasChoices("SYNTHESIS_TIMEOUT", "synthesis_timeout"),
    )
    upstream_connect_timeout: float = Field(
        default=10.0,
        gt=0,
        validation_alias=AliasChoices(
            "UPSTREAM_CONNECT_TIMEOUT", "upstream_connect_timeout"
        ),
    )
    upstream_max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        validation_alias=AliasChoices("UPSTREAM_MAX_RETRIES", "upstream_max_retries"),
    )
    upstream_retry_backoff: float = Field(
        default=0.5,
        ge=0,
        validation_alias=AliasChoices(
            "UPSTREAM_RETRY_BACKOFF", "upstream_retry_backoff"
        ),
    )

    # JSON list or comma-separated origins
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )

    @field_validator("voice_clone_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | list[str] | None) -> list[str]:
        if value is None:
            return ["*"]
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("gemini_api_base", mode="after")
    @classmethod
    def _strip_base_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.get_secret_value())

    @property
    def text_generation_url(self) -> str:
        return (
            f"{self.gemini_api_base}/models/{quote(self.gemini_model, safe='')}:"
            f"{self.gemini_text_method}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["DEFAULT_ASSISTANT_PROMPT", "Settings", "get_settings"]
