from __future__ import annotations

import functools
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App / env
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Backend API
    api_url: str = Field("http://localhost:3000/api", alias="LARK_API_URL")
    request_timeout_s: float = Field(15.0, alias="LARK_REQUEST_TIMEOUT_S")
    connect_timeout_s: float = Field(5.0, alias="LARK_CONNECT_TIMEOUT_S")

    # Connectivity probe
    connectivity_retries: int = Field(2, alias="LARK_CONNECTIVITY_RETRIES")
    connectivity_retry_delay_s: float = Field(1.0, alias="LARK_CONNECTIVITY_RETRY_DELAY_S")

    # Response cache
    cache_ttl_seconds: int = Field(1800, alias="LARK_CACHE_TTL_SECONDS")
    cache_max_entries: int = Field(50, alias="LARK_CACHE_MAX_ENTRIES")

    # Conversational context
    context_timeout_s: int = Field(300, alias="LARK_CONTEXT_TIMEOUT_S")
    context_max_length: int = Field(10, alias="LARK_CONTEXT_MAX_LENGTH")
    chaining_enabled: bool = Field(True, alias="LARK_CHAINING_ENABLED")

    # Speech
    tts_voice: str = Field("alloy", alias="LARK_TTS_VOICE")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        val = (v or "").strip()
        return val.rstrip("/") or "/api"

    @field_validator(
        "connectivity_retries",
        "cache_ttl_seconds",
        "cache_max_entries",
        "context_timeout_s",
        "context_max_length",
    )
    @classmethod
    def clamp_non_negative(cls, v: int) -> int:
        return max(0, v)

    @field_validator("request_timeout_s", "connect_timeout_s", "connectivity_retry_delay_s")
    @classmethod
    def clamp_non_negative_float(cls, v: float) -> float:
        return max(0.0, v)

    @field_validator("app_env")
    @classmethod
    def normalize_env(cls, v: str) -> str:
        return (v or "dev").lower()


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def settings_public_summary(settings: Optional[Settings] = None) -> Dict[str, Any]:
    s = settings or get_settings()
    return {
        "env": s.app_env,
        "api_url": s.api_url,
        "request_timeout_s": s.request_timeout_s,
        "connectivity_retries": s.connectivity_retries,
        "cache": {"ttl_seconds": s.cache_ttl_seconds, "max_entries": s.cache_max_entries},
        "chaining_enabled": s.chaining_enabled,
    }


__all__ = ["Settings", "get_settings", "settings_public_summary"]
