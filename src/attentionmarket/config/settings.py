from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from attentionmarket.kit.errors import ConfigError

DEFAULT_BASE_URL = "https://api.attentionmarket.ai"
DEFAULT_TIMEOUT_MS = 4000
DEFAULT_MAX_RETRIES = 2


@dataclass(frozen=True)
class ClientConfig:
    """Read-only transport configuration shared by every request of a client."""

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigError("base_url must not be empty")
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_retries < 0:
            raise ConfigError(f"max_retries must be >= 0, got {self.max_retries}")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    attentionmarket_api_key: str = ''
    attentionmarket_agent_id: str = ''
    attentionmarket_base_url: str = DEFAULT_BASE_URL
    attentionmarket_timeout_ms: int = DEFAULT_TIMEOUT_MS
    attentionmarket_max_retries: int = DEFAULT_MAX_RETRIES

    log_level: str = 'INFO'

    @field_validator('attentionmarket_base_url', mode='before')
    def _strip_slash(cls, v):  # type: ignore
        return str(v).strip().rstrip('/')

    @field_validator('attentionmarket_timeout_ms')
    def _positive_timeout(cls, v):  # type: ignore
        if v <= 0:
            raise ValueError('ATTENTIONMARKET_TIMEOUT_MS must be positive')
        return v

    @field_validator('attentionmarket_max_retries')
    def _non_negative_retries(cls, v):  # type: ignore
        if v < 0:
            raise ValueError('ATTENTIONMARKET_MAX_RETRIES must be >= 0')
        return v

    @field_validator('log_level', mode='before')
    def _upper_level(cls, v):  # type: ignore
        return str(v).upper()

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            base_url=self.attentionmarket_base_url,
            api_key=self.attentionmarket_api_key or None,
            timeout_ms=self.attentionmarket_timeout_ms,
            max_retries=self.attentionmarket_max_retries,
        )

