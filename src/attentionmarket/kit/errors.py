from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


# Request timeout, rate limit and server-side failures.
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class ErrorKind(str, Enum):
    API = "api_error"
    NETWORK = "network_error"
    TIMEOUT = "timeout_error"


class ConfigError(Exception):
    """Raised for missing or invalid configuration."""


class APIErrorBody(BaseModel):
    """Structured error payload returned by the API on a non-success status."""

    model_config = ConfigDict(extra="allow")

    error: str
    message: str
    request_id: Optional[str] = None
    details: Optional[Any] = None


FALLBACK_ERROR_BODY = APIErrorBody(
    error="unknown_error",
    message="Failed to parse error response",
    request_id="unknown",
)


class AttentionMarketError(Exception):
    """Base class for the three request failure kinds.

    Exactly three subclasses exist, one per :class:`ErrorKind`. Callers can
    branch on ``err.kind`` instead of inspecting the concrete type.
    """

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class APIRequestError(AttentionMarketError):
    """The API answered with a non-success status."""

    kind = ErrorKind.API

    def __init__(self, status_code: int, body: APIErrorBody):
        super().__init__(body.message)
        self.status_code = status_code
        self.body = body
        self.error_code = body.error
        self.request_id = body.request_id
        self.details = body.details

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES

    def __str__(self) -> str:
        return f"{self.status_code} {self.error_code}: {self.message}"


class NetworkError(AttentionMarketError):
    """The request never produced a response (DNS, refused, reset, bad payload)."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RequestTimeoutError(AttentionMarketError):
    """No response arrived before the per-attempt deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timed out"):
        super().__init__(message)
