"""Retry predicate and backoff schedule for the HTTP transport.

The functions here are pure; :mod:`attentionmarket.tools.http_client` wires
them into a ``tenacity.Retrying`` loop through the adapters at the bottom.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from tenacity import RetryCallState

from attentionmarket.kit.errors import (
    RETRYABLE_STATUS_CODES,
    APIRequestError,
    NetworkError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

BACKOFF_BASE_MS = 100
BACKOFF_JITTER_MS = 100


def should_retry(error: BaseException, attempt: int, max_retries: int) -> bool:
    """Decide whether ``error`` raised by zero-indexed ``attempt`` earns another try."""
    if attempt >= max_retries:
        return False
    if isinstance(error, (RequestTimeoutError, NetworkError)):
        return True
    if isinstance(error, APIRequestError):
        return error.status_code in RETRYABLE_STATUS_CODES
    return False


def backoff_delay_ms(attempt: int, rng: Optional[random.Random] = None) -> float:
    """Delay before the retry that follows failed ``attempt``.

    ``100 * 2**attempt`` plus uniform jitter in ``[0, 100)`` milliseconds.
    """
    source = rng or random
    return BACKOFF_BASE_MS * (2 ** attempt) + source.random() * BACKOFF_JITTER_MS


# tenacity adapters; attempt_number is 1-based there.

def retry_predicate(max_retries: int) -> Callable[[RetryCallState], bool]:
    def _retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        return should_retry(outcome.exception(), retry_state.attempt_number - 1, max_retries)

    return _retry


def wait_backoff(rng: Optional[random.Random] = None) -> Callable[[RetryCallState], float]:
    def _wait(retry_state: RetryCallState) -> float:
        return backoff_delay_ms(retry_state.attempt_number - 1, rng) / 1000.0

    return _wait


def log_before_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Attempt %d failed (%s); retrying in %.0f ms",
        retry_state.attempt_number,
        exc,
        delay * 1000,
    )
