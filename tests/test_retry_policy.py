from types import SimpleNamespace

import pytest

from attentionmarket.kit.errors import (
    FALLBACK_ERROR_BODY,
    APIRequestError,
    NetworkError,
    RequestTimeoutError,
)
from attentionmarket.kit.retry_policy import RETRYABLE_STATUS_CODES, backoff_delay_ms, should_retry


def _api_error(status):
    return APIRequestError(status, FALLBACK_ERROR_BODY)


def test_retryable_codes_exact():
    assert RETRYABLE_STATUS_CODES == {408, 429, 500, 502, 503, 504}


@pytest.mark.parametrize("status", sorted(RETRYABLE_STATUS_CODES))
def test_retry_on_retryable_status(status):
    assert should_retry(_api_error(status), attempt=0, max_retries=2)


@pytest.mark.parametrize("status", [400, 401, 403, 404, 422, 501])
def test_no_retry_on_terminal_status(status):
    assert not should_retry(_api_error(status), attempt=0, max_retries=2)


def test_timeout_and_network_always_retry_within_budget():
    assert should_retry(RequestTimeoutError(), 1, 2)
    assert should_retry(NetworkError("Network request failed"), 1, 2)


def test_budget_exhausted():
    assert not should_retry(RequestTimeoutError(), 2, 2)
    assert not should_retry(NetworkError("x"), 0, 0)
    assert not should_retry(_api_error(503), 3, 2)


def test_unknown_exception_terminal():
    assert not should_retry(ValueError("boom"), 0, 5)


@pytest.mark.parametrize("attempt", [0, 1, 2, 5])
def test_backoff_bounds(attempt):
    low = backoff_delay_ms(attempt, SimpleNamespace(random=lambda: 0.0))
    high = backoff_delay_ms(attempt, SimpleNamespace(random=lambda: 0.9999))
    assert low == 100 * 2 ** attempt
    assert low <= high < low + 100


def test_backoff_default_rng():
    for _ in range(20):
        d = backoff_delay_ms(1)
        assert 200 <= d < 300
