from attentionmarket.kit.errors import (
    APIErrorBody,
    APIRequestError,
    AttentionMarketError,
    ErrorKind,
    NetworkError,
    RequestTimeoutError,
)


def test_kinds_are_distinct():
    errors = [
        APIRequestError(500, APIErrorBody(error="e", message="m")),
        NetworkError("Network request failed"),
        RequestTimeoutError(),
    ]
    assert [e.kind for e in errors] == [ErrorKind.API, ErrorKind.NETWORK, ErrorKind.TIMEOUT]
    assert all(isinstance(e, AttentionMarketError) for e in errors)


def test_api_error_fields():
    body = APIErrorBody(error="rate_limited", message="slow down", request_id="req_9", retry_after=3)
    err = APIRequestError(429, body)
    assert err.status_code == 429
    assert err.error_code == "rate_limited"
    assert err.message == "slow down"
    assert err.request_id == "req_9"
    assert err.details is None
    assert err.retryable
    assert err.body.model_extra == {"retry_after": 3}


def test_timeout_default_message():
    assert str(RequestTimeoutError()) == "Request timed out"
