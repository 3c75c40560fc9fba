"""JSON HTTP transport with per-attempt deadlines and bounded retries.

Every outbound call of the SDK goes through :meth:`HTTPClient.request`. A call
either returns the parsed JSON body or raises exactly one of
:class:`APIRequestError`, :class:`NetworkError` or :class:`RequestTimeoutError`.
When retries run out the error of the last attempt is raised; earlier failures
are only logged.
"""

from __future__ import annotations

import json
import logging
import random
import threading
import time
from concurrent.futures import Future, wait
from typing import Any, Callable, Dict, Literal, Optional

import requests
from tenacity import Retrying, stop_after_attempt

from attentionmarket.config.settings import ClientConfig
from attentionmarket.kit.errors import (
    FALLBACK_ERROR_BODY,
    APIErrorBody,
    APIRequestError,
    AttentionMarketError,
    NetworkError,
    RequestTimeoutError,
)
from attentionmarket.kit.retry_policy import log_before_retry, retry_predicate, wait_backoff

logger = logging.getLogger(__name__)

Method = Literal["GET", "POST"]

NETWORK_ERROR_MESSAGE = "Network request failed"
CHUNK_SIZE = 8192


def parse_error_body(raw: bytes) -> APIErrorBody:
    """Read the structured error payload, or the fallback when it is unusable."""
    try:
        payload = json.loads(raw)
    except ValueError:
        return FALLBACK_ERROR_BODY
    if not isinstance(payload, dict):
        return FALLBACK_ERROR_BODY
    try:
        return APIErrorBody.model_validate(payload)
    except ValueError:
        return FALLBACK_ERROR_BODY


class HTTPClient:
    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self._session = session if session is not None else requests.Session()
        self._sleep = sleep
        self._rng = rng

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def build_headers(
        self,
        headers: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, str]:
        out = {"Content-Type": "application/json", **(headers or {})}
        if self.config.api_key:
            out["Authorization"] = f"Bearer {self.config.api_key}"
        if idempotency_key:
            out["Idempotency-Key"] = idempotency_key
        return out

    def request(
        self,
        method: Method,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        """Send one logical request, retrying transient failures.

        Parameters
        ----------
        method:
            ``"GET"`` or ``"POST"``.
        path:
            Appended verbatim to the configured base URL.
        body:
            JSON-serializable payload; ``None`` sends no body at all.
        headers:
            Extra headers merged over ``Content-Type: application/json``.
        idempotency_key:
            Sent as ``Idempotency-Key`` so the server can drop replayed writes.
        """

        url = f"{self.config.base_url}{path}"
        retryer = Retrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=wait_backoff(self._rng),
            retry=retry_predicate(self.config.max_retries),
            before_sleep=log_before_retry,
            sleep=self._sleep,
            reraise=True,
        )
        return retryer(self._send, method, url, body, headers, idempotency_key)

    def _send(
        self,
        method: Method,
        url: str,
        body: Any,
        headers: Optional[Dict[str, str]],
        idempotency_key: Optional[str],
    ) -> Any:
        """Run one attempt on a worker thread and race it against the deadline.

        The deadline starts before the connection is opened and covers the
        whole exchange, headers and body included. When it passes first the
        worker is told to stop reading and is left to wind down on its own.
        """

        deadline = time.monotonic() + self.config.timeout_seconds
        cancelled = threading.Event()
        future: Future = Future()

        def run() -> None:
            try:
                future.set_result(
                    self._attempt(method, url, body, headers, idempotency_key, deadline, cancelled)
                )
            except BaseException as exc:
                future.set_exception(exc)

        threading.Thread(target=run, name="attentionmarket-attempt", daemon=True).start()
        done, _ = wait([future], timeout=max(0.0, deadline - time.monotonic()))
        if not done:
            cancelled.set()
            logger.debug("%s %s timed out after %d ms", method, url, self.config.timeout_ms)
            raise RequestTimeoutError()

        try:
            return future.result()
        except requests.Timeout as exc:
            logger.debug("%s %s timed out after %d ms", method, url, self.config.timeout_ms)
            raise RequestTimeoutError() from exc
        except AttentionMarketError:
            raise
        except Exception as exc:
            if time.monotonic() >= deadline:
                raise RequestTimeoutError() from exc
            logger.debug("%s %s failed: %s", method, url, exc)
            raise NetworkError(NETWORK_ERROR_MESSAGE, cause=exc) from exc

    def _attempt(
        self,
        method: Method,
        url: str,
        body: Any,
        headers: Optional[Dict[str, str]],
        idempotency_key: Optional[str],
        deadline: float,
        cancelled: threading.Event,
    ) -> Any:
        data = json.dumps(body) if body is not None else None
        logger.debug("%s %s", method, url)
        left = _time_left(deadline)
        resp = self._session.request(
            method,
            url,
            headers=self.build_headers(headers, idempotency_key),
            data=data,
            timeout=(left, left),
            stream=True,
        )
        try:
            raw = _read_body(resp, deadline, cancelled)
        finally:
            resp.close()
        if not 200 <= resp.status_code < 300:
            raise APIRequestError(resp.status_code, parse_error_body(raw))
        return json.loads(raw)


def _time_left(deadline: float) -> float:
    left = deadline - time.monotonic()
    if left <= 0:
        raise RequestTimeoutError()
    return left


def _read_body(resp: requests.Response, deadline: float, cancelled: threading.Event) -> bytes:
    chunks = []
    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
        if cancelled.is_set() or time.monotonic() >= deadline:
            raise RequestTimeoutError()
        chunks.append(chunk)
    return b"".join(chunks)
