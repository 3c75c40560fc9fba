import json
import threading

import pytest
import requests


def make_response(status_code, payload=None, raw=None):
    resp = requests.Response()
    resp.status_code = status_code
    if raw is not None:
        resp._content = raw.encode()
    elif payload is not None:
        resp._content = json.dumps(payload).encode()
    else:
        resp._content = b""
    resp._content_consumed = True
    return resp


class FakeSession:
    """Replays queued responses or raises queued exceptions, one per request."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def request(self, method, url, **kwargs):
        with self._lock:
            self.calls.append({"method": method, "url": url, **kwargs})
            outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self):
        self.closed = True


@pytest.fixture
def sleeps():
    return []


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    for name in (
        "ATTENTIONMARKET_API_KEY",
        "ATTENTIONMARKET_AGENT_ID",
        "ATTENTIONMARKET_BASE_URL",
        "ATTENTIONMARKET_TIMEOUT_MS",
        "ATTENTIONMARKET_MAX_RETRIES",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
