"""Deadline behavior against a real local server that answers slowly."""

import json
import socketserver
import threading
import time

import pytest

from attentionmarket.config.settings import ClientConfig
from attentionmarket.kit.errors import RequestTimeoutError
from attentionmarket.tools.http_client import HTTPClient

TRICKLE_INTERVAL = 0.2
TRICKLE_FOR = 2.0


def trickle_headers(wfile):
    wfile.write(b"HTTP/1.1 200 OK\r\n")
    wfile.flush()
    end = time.monotonic() + TRICKLE_FOR
    n = 0
    while time.monotonic() < end:
        time.sleep(TRICKLE_INTERVAL)
        wfile.write(f"X-Pad-{n}: {n}\r\n".encode())
        wfile.flush()
        n += 1


def trickle_body(wfile):
    wfile.write(b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nContent-Length: 1000\r\n\r\n")
    wfile.flush()
    end = time.monotonic() + TRICKLE_FOR
    while time.monotonic() < end:
        time.sleep(TRICKLE_INTERVAL)
        wfile.write(b" ")
        wfile.flush()


def respond_after(delay, payload=None):
    body = json.dumps(payload if payload is not None else {"a": 1}).encode()

    def behave(wfile):
        time.sleep(delay)
        wfile.write(
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nConnection: close\r\n"
            + f"Content-Length: {len(body)}\r\n\r\n".encode()
            + body
        )
        wfile.flush()

    return behave


class SlowServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, behaviors):
        super().__init__(("127.0.0.1", 0), SlowHandler)
        self.behaviors = list(behaviors)
        self.hits = 0
        self._lock = threading.Lock()

    def next_behavior(self):
        with self._lock:
            self.hits += 1
            if len(self.behaviors) > 1:
                return self.behaviors.pop(0)
            return self.behaviors[0]

    @property
    def base_url(self):
        host, port = self.server_address
        return f"http://{host}:{port}"


class SlowHandler(socketserver.StreamRequestHandler):
    def handle(self):
        while True:
            line = self.rfile.readline()
            if not line or line in (b"\r\n", b"\n"):
                break
        behave = self.server.next_behavior()
        try:
            behave(self.wfile)
        except OSError:
            # client gave up and closed the socket
            pass


@pytest.fixture
def slow_server():
    servers = []

    def start(*behaviors):
        server = SlowServer(behaviors)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def _client(server, timeout_ms=500, max_retries=0):
    cfg = ClientConfig(base_url=server.base_url, timeout_ms=timeout_ms, max_retries=max_retries)
    return HTTPClient(cfg, sleep=lambda s: None)


def test_trickled_headers_hit_the_deadline(slow_server):
    server = slow_server(trickle_headers)
    with _client(server) as http:
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError):
            http.request("GET", "/v1/policy")
        elapsed = time.monotonic() - start
    assert 0.45 <= elapsed < 1.2
    assert server.hits == 1


def test_trickled_body_hits_the_deadline(slow_server):
    server = slow_server(trickle_body)
    with _client(server) as http:
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError):
            http.request("GET", "/v1/policy")
        elapsed = time.monotonic() - start
    assert elapsed < 1.2


def test_each_attempt_gets_a_fresh_deadline(slow_server):
    server = slow_server(trickle_headers, respond_after(0.4))
    with _client(server, timeout_ms=500, max_retries=1) as http:
        start = time.monotonic()
        assert http.request("GET", "/v1/policy") == {"a": 1}
        elapsed = time.monotonic() - start
    assert server.hits == 2
    # total time is longer than one timeout window, so no overall deadline applies
    assert elapsed > 0.75


def test_timeout_on_every_attempt(slow_server):
    server = slow_server(trickle_headers, trickle_headers)
    with _client(server, timeout_ms=300, max_retries=1) as http:
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError):
            http.request("GET", "/v1/policy")
        elapsed = time.monotonic() - start
    assert server.hits == 2
    assert elapsed < 1.5


def test_fast_server_succeeds(slow_server):
    server = slow_server(respond_after(0.0, {"ok": True}))
    with _client(server) as http:
        assert http.request("GET", "/v1/policy") == {"ok": True}
