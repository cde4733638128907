"""Shared pytest fixtures: an in-process HTTP collector and a clean environment."""

from __future__ import annotations

import os
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class Collector:
    """Threaded HTTP server that records every POST it receives."""

    def __init__(self, delay: float = 0.0):
        self.received: list[tuple[str | None, bytes]] = []
        self.delay = delay
        collector = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                body = self.rfile.read(length)
                if collector.delay:
                    time.sleep(collector.delay)
                collector.received.append((self.headers.get("Content-Type"), body))
                self.send_response(200)
                self.send_header("Content-Length", "2")
                self.end_headers()
                self.wfile.write(b"ok")

            def log_message(self, format, *args):
                pass

        self._server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}/collect"

    def start(self):
        self._thread.start()

    def stop(self):
        self._server.shutdown()
        self._server.server_close()

    def wait_for(self, count: int, timeout: float = 15.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if len(self.received) >= count:
                return True
            time.sleep(0.05)
        return len(self.received) >= count


@pytest.fixture()
def collector():
    c = Collector()
    c.start()
    yield c
    c.stop()


@pytest.fixture()
def slow_collector():
    c = Collector(delay=2.0)
    c.start()
    yield c
    c.stop()


@pytest.fixture()
def closed_port_url() -> str:
    """URL of a local port nothing listens on."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return f"http://127.0.0.1:{port}/collect"


@pytest.fixture(autouse=True)
def _clean_lazylog_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("LAZYLOG_"):
            monkeypatch.delenv(name, raising=False)
