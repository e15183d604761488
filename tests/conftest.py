"""Shared fixtures: a throwaway local HTTP server standing in for speed-test mirrors."""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace

import pytest

PAYLOAD_SIZE = 256 * 1024
STALL_SECONDS = 1.5
DRIP_LENGTH = 100_000
DRIP_INTERVAL = 0.1


class MirrorHandler(BaseHTTPRequestHandler):
    """Serves the routes the speed tests probe and records each request."""

    def _record(self):
        self.server.seen.append(SimpleNamespace(
            method=self.command,
            path=self.path,
            headers=dict(self.headers),
        ))

    def _reply(self, status: int, body: bytes = b""):
        self.send_response(status)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        self._record()
        route = self.path.split("?", 1)[0]
        if route == "/file":
            self._reply(200, b"x" * PAYLOAD_SIZE)
        elif route == "/empty":
            self._reply(200)
        elif route == "/drip":
            self._drip()
        elif route == "/stall":
            time.sleep(STALL_SECONDS)
            self._reply(200, b"x" * PAYLOAD_SIZE)
        else:
            self._reply(404)

    def _drip(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(DRIP_LENGTH))
        self.end_headers()
        try:
            for _ in range(DRIP_LENGTH):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(DRIP_INTERVAL)
        except OSError:
            pass

    def do_POST(self):
        self._record()
        length = int(self.headers.get("Content-Length", 0))
        self.rfile.read(length)
        route = self.path.split("?", 1)[0]
        if route == "/upload":
            self._reply(200, b"{}")
        else:
            self._reply(500)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def mirror():
    """Local mirror server; ``mirror.url(path)`` builds URLs, ``mirror.seen`` lists requests."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), MirrorHandler)
    server.daemon_threads = True
    server.seen = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        yield SimpleNamespace(url=lambda path: base + path, seen=server.seen)
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def refused_url():
    """A URL nothing listens on."""
    return "http://127.0.0.1:9/unreachable"
