"""
pytest configuration and fixtures.
"""

import socket
import threading
import time

import pytest

# Add the project root and the tests directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from serveris import ServerConfig, RequestHandler, WebServer


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Document root with a few pages."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(b"<h1>hi</h1>")
    (root / "about.html").write_bytes(b"<p>about</p>")
    (root / "docs").mkdir()
    (root / "docs" / "my page.html").write_bytes(b"spaced")
    (root / "docs" / "data.bin").write_bytes(bytes(range(256)))
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def config(site: Path) -> ServerConfig:
    """Test configuration serving the site fixture."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(site),
        connection_limit=2,
        transmission_timeout=2000,
        poll_interval=0.05,
    )


@pytest.fixture
def handler(config: ServerConfig) -> RequestHandler:
    return RequestHandler(config)


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class ServerThread:
    """Runs `serve_forever` in a background thread and keeps its outcome."""

    def __init__(self, server: WebServer):
        self.server = server
        self.error = None
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self):
        try:
            self.server.serve_forever()
        except BaseException as e:
            self.error = e

    def start(self):
        self._thread.start()
        return self

    def join(self, timeout: float = 5.0):
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self):
        self.server.shutdown()
        return self.join()


@pytest.fixture
def bound_server(config: ServerConfig):
    """A bound but not yet serving server. Stopped at teardown."""
    server = WebServer(config=config)
    server.bind()
    yield server
    server.shutdown()
    if server.server_socket is not None:
        server.server_socket.close()
