"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statichttpd import HTTPServer, ServerConfig


# Starts like a JPEG and is not valid UTF-8 anywhere
CAT_JPG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x80\x81\xfe\xff" * 64


@pytest.fixture
def cat_jpg() -> bytes:
    return CAT_JPG


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """
    A small document root:

        public/
            index.html        "hi"
            style.css
            README            (no extension)
            images/cat.jpg    binary
            docs/guide.txt    (docs/ has no index.html)
        public2/
            secret.txt        sibling whose name starts with "public"
    """
    root = tmp_path / "public"
    (root / "images").mkdir(parents=True)
    (root / "docs").mkdir()

    (root / "index.html").write_bytes(b"hi")
    (root / "style.css").write_bytes(b"body { color: red; }")
    (root / "README").write_bytes(b"plain bytes")
    (root / "images" / "cat.jpg").write_bytes(CAT_JPG)
    (root / "docs" / "guide.txt").write_bytes(b"read me")

    sibling = tmp_path / "public2"
    sibling.mkdir()
    (sibling / "secret.txt").write_bytes(b"top secret")

    return root


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP/1.0 GET request."""
    return (
        b"GET /images/cat.jpg HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /submit HTTP/1.0\r\n"
        + b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    @property
    def target(self) -> str:
        return f"127.0.0.1:{self.port}"

    @property
    def base_url(self) -> str:
        return f"http://{self.target}"

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def exchange(self, request: bytes, timeout: float = 5.0) -> bytes:
        """Send raw request bytes and read the reply until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as sock:
            sock.sendall(request)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


def split_response(data: bytes) -> tuple[str, dict, bytes]:
    """Split raw response bytes into (status line, headers, body)."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


@pytest.fixture
def split():
    return split_response


@pytest.fixture
def server_config(docroot: Path, free_port: int) -> ServerConfig:
    return ServerConfig(
        host="127.0.0.1",
        port=free_port,
        document_root=str(docroot),
        timeout=2.0,
        log_level="WARNING",
    )


@pytest.fixture
def test_server(server_config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server over the `docroot` tree."""
    test_srv = TestServer(HTTPServer(server_config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def start_server():
    """Factory for servers with a custom config, all stopped at teardown."""
    started = []

    def start(config: ServerConfig) -> TestServer:
        test_srv = TestServer(HTTPServer(config))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()
