"""
Unit tests for the per-connection request handler.

Each test feeds raw bytes into one end of a socket pair and runs
HTTPServer._process_connection on the other, without a listener.
"""

import logging
import os
import socket
import sys
from pathlib import Path

import pytest

from statichttpd import HTTPServer, ServerConfig
from statichttpd.core import Connection, ConnectionState


@pytest.fixture
def server(docroot: Path) -> HTTPServer:
    return HTTPServer(ServerConfig(document_root=str(docroot), timeout=1.0))


def handle(server: HTTPServer, request: bytes, close_write: bool = True):
    """Run one exchange; return (raw response bytes, connection)."""
    client, server_side = socket.socketpair()
    try:
        client.sendall(request)
        if close_write:
            client.shutdown(socket.SHUT_WR)

        conn = Connection(socket=server_side, address=("127.0.0.1", 50000), timeout=1.0)
        server._process_connection(conn)

        client.settimeout(2.0)
        chunks = []
        while True:
            chunk = client.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks), conn
    finally:
        client.close()


class TestProcessConnection:
    def test_index(self, server, split):
        data, conn = handle(server, b"GET / HTTP/1.0\r\n\r\n")
        status, headers, body = split(data)

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert headers["Content-Length"] == "2"
        assert "Date" in headers
        assert body == b"hi"
        assert conn.state is ConnectionState.CLOSED

    def test_header_order(self, server):
        data, _ = handle(server, b"GET /style.css HTTP/1.0\r\n\r\n")
        head = data.split(b"\r\n\r\n")[0].split(b"\r\n")

        assert [line.split(b":")[0] for line in head[1:]] == [
            b"Content-Type", b"Content-Length", b"Date",
        ]

    def test_binary_file(self, server, split, cat_jpg):
        data, _ = handle(server, b"GET /images/cat.jpg HTTP/1.0\r\n\r\n")
        status, headers, body = split(data)

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "image/jpeg"
        assert headers["Content-Length"] == str(len(cat_jpg))
        assert body == cat_jpg

    def test_traversal(self, server, split):
        data, _ = handle(server, b"GET /../../etc/passwd HTTP/1.0\r\n\r\n")
        status, headers, body = split(data)

        assert status == "HTTP/1.0 403 Forbidden"
        assert headers["Content-Type"] == "text/plain"
        assert body == b"Forbidden"

    def test_missing(self, server, split):
        status, headers, body = split(handle(server, b"GET /nope HTTP/1.0\r\n\r\n")[0])

        assert status == "HTTP/1.0 404 Not Found"
        assert headers["Content-Type"] == "text/plain"
        assert body == b"Not Found"

    def test_custom_not_found_page(self, server, docroot, split):
        (docroot / "not-found.html").write_bytes(b"<h1>lost</h1>")

        status, headers, body = split(handle(server, b"GET /nope HTTP/1.0\r\n\r\n")[0])

        assert status == "HTTP/1.0 404 Not Found"
        assert headers["Content-Type"] == "text/html"
        assert body == b"<h1>lost</h1>"

    def test_directory_without_index(self, server, split):
        status, _, _ = split(handle(server, b"GET /docs/ HTTP/1.0\r\n\r\n")[0])
        assert status == "HTTP/1.0 404 Not Found"

    def test_head_has_no_body(self, server, split):
        status, headers, body = split(handle(server, b"HEAD / HTTP/1.0\r\n\r\n")[0])

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Length"] == "2"
        assert body == b""

    @pytest.mark.parametrize("method", [b"POST", b"PUT"])
    def test_body_methods_serve_the_file(self, server, split, method):
        request = method + b" / HTTP/1.0\r\nContent-Length: 4\r\n\r\nabcd"
        status, _, body = split(handle(server, request)[0])

        assert status == "HTTP/1.0 200 OK"
        assert body == b"hi"

    def test_post_without_content_length(self, server, split):
        status, headers, body = split(handle(server, b"POST / HTTP/1.0\r\n\r\n")[0])

        assert status == "HTTP/1.0 400 Bad Request"
        assert headers["Content-Type"] == "text/plain"
        assert body == b"Bad Request"

    @pytest.mark.parametrize("request_bytes", [
        b"GARBAGE\r\n\r\n",
        b"GET /\r\n\r\n",
        b"GET / HTTP/1.0\r\nNoColonHere\r\n\r\n",
        b"POST / HTTP/1.0\r\nContent-Length: 10\r\n\r\nshort",
        b"",
    ])
    def test_bad_requests(self, server, split, request_bytes):
        status, _, _ = split(handle(server, request_bytes)[0])
        assert status == "HTTP/1.0 400 Bad Request"

    def test_huge_content_length_is_400(self, server, split, caplog):
        request = b"POST / HTTP/1.0\r\nContent-Length: 99999999999999999999\r\n\r\nab"

        with caplog.at_level(logging.ERROR, logger="statichttpd"):
            status, _, body = split(handle(server, request)[0])

        assert status == "HTTP/1.0 400 Bad Request"
        assert body == b"Bad Request"
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    def test_head_parse_error_still_has_body(self, server, split):
        """Unparsed requests have no method, so the error body is sent."""
        status, _, body = split(handle(server, b"HEAD\r\n\r\n")[0])

        assert status == "HTTP/1.0 400 Bad Request"
        assert body == b"Bad Request"

    @pytest.mark.skipif(sys.getfilesystemencoding() != "utf-8", reason="needs a UTF-8 filesystem")
    @pytest.mark.parametrize("wire_path", [
        "/café.html".encode("utf-8"),
        b"/caf%C3%A9.html",
    ])
    def test_utf8_file_name(self, server, docroot, split, wire_path):
        (docroot / "café.html").write_bytes(b"<p>menu</p>")

        data, _ = handle(server, b"GET " + wire_path + b" HTTP/1.0\r\n\r\n")
        status, headers, body = split(data)

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert body == b"<p>menu</p>"

    def test_nul_in_path(self, server, split):
        status, _, _ = split(handle(server, b"GET /a%00b HTTP/1.0\r\n\r\n")[0])
        assert status == "HTTP/1.0 400 Bad Request"

    def test_stalled_client_times_out(self, server, split):
        """Headers never finish: the read timeout ends the exchange with 400."""
        data, _ = handle(server, b"GET / HTTP/1.0\r\nHost: x\r\n", close_write=False)
        assert split(data)[0] == "HTTP/1.0 400 Bad Request"

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root can read any file",
    )
    def test_unreadable_file(self, server, docroot, split):
        locked = docroot / "locked.txt"
        locked.write_bytes(b"x")
        locked.chmod(0)
        try:
            status, _, body = split(handle(server, b"GET /locked.txt HTTP/1.0\r\n\r\n")[0])
        finally:
            locked.chmod(0o644)

        assert status == "HTTP/1.0 500 Internal Server Error"
        assert body == b"Internal Server Error"

    def test_unexpected_error_is_500(self, server, split, monkeypatch):
        def explode(resource):
            raise RuntimeError("boom")

        monkeypatch.setattr(server.site, "load", explode)

        status, _, _ = split(handle(server, b"GET / HTTP/1.0\r\n\r\n")[0])
        assert status == "HTTP/1.0 500 Internal Server Error"

    def test_access_line(self, server, caplog):
        caplog.set_level(logging.INFO, logger="statichttpd.access")

        handle(server, b"GET /nope HTTP/1.0\r\nUser-Agent: tester\r\n\r\n")

        lines = [r.getMessage() for r in caplog.records if r.name == "statichttpd.access"]
        assert len(lines) == 1
        assert lines[0].startswith("127.0.0.1 - - [")
        assert '"GET /nope" 404 9 ' in lines[0]

    def test_access_line_for_unparsed_request(self, server, caplog):
        caplog.set_level(logging.INFO, logger="statichttpd.access")

        handle(server, b"nonsense\r\n\r\n")

        lines = [r.getMessage() for r in caplog.records if r.name == "statichttpd.access"]
        assert '"- -" 400 11 ' in lines[0]


class TestConnection:
    def test_close_is_idempotent(self):
        a, b = socket.socketpair()
        try:
            conn = Connection(socket=b, address=("10.0.0.1", 4242), timeout=0.2)
            a.close()

            conn.close()
            conn.close()

            assert conn.state is ConnectionState.CLOSED
            assert conn.client_ip == "10.0.0.1"
            assert conn.client_port == 4242
        finally:
            a.close()

    def test_send_to_closed_peer(self):
        a, b = socket.socketpair()
        conn = Connection(socket=b, address=("127.0.0.1", 1), timeout=0.2)
        a.close()

        # The first write may be buffered; keep going until the peer is noticed
        results = [conn.send_response(b"x" * 65536) for _ in range(8)]
        conn.close()

        assert results[-1] is False

    def test_timeout_applied(self):
        a, b = socket.socketpair()
        with a, Connection(socket=b, address=("127.0.0.1", 1), timeout=1.5) as conn:
            assert conn.socket.gettimeout() == 1.5
