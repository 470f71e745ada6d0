"""
Integration tests: a real listener on a free port, real client sockets.
"""

import socket
import sys
import threading
import time

import pytest

from statichttpd import HTTPServer, ServerConfig


class TestServing:
    def test_index(self, test_server, split):
        status, headers, body = split(test_server.exchange(b"GET / HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert headers["Content-Length"] == "2"
        assert body == b"hi"

    def test_binary_file_exact_bytes(self, test_server, split, cat_jpg):
        data = test_server.exchange(b"GET /images/cat.jpg HTTP/1.0\r\n\r\n")
        status, headers, body = split(data)

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "image/jpeg"
        assert int(headers["Content-Length"]) == len(cat_jpg)
        assert body == cat_jpg

    def test_traversal_forbidden(self, test_server, split):
        status, _, body = split(test_server.exchange(b"GET /../../etc/passwd HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 403 Forbidden"
        assert body == b"Forbidden"

    def test_encoded_traversal_forbidden(self, test_server, split):
        status, _, _ = split(test_server.exchange(b"GET /%2e%2e/public2/secret.txt HTTP/1.0\r\n\r\n"))
        assert status == "HTTP/1.0 403 Forbidden"

    def test_missing(self, test_server, split):
        status, headers, body = split(test_server.exchange(b"GET /missing.html HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 404 Not Found"
        assert headers["Content-Type"] == "text/plain"
        assert body == b"Not Found"

    def test_custom_not_found(self, test_server, docroot, split):
        (docroot / "not-found.html").write_bytes(b"<p>nothing here</p>")

        status, headers, body = split(test_server.exchange(b"GET /missing.html HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 404 Not Found"
        assert headers["Content-Type"] == "text/html"
        assert body == b"<p>nothing here</p>"

    @pytest.mark.skipif(sys.getfilesystemencoding() != "utf-8", reason="needs a UTF-8 filesystem")
    def test_unencoded_utf8_path(self, test_server, docroot, split):
        (docroot / "café.html").write_bytes(b"bonjour")

        request = b"GET /" + "café.html".encode("utf-8") + b" HTTP/1.0\r\n\r\n"
        status, _, body = split(test_server.exchange(request))

        assert status == "HTTP/1.0 200 OK"
        assert body == b"bonjour"

    def test_directory_without_index(self, test_server, split):
        status, _, _ = split(test_server.exchange(b"GET /docs/ HTTP/1.0\r\n\r\n"))
        assert status == "HTTP/1.0 404 Not Found"

    def test_head(self, test_server, split):
        status, headers, body = split(test_server.exchange(b"HEAD / HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Length"] == "2"
        assert body == b""

    def test_post_without_content_length(self, test_server, split):
        status, _, body = split(test_server.exchange(b"POST / HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 400 Bad Request"
        assert body == b"Bad Request"

    def test_post_with_body(self, test_server, sample_post_request, split):
        """The body is read and discarded; /submit does not exist."""
        status, _, _ = split(test_server.exchange(sample_post_request))
        assert status == "HTTP/1.0 404 Not Found"

    def test_malformed_request(self, test_server, split):
        status, _, _ = split(test_server.exchange(b"HELLO\r\n\r\n"))
        assert status == "HTTP/1.0 400 Bad Request"

    def test_one_response_then_close(self, test_server):
        """A second request on the same connection gets nothing back."""
        data = test_server.exchange(b"GET / HTTP/1.0\r\n\r\nGET / HTTP/1.0\r\n\r\n")
        assert data.count(b"HTTP/1.0 200 OK") == 1


class TestConcurrency:
    def test_stalled_client_does_not_block_others(self, test_server, split):
        """One silent connection is open while another is served."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0):
            started = time.monotonic()
            status, _, _ = split(test_server.exchange(b"GET / HTTP/1.0\r\n\r\n"))

            assert status == "HTTP/1.0 200 OK"
            assert time.monotonic() - started < 1.5

    def test_parallel_clients(self, test_server, split, cat_jpg):
        results = []
        lock = threading.Lock()

        def fetch():
            data = test_server.exchange(b"GET /images/cat.jpg HTTP/1.0\r\n\r\n")
            with lock:
                results.append(split(data))

        threads = [threading.Thread(target=fetch) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10.0)

        assert len(results) == 20
        assert all(status == "HTTP/1.0 200 OK" for status, _, _ in results)
        assert all(body == cat_jpg for _, _, body in results)

    def test_timeout_closes_stalled_connection(self, test_server, split):
        """Server timeout is 2s: half a request gets a 400 and a close."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=10.0) as sock:
            sock.sendall(b"GET / HTTP/1.0\r\n")
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)

        assert split(b"".join(chunks))[0] == "HTTP/1.0 400 Bad Request"


class TestLifecycle:
    def test_port_zero_binds_a_real_port(self, server_config, start_server):
        server_config.port = 0
        server = start_server(server_config)

        assert server.port != 0
        assert server.server.is_running
        assert server.exchange(b"GET / HTTP/1.0\r\n\r\n").startswith(b"HTTP/1.0 200 OK")

        server.stop()
        assert not server.server.is_running

    def test_custom_index_file(self, server_config, start_server, docroot, split):
        (docroot / "docs" / "home.htm").write_bytes(b"docs home")
        server_config.index_file = "home.htm"
        server = start_server(server_config)

        status, headers, body = split(server.exchange(b"GET /docs HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Type"] == "text/html"
        assert body == b"docs home"

    def test_address_in_use(self, test_server, docroot):
        other = HTTPServer(ServerConfig(
            port=test_server.port, document_root=str(docroot), log_level="WARNING",
        ))

        with pytest.raises(OSError):
            other.run()
