"""
Unit tests for the TCP listener.
"""

import socket
import threading

from statichttpd.config import ServerConfig
from statichttpd.core import Connection, SocketServer


def close_connection(conn: Connection):
    with conn:
        conn.send_response(b"bye")


class TestSocketServer:
    def test_lifecycle(self):
        server = SocketServer(ServerConfig(port=0, timeout=1.0))
        thread = threading.Thread(target=server.start, args=(close_connection,), daemon=True)
        thread.start()

        assert server.wait_until_ready(5.0)
        assert server.is_running

        host, port = server.address
        assert isinstance(port, int) and port != 0

        with socket.create_connection((host, port), timeout=5.0) as sock:
            assert sock.recv(16) == b"bye"

        server.shutdown()
        server.shutdown()  # repeated shutdown is harmless
        thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert not server.is_running
        assert not server.wait_until_ready(0)

    def test_address_before_start(self):
        server = SocketServer(ServerConfig(host="0.0.0.0", port=9999))
        assert server.address == ("0.0.0.0", 9999)
