"""
=============================================================================
PROBE CLIENT
=============================================================================

A small command-line client for poking at a running server.

    statichttpd-probe --target localhost:8080 --test basic-get

=============================================================================
PROBES
=============================================================================

    ┌──────────────┬───────────────────────────────────────────────────────┐
    │ Probe        │ What it does                                          │
    ├──────────────┼───────────────────────────────────────────────────────┤
    │ basic-get    │ GET / with a User-Agent; print status, headers, body  │
    │ basic-head   │ HEAD / over a raw socket; flag any body bytes         │
    │ basic-put    │ PUT a small JSON document; print the reply            │
    │ timeout      │ Connect, wait, then send a bare GET line; print the   │
    │  (or slow)   │ raw reply                                             │
    └──────────────┴───────────────────────────────────────────────────────┘

basic-get and basic-put go through httpx, like any real client would.
basic-head and timeout talk to the socket directly: an HTTP library would
either throw away body bytes after a HEAD response or never let the client
stall between connect and send.

Every probe returns a ProbeResult; main() is the only place that prints.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import argparse
import json
import logging
import socket
import sys
import time

import httpx

from .http.response import format_http_date


logger = logging.getLogger(__name__)

USER_AGENT = "statichttpd-probe/1.0"

PROBES = ("basic-get", "basic-head", "basic-put", "timeout", "slow")

# Alternate names accepted by --test
PROBE_ALIASES = {"slow": "timeout"}


@dataclass
class ProbeResult:
    """
    Outcome of one probe.

    Attributes:
        probe:          Probe name ("basic-get", ...)
        status_code:    Status from the status line
        headers:        Response headers as received
        body:           Response body bytes
        content_length: Parsed Content-Length header, None when absent
        verdict:        One-line judgement (HEAD probe), "" otherwise
        raw:            Bytes exactly as read off the socket (raw probes)
    """

    probe: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    content_length: Optional[int] = None
    verdict: str = ""
    raw: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


# =============================================================================
# TARGET
# =============================================================================

def parse_target(target: str) -> tuple[str, int]:
    """
    Split "host:port" into its parts.

        >>> parse_target("localhost:8080")
        ('localhost', 8080)
        >>> parse_target("example.com")
        ('example.com', 80)

    Raises:
        ValueError: The port is not a number.
    """
    host, sep, port = target.rpartition(":")
    if not sep:
        return target, 80
    return host, int(port)


def _content_length(headers) -> Optional[int]:
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# =============================================================================
# HTTP PROBES (httpx)
# =============================================================================

def probe_get(base_url: str, timeout: float = 10.0) -> ProbeResult:
    """
    GET / with the probe's User-Agent.

    The extra header carries colons in its value, which the server must keep
    (a header splits on its FIRST colon only).
    """
    headers = {
        "User-Agent": USER_AGENT,
        "X-Probe-Check": "colon:in:value",
    }
    with httpx.Client(timeout=timeout) as client:
        response = client.get(f"{base_url}/", headers=headers)

    return ProbeResult(
        probe="basic-get",
        status_code=response.status_code,
        headers=dict(response.headers),
        body=response.content,
        content_length=_content_length(response.headers),
    )


def probe_put(base_url: str, timeout: float = 10.0) -> ProbeResult:
    """PUT a small JSON document to /."""
    payload = {
        "id": 1,
        "test": "data",
        "date": format_http_date(datetime.now(timezone.utc)),
    }
    with httpx.Client(timeout=timeout) as client:
        response = client.put(
            f"{base_url}/",
            content=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
        )

    return ProbeResult(
        probe="basic-put",
        status_code=response.status_code,
        headers=dict(response.headers),
        body=response.content,
        content_length=_content_length(response.headers),
    )


# =============================================================================
# RAW SOCKET PROBES
# =============================================================================

def raw_exchange(
    host: str,
    port: int,
    request: bytes,
    delay: float = 0.0,
    timeout: float = 10.0,
) -> bytes:
    """
    Connect, optionally wait, send `request`, read until the server closes.

    Raises:
        OSError: Connect or I/O failure (timeouts included).
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        if delay > 0:
            time.sleep(delay)
        sock.sendall(request)

        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)

    return b"".join(chunks)


def parse_raw_response(data: bytes) -> tuple[int, dict[str, str], bytes]:
    """
    Split raw response bytes into (status code, headers, body).

    Header names are lower-cased. Everything after the blank line is the
    body, however much of it the server sent.

    Raises:
        ValueError: No complete head, or a malformed status line.
    """
    head, sep, body = data.partition(b"\r\n\r\n")
    if not sep:
        raise ValueError(f"Incomplete response: {data[:80]!r}")

    lines = head.decode("iso-8859-1").split("\r\n")
    parts = lines[0].split(" ", 2)
    if len(parts) < 2 or not parts[1].isdigit():
        raise ValueError(f"Malformed status line: {lines[0]!r}")

    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()

    return int(parts[1]), headers, body


def judge_head(content_length: Optional[int], body: bytes) -> str:
    """
    Verdict on a HEAD response.

    The body must be empty while Content-Length still describes the entity.
    """
    if body and content_length is not None and len(body) == content_length:
        return "HEAD response carried the full entity body"
    if body:
        return f"HEAD response carried {len(body)} body bytes"
    if content_length == 0:
        return "Content-Length is 0; it should describe the entity"
    return "HEAD response is correct (headers only)"


def probe_head(host: str, port: int, timeout: float = 10.0) -> ProbeResult:
    request = (
        f"HEAD / HTTP/1.0\r\n"
        f"User-Agent: {USER_AGENT}\r\n"
        f"\r\n"
    ).encode("ascii")

    raw = raw_exchange(host, port, request, timeout=timeout)
    status, headers, body = parse_raw_response(raw)
    content_length = _content_length(headers)

    return ProbeResult(
        probe="basic-head",
        status_code=status,
        headers=headers,
        body=body,
        content_length=content_length,
        verdict=judge_head(content_length, body),
        raw=raw,
    )


def probe_slow(
    host: str,
    port: int,
    delay: float = 10.0,
    timeout: Optional[float] = None,
) -> ProbeResult:
    """
    Connect, stay silent for `delay` seconds, then send a minimal request.

    With a delay longer than the server's timeout the server is expected to
    give up on the connection; shorter, it must answer normally.
    """
    if timeout is None:
        timeout = delay + 10.0

    raw = raw_exchange(host, port, b"GET / HTTP/1.0\r\n\r\n", delay=delay, timeout=timeout)
    if not raw:
        return ProbeResult(probe="timeout", status_code=0, verdict="Server closed without a response")

    status, headers, body = parse_raw_response(raw)
    return ProbeResult(
        probe="timeout",
        status_code=status,
        headers=headers,
        body=body,
        content_length=_content_length(headers),
        raw=raw,
    )


# =============================================================================
# CLI
# =============================================================================

def run_probe(name: str, target: str, schema: str = "http", delay: float = 10.0) -> ProbeResult:
    """Run the probe called `name` against `target` ("host:port")."""
    name = PROBE_ALIASES.get(name, name)
    host, port = parse_target(target)
    base_url = f"{schema}://{target}"

    if name == "basic-get":
        return probe_get(base_url)
    if name == "basic-head":
        return probe_head(host, port)
    if name == "basic-put":
        return probe_put(base_url)
    if name == "timeout":
        return probe_slow(host, port, delay=delay)
    raise ValueError(f"Unknown probe: {name}")


def report(result: ProbeResult) -> str:
    lines = [f"Status code: {result.status_code}"]
    if result.verdict:
        lines.append(result.verdict)
    lines.append(f"Content-Length: {result.content_length}")
    lines.append("Headers:")
    for name, value in result.headers.items():
        lines.append(f"  {name}: {value}")
    if result.body:
        lines.append("Body:")
        lines.append(result.body.decode("utf-8", errors="replace"))
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="statichttpd-probe",
        description="Probe a running statichttpd server",
    )
    parser.add_argument("--target", default="localhost:80", help="host:port (default: localhost:80)")
    parser.add_argument("--schema", default="http", help="URL scheme for the HTTP probes (default: http)")
    parser.add_argument("--test", choices=PROBES, default="basic-get", help="Probe to run (default: basic-get)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Seconds the timeout probe waits before sending (default: 10)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print(f"Selected probe: {args.test} against {args.target}")
    try:
        result = run_probe(args.test, args.target, schema=args.schema, delay=args.timeout)
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.error(f"Probe {args.test} failed: {e}")
        sys.exit(1)

    print(report(result))


if __name__ == "__main__":
    main()
