"""
=============================================================================
ACCESS LOG
=============================================================================

One line per connection, written after the response went out.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (common-log style, default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [18/Oct/2026:10:55:36 +0000] "GET /" 200 2 0.41ms     │
    │ ─────────────────────────────────────────────────────────────────── │
    │ IP          Timestamp          Method/Path  Status Size Duration     │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"connection_id": "a1b2c3d4", "method": "GET", "path": "/",         │
    │  "client_ip": "127.0.0.1", "user_agent": "curl/8.0",                │
    │  "status_code": "200", "content_length": 2, "duration_ms": 0.41,    │
    │  "timestamp": "18/Oct/2026:10:55:36 +0000"}                         │
    └─────────────────────────────────────────────────────────────────────┘

A request that never parsed is still logged, with "-" for the method and
path, so a flood of garbage connections is visible.

=============================================================================
LOGGER
=============================================================================

Lines go to the "statichttpd.access" logger, separate from the server's
module loggers, so they can be routed on their own:

    logging.getLogger("statichttpd.access").addHandler(file_handler)

=============================================================================
"""

from dataclasses import dataclass, asdict
from typing import Optional
import json
import logging
import time


logger = logging.getLogger("statichttpd.access")


@dataclass(frozen=True)
class AccessLog:
    """
    Structured access log entry.

    connection_id:  Short id shared with the server's debug lines
    method:         Request method, "-" if the request never parsed
    path:           Raw request path, "-" if the request never parsed
    client_ip:      Peer address
    user_agent:     User-Agent header, "-" when absent
    status_code:    Status token that was sent ("200", "404", ...)
    content_length: Body bytes described by the response
    duration_ms:    Accept-to-response time
    timestamp:      When the entry was made
    """

    connection_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: str
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def format_timestamp(now: Optional[float] = None) -> str:
    """Common-log timestamp: 18/Oct/2026:10:55:36 +0000 (local time)."""
    return time.strftime("%d/%b/%Y:%H:%M:%S %z", time.localtime(now))


class AccessLogger:
    """
    Writes AccessLog entries in the configured format.

        access = AccessLogger(log_format="json")
        access.log(entry)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def render(self, entry: AccessLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(self, entry: AccessLog) -> None:
        if logger.isEnabledFor(self.log_level):
            logger.log(self.log_level, self.render(entry))
