"""Logging configuration for the OAuth client demo.

Output goes to stdout in one of two shapes:

  text (default)   2024-05-01T12:00:00.123+0000 INFO  app.api.oauth [abc123]  OAUTH ...
  LOG_JSON=true    {"timestamp": ..., "level": "INFO", "request_id": "abc123", ...}

Client secret, authorization codes and tokens are never passed to a
logger.  As a backstop, setup_logging() can be handed known secret values
(the client secret) and the handler masks them in every line it emits.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable

REDACTED = "***"

# Attributes that RequestContextMiddleware and the callback route attach
# via ``extra=``.
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "flow_step",
)

_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx")


class _ContainerFormatter(logging.Formatter):
    """Single-line text; WARNING and above get a [file:line] suffix."""

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s]  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z", defaults={"request_id": "-"})

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{int(record.msecs):03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        with_location = record.levelno >= logging.WARNING
        self._style._fmt = self._BASE_FMT + (self._LOC_SUFFIX if with_location else "")
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, context fields as top-level keys."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _RedactingFormatter(logging.Formatter):
    """Wraps another formatter and masks known secret values in its output."""

    def __init__(self, inner: logging.Formatter, secrets: Iterable[str]) -> None:
        super().__init__()
        self._inner = inner
        # Longest first so a secret containing another is masked whole
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = self._inner.format(record)
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text


def setup_logging(
    level_name: str,
    *,
    json_format: bool = False,
    redact: Iterable[str] = (),
    filters: Iterable[logging.Filter] = (),
) -> None:
    """Configure the root logger to write to stdout.

    Args:
        level_name: debug/info/warning/error; anything else means info.
        json_format: emit JSON lines instead of text (LOG_JSON).
        redact: literal values to mask in every emitted line.
        filters: attached to the stdout handler, e.g. the request-ID stamp.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    formatter: logging.Formatter = (
        _JsonFormatter() if json_format else _ContainerFormatter()
    )
    secrets = tuple(redact)
    if secrets:
        formatter = _RedactingFormatter(formatter, secrets)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    for log_filter in filters:
        handler.addFilter(log_filter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs every request URL at INFO
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
