"""Logging configuration for the payments service.

Two output modes, selected by LOG_JSON:

  _ContainerFormatter: one human-readable line per record, for local
    development.  WARNING and above get a [file:line] suffix so a rejected
    transition can be traced to the guard that raised it.

  _JsonFormatter: one JSON object per line, for log aggregation.  Request
    context (request_id, method, path, ...) and ledger context (order_id,
    credential_id, idempotency_key) become top-level keys, so a query like

      order_id == "ord_1700000000000_abc123def"

    returns every line the order's lifecycle produced, across requests.

Callers attach ledger context with ``extra=``:

    logger.info("Order paid", extra={"order_id": order.id})
"""

from __future__ import annotations

import json
import logging
import sys


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter for container stdout.

    ISO-8601 timestamp, level, logger name and message, then
    ``req=<id>`` inside a request and [filename:lineno] from WARNING up.
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # .NNN goes before the +0000 offset
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        fmt = self._BASE_FMT
        if getattr(record, "request_id", "-") != "-":
            fmt += "  req=%(request_id)s"
        if record.levelno >= logging.WARNING:
            fmt += self._LOC_SUFFIX
        self._style._fmt = fmt
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON-lines formatter.

    Context fields found on the record are copied to top-level keys.
    """

    # Injected by RequestContextMiddleware.
    _REQUEST_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
    )

    # Attached by the services through ``extra=``.
    _LEDGER_FIELDS = (
        "order_id",
        "credential_id",
        "idempotency_key",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._REQUEST_FIELDS + self._LEDGER_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger.

    Args:
        level_name: debug/info/warning/error (unknown names fall back to info)
        json_format: emit JSON lines instead of the human-readable format
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
