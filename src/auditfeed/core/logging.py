"""Process-level logging setup.

Called once at process entry. Components never configure logging; they
take a logger argument and fall back to ``logging.getLogger("auditfeed.*")``.

- ``json``: one JSON object per line (timestamp, level, logger, message
  and any ``extra`` fields), for log shippers.
- ``console``: :class:`rich.logging.RichHandler` for interactive use.

Example:
    >>> import logging
    >>> from auditfeed.core.logging import setup_logging
    >>> logger = setup_logging("DEBUG", "json")
    >>> logger.level == logging.DEBUG
    True
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "auditfeed"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter including ``extra`` fields.

    Example:
        >>> import logging
        >>> from auditfeed.core.logging import JsonFormatter
        >>> record = logging.LogRecord("auditfeed", logging.INFO, "", 0, "hello", None, None)
        >>> record.record_id = "42"
        >>> out = JsonFormatter().format(record)
        >>> '"message": "hello"' in out and '"record_id": "42"' in out
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str | int = "INFO",
    fmt: str = "json",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure the ``auditfeed`` logger tree.

    Args:
        level: Level name or number.
        fmt: ``json`` or ``console``.
        stream: Output stream (default: stderr).

    Returns:
        The configured root ``auditfeed`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    stream = stream or sys.stderr
    handler: logging.Handler
    if fmt == "console":
        handler = RichHandler(
            console=Console(file=stream),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter())
    handler.setLevel(level)
    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


__all__ = [
    "ROOT_LOGGER",
    "JsonFormatter",
    "setup_logging",
]
