"""Tests for auditfeed.core.logging."""

from __future__ import annotations

import io
import json
import logging

from rich.logging import RichHandler

from auditfeed.core.logging import JsonFormatter, setup_logging


class TestSetupLogging:
    """setup_logging tests."""

    def test_json_output(self) -> None:
        stream = io.StringIO()
        logger = setup_logging("INFO", "json", stream=stream)
        logging.getLogger("auditfeed.driver").info("Export complete", extra={"pages": 3})

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "Export complete"
        assert entry["level"] == "info"
        assert entry["logger"] == "auditfeed.driver"
        assert entry["pages"] == 3
        assert entry["timestamp"].endswith("Z")
        assert logger.propagate is False

    def test_level_filters(self) -> None:
        stream = io.StringIO()
        setup_logging("WARNING", "json", stream=stream)
        logging.getLogger("auditfeed.driver").info("hidden")
        assert stream.getvalue() == ""

    def test_console_uses_rich(self) -> None:
        logger = setup_logging("INFO", "console", stream=io.StringIO())
        assert isinstance(logger.handlers[0], RichHandler)

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logging("INFO", "json", stream=io.StringIO())
        logger = setup_logging("INFO", "json", stream=io.StringIO())
        assert len(logger.handlers) == 1

    def test_unknown_level_defaults_to_info(self) -> None:
        logger = setup_logging("chatty", "json", stream=io.StringIO())
        assert logger.level == logging.INFO


class TestJsonFormatter:
    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            record = logging.LogRecord(
                "auditfeed", logging.ERROR, "", 0, "failed", None, sys.exc_info()
            )
        entry = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]
