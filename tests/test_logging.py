"""
Structured Logging Tests
"""

import logging

import structlog

from schemaflow import __version__
from schemaflow.logging import (
    LoggerRegistry,
    _add_library_info,
    _truncate_values,
    bind_context,
    clear_context,
    configure_logging,
)


class TestProcessors:

    def test_library_info(self):
        event = _add_library_info(None, "info", {"event": "x"})
        assert event["library"] == "schemaflow"
        assert event["version"] == __version__

    def test_truncates_long_strings(self):
        event = _truncate_values(None, "info", {"event": "x", "payload": "a" * 600, "count": 3})
        assert event["payload"] == "a" * 500 + "..."
        assert event["count"] == 3


class TestLoggers:

    def test_registry_caches_domain_loggers(self):
        assert LoggerRegistry.get("pipeline") is LoggerRegistry.get("pipeline")

    def test_context_binding(self):
        bind_context(request_id="abc")
        assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_configure_installs_library_handler(self):
        configure_logging(level="WARNING", json_logs=True)
        library_logger = logging.getLogger("schemaflow")
        assert library_logger.level == logging.WARNING
        assert len(library_logger.handlers) == 1
        assert library_logger.propagate is False
