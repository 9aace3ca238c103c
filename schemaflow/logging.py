"""Structured Logging for schemaflow

structlog setup with:
- Colored, human-readable dev output
- JSON structured output for services
- Context propagation (bind_context / clear_context)
- Domain loggers namespaced under ``schemaflow.<domain>``

The library never configures logging on import; applications call
``configure_logging`` once at startup.
"""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor

from schemaflow import __version__


def _add_library_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that adds library metadata."""
    event_dict.setdefault("library", "schemaflow")
    event_dict.setdefault("version", __version__)
    return event_dict


def _truncate_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that shortens long string values (validated payloads can be large)."""
    limit = 500
    for key, value in event_dict.items():
        if isinstance(value, str) and len(value) > limit:
            event_dict[key] = value[:limit] + "..."
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both dev and JSON configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_library_info,
        _truncate_values,
    ]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); settings LOG_LEVEL if omitted
        json_logs: JSON output if True, colored console output if False; settings LOG_JSON if omitted
    """
    from schemaflow.config import get_settings

    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    library_logger = logging.getLogger("schemaflow")
    library_logger.handlers = [handler]
    library_logger.setLevel(log_level)
    library_logger.propagate = False


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to the current logging context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class LoggerRegistry:
    """Registry of loggers for the engine's domains (pipeline, registry, resolver)."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        """Get or create a logger for the given domain."""
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"schemaflow.{name}")
        return cls._loggers[name]
