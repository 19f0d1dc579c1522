"""
Structured logging for the schema provisioner.

Every provisioning step emits one timestamped event (``bundle.packaged``,
``schema.executing``, ``probe.unexpected_error`` ...). Output is a colored
console line on a TTY and a JSON line everywhere else, so the same events
read well in a terminal and in a log aggregator.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None,
                          service="schema-provisioner")
            ↓
        structlog processor chain:
          1. TimeStamper(fmt="iso")
          2. merge_contextvars (bundle, namespace from LogContext)
          3. add_log_level
          4. add_service_metadata
          5. JSONRenderer (or ConsoleRenderer on a TTY)

        logger = get_logger(__name__)
        logger.info("schema.executing", statement="CREATE TABLE ...")

Examples:
    >>> from provisioner.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="schema-provisioner")
    >>> logger = get_logger(__name__)
    >>> logger.info("bundle.packaged", entries=3, size_bytes=2048)

Tags:
    logging, structlog, observability, provisioning

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "schema-provisioner"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    return structlog.PrintLogger(sys.stderr)


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "schema-provisioner",
    add_timestamp: bool = True,
    *,
    to_stderr: bool = False,
    cache_loggers: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
        to_stderr: Write log lines to stderr instead of stdout
        cache_loggers: Cache bound loggers on first use; turn off when the
            output stream is swapped at runtime (CLI runners, tests)
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    stream = sys.stderr if to_stderr else sys.stdout
    if json_format is None:
        json_format = not stream.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=_stderr_logger_factory if to_stderr else structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``).

    The name is bound as the ``logger_name`` field of every event.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(bundle="procs.jar", namespace="com.example"):
            logger.info("schema.upload_started")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
