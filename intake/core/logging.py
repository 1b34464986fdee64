"""structlog setup for the request tracker.

Application code logs event-style keys through structlog; uvicorn and
SQLAlchemy records go through the same formatter via the stdlib bridge.
Each entry carries the service name and, inside an HTTP request, the
``X-Request-ID`` correlation id. Service code binds ``request_id`` with
``request_log_context`` so every line logged while a request document is
being read or written names the document.
"""

import logging
import logging.config
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from asgi_correlation_id.context import correlation_id

SERVICE_NAME = "intake-backend"


def add_correlation_id(logger, method, event_dict):
    """Copy the asgi-correlation-id context var into the entry."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service_name(logger, method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


@contextmanager
def request_log_context(request_id: str) -> Iterator[None]:
    """Bind ``request_id`` to every log entry emitted inside the block."""
    with structlog.contextvars.bound_contextvars(request_id=request_id):
        yield


def configure_structlog(log_level: str = "INFO", json_logs: bool = True, sql_echo: bool = False) -> None:
    """Configure structlog and route stdlib logging through it.

    Must run before the first ``structlog.get_logger`` call is used, since
    loggers cache their processor chain.

    Args:
        log_level: root level name, e.g. "INFO"
        json_logs: JSON lines when True, colored console output otherwise
        sql_echo: let SQLAlchemy statement logging through at INFO
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level.upper()},
        "loggers": {
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "INFO" if sql_echo else "WARNING"},
            "aiosqlite": {"level": "WARNING"},
        },
    })

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
