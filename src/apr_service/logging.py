"""structlog setup for the APR service.

All modules log through get_logger(); events are snake_case names with
key-value context. Records from stdlib loggers (uvicorn, apscheduler, httpx)
go through the same ProcessorFormatter, so one stream carries everything.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from uuid import uuid4

import structlog

_MAX_SAFE_INTEGER = 2**53 - 1
_QUIET_LOGGERS = ("apscheduler", "httpx", "httpcore", "web3", "urllib3")


def _stringify_exact_numbers(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Render Decimals and wei-sized ints as strings so JSON consumers keep every digit."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            if abs(value) > _MAX_SAFE_INTEGER:
                event_dict[key] = str(value)
    return event_dict


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog and the root stdlib logger.

    LOG_FORMAT selects the renderer: "json" for production, "console"
    (default) for development.
    """
    log_format = os.environ.get("LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stringify_exact_numbers,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)


@contextmanager
def cycle_context(trigger: str) -> Iterator[str]:
    """Bind a fresh cycle_id and the trigger to every log line inside the block.

    Yields the cycle_id.
    """
    cycle_id = uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(cycle_id=cycle_id, trigger=trigger):
        yield cycle_id
