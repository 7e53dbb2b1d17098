# utils/logging.py

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "kubernetes")


def get_common_processors() -> list[Processor]:
    """Processors shared by structlog events and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(level: str = "INFO") -> None:
    """
    Configure JSON logging on stdout.

    Every record is rendered as one JSON object with `time`, `level`, `msg`
    and the event's keyword fields. Records from third-party libraries
    going through stdlib logging share the same handler and format.
    """

    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=get_common_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.EventRenamer("msg"),
            structlog.processors.JSONRenderer(),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *get_common_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    get_logger(__name__).debug("logging configured", log_level=level)


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger instance for the specified name."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def error_fields(error: BaseException) -> dict[str, str]:
    """Log fields describing an error."""
    return {"error": str(error), "error_kind": type(error).__name__}
