import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Masked before rendering.
SENSITIVE_KEYS = frozenset({"token", "authorization", "password", "current_password", "new_password"})


def redact_credentials(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def _renderer(log_format: str) -> list[Processor]:
    if log_format == "auto":
        log_format = "console" if sys.stderr.isatty() else "json"
    if log_format == "console":
        return [structlog.dev.ConsoleRenderer()]
    return [structlog.processors.JSONRenderer()]


def setup_logging(level: int | str = logging.INFO, *, log_format: str = "auto") -> None:
    """Routes structlog through stdlib logging at `level`."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            redact_credentials,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            *_renderer(log_format),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
