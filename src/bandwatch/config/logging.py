"""
Structured logging for Bandwatch.

Every event carries the service name and environment; events logged while a
scan cycle runs also carry the cycle number, bound through structlog's
context variables by ``cycle_context``.
"""

import logging
import logging.handlers
import re
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .settings import Settings, get_settings

SERVICE_NAME = "bandwatch"

# Libraries that log every request or job run at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_FACTORS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


class ServiceContext:
    """Processor stamping events with the service name and environment."""

    def __init__(self, environment: str):
        self.environment = environment

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", self.environment)
        return event_dict


def parse_size(value: str) -> int:
    """Bytes in a size such as ``"10MB"``, ``"512KB"`` or ``"4096"``."""
    match = _SIZE_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    return int(number) * _SIZE_FACTORS[(unit or "B").upper()]


def build_processors(settings: Settings) -> List[Processor]:
    """Processor chain; the renderer follows ``settings.log_format``."""
    if settings.log_format == "structured":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    return [
        structlog.contextvars.merge_contextvars,
        ServiceContext(settings.environment),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        renderer,
    ]


def build_file_handler(settings: Settings) -> logging.Handler:
    """Rotating file handler at ``settings.log_file_path``."""
    path = Path(settings.log_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=parse_size(settings.log_max_file_size),
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog through stdlib logging as configured in ``settings``."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file_enabled:
        handlers.append(build_file_handler(settings))
    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def cycle_context(cycle: int) -> Iterator[None]:
    """Tag every event logged inside the block with the scan cycle number."""
    with structlog.contextvars.bound_contextvars(cycle=cycle):
        yield


def log_timing(operation: str, duration_ms: float, **context: Any) -> None:
    get_logger("bandwatch.timing").info(
        "Operation timed",
        operation=operation,
        duration_ms=round(duration_ms, 1),
        **context,
    )
