"""
Structured logging for metasearch.

structlog renders every event (JSON for files and pipelines, colored console
output for the CLI) and hands it to stdlib logging, which owns the handlers.
Each dispatch binds a search_id so the log lines of all engine tasks of one
search can be correlated.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

from metasearch.utils.config import Settings, get_project_root, get_settings

# Libraries that log every upstream request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def _default_log_file(settings: Settings) -> Path | None:
    """Daily log file under general.logs_dir, if file logging is enabled."""
    if not settings.general.log_to_file:
        return None

    log_dir = get_project_root() / settings.general.logs_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"metasearch_{datetime.now().strftime('%Y%m%d')}.log"


def _build_processors(json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    return processors


def configure_logging(
    log_level: str | None = None,
    log_file: str | Path | None = None,
    json_format: bool = True,
) -> None:
    """Configure structured logging.

    Logs always go to stderr, so stdout stays free for CLI output.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Uses settings if None.
        log_file: Additional log file. Uses general.log_to_file / logs_dir if None.
        json_format: JSON lines (True) or console format (False).
    """
    settings = get_settings()

    level_name = (log_level or settings.general.log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    if log_file is None:
        log_file = _default_log_file(settings)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=_build_processors(json_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance (usually get_logger(__name__))."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log calls in this task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove context variables."""
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Scoped logging context.

    On exit the previous values are restored, so nested scopes binding the
    same key behave as expected.

    Example:
        with LogContext(search_id="3f2a9c"):
            logger.info("Dispatching search")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}
