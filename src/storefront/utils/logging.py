"""Logging setup for the storefront.

structlog renders events through stdlib logging. Production and staging emit
one JSON object per line; every other environment gets the colored console
renderer with rich tracebacks. A rotating file handler is added only when
``LOG_DIR`` (or ``log_dir``) is set.
"""

import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
_JSON_ENVIRONMENTS = ("production", "staging")
_QUIET_LOGGERS = ("protean", "asyncio", "sqlalchemy.engine")
_MAX_BYTES = 10 * 1024 * 1024


def current_environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def log_level_for(environment: str) -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL") or _LEVELS.get(environment, "INFO")


def _handlers(level, log_dir, prefix):
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path / f"{prefix}.log", maxBytes=_MAX_BYTES, backupCount=5, encoding="utf-8"
            )
        )

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _renderer(environment):
    if environment in _JSON_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
    )


def configure_logging(level: str | None = None, log_dir: str | None = None, prefix: str = "storefront") -> None:
    environment = current_environment()
    level = level or log_level_for(environment)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(level, log_dir or os.getenv("LOG_DIR"), prefix)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(environment),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def log_context(**fields):
    """Tag every event logged inside the block with ``fields``.

    Used around a cart or checkout operation so ledger and gateway events
    carry the cart or checkout id without passing it down.
    """
    with structlog.contextvars.bound_contextvars(**{k: str(v) for k, v in fields.items() if v is not None}):
        yield
