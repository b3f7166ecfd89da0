"""Logging setup for the store process.

stdlib logging owns handlers and levels; structlog renders keyword events
on top of it. Panel passwords and API keys pass through a lot of log calls
in provisioning code, so ``redact_secrets`` masks them before any renderer
sees the event.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

SECRET_KEYS = frozenset({"password", "api_key", "admin_api_key", "client_api_key", "token", "authorization"})
REDACTED = "***"

LOG_FILE = "hoststore.log"
ERROR_LOG_FILE = "hoststore_error.log"
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

# Chatty at INFO; only their warnings are interesting
_QUIET_LOGGERS = ("protean", "httpx", "httpcore", "asyncio", "uvicorn.access")


def get_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """LOG_LEVEL wins; otherwise the level follows the environment."""
    level_map = {
        "production": "INFO",
        "staging": "INFO",
        "development": "DEBUG",
        "test": "WARNING",
    }
    return os.getenv("LOG_LEVEL", level_map.get(get_environment(), "INFO"))


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor masking credential values at the top level of an event."""
    for key in [key for key in event_dict if key.lower() in SECRET_KEYS]:
        event_dict[key] = REDACTED
    return event_dict


def _rotating(path: Path) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )


def build_handlers(log_level: str, log_dir: str | None = None) -> list[logging.Handler]:
    """Console handler, plus a rotating full log and an errors-only log when ``log_dir`` is set."""
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    handlers = [console]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        full = _rotating(path / LOG_FILE)
        full.setLevel(log_level)
        errors = _rotating(path / ERROR_LOG_FILE)
        errors.setLevel(logging.ERROR)
        handlers += [full, errors]
    return handlers


def build_processors(json_logs: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
            )
        )
    return processors


def configure_logging(log_dir: str | None = None, json_logs: bool | None = None) -> None:
    """Configure stdlib handlers and structlog once per process.

    JSON output is the default in production and staging, console output
    everywhere else.
    """
    log_level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.handlers = build_handlers(log_level, log_dir)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if json_logs is None:
        json_logs = get_environment() in ("production", "staging")

    structlog.configure(
        processors=build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_context(**kwargs: Any) -> None:
    """Bind values (sender, command) onto every log line of the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
