"""Structured logging setup for the Breezeline API."""

import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog

# Chatty third-party loggers kept at WARNING unless DEBUG is requested
_NOISY_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "uvicorn.access", "multipart")

SERVICE_NAME = "breezeline-api"


def _add_service(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and route stdlib logging through the same stream.

    Args:
        level: Log level name; falls back to LOG_LEVEL then INFO
        json_logs: Force JSON output; falls back to JSON_LOGS env flag
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    # LOG_FILE wins; otherwise write to logs/ only when that directory exists
    log_file = Path(os.getenv("LOG_FILE", "logs/breezeline.log"))
    if os.getenv("LOG_FILE") or log_file.parent.exists():
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", handlers=handlers, level=level_name)

    if level_name != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
