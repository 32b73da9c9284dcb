"""Structured logging (structlog): console khi APP_ENV=local, JSON ở môi trường khác."""
import logging
import sys

import structlog

from autoblog.config import get_settings


def configure_logging() -> None:
    """Cấu hình structlog + stdlib logging (uvicorn, sqlalchemy) cùng level."""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.app_env == "local":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # JSON: traceback thành chuỗi trong field "exception".
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound logger theo tên module."""
    return structlog.get_logger(name)
