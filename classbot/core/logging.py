"""structlog setup for the webhook receiver and CLI.

Every classbot module logs dotted event names (``watchdog.issue_created``)
through structlog; stdlib records from uvicorn, SQLAlchemy and httpx are
rendered by the same formatter.
"""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

import structlog

# Event-dict keys that may carry GitHub App credentials or the webhook secret.
REDACTED_KEYS = frozenset({"authorization", "token", "installation_token", "secret"})


def redact_credentials(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging() -> None:
    """Configure structlog and stdlib logging from the environment.

    ``CLASSBOT_LOG_LEVEL`` (default INFO) applies to classbot loggers,
    ``CLASSBOT_GITHUB_LOG_LEVEL`` (default WARNING) to the httpx traffic with
    the GitHub API and ``CLASSBOT_LOG_FORMAT`` picks ``console`` or ``json``.
    """
    log_level = os.environ.get("CLASSBOT_LOG_LEVEL", "INFO").upper()
    github_level = os.environ.get("CLASSBOT_GITHUB_LOG_LEVEL", "WARNING").upper()
    log_format = os.environ.get("CLASSBOT_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["default"], "level": "WARNING"},
            "loggers": {
                "classbot": {"level": log_level},
                "httpx": {"level": github_level},
                "httpcore": {"level": github_level},
                "uvicorn.error": {"level": "INFO"},
                "uvicorn.access": {"level": "WARNING"},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
