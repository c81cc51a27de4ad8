import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog


def _json_logs_enabled() -> bool:
    if os.getenv("JSON_LOGS") is not None:
        return os.getenv("JSON_LOGS", "false").lower() == "true"
    return os.getenv("LOG_FORMAT", "text").lower() == "json"


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog on top of stdlib logging.

    Service events are logged as ``event`` names with keyword context
    (ids, quantities, codes); the request middleware binds ``request_id``
    through contextvars so every event of a request carries it.
    """

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs if json_logs is not None else _json_logs_enabled():
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_file = Path("logs/procuretrack.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
    )
