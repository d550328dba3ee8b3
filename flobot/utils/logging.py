"""structlog wiring for flobot: console or JSON output, with credentials masked."""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from flobot.config import Settings

_MASK = "***REDACTED***"

# Applied in order. The keyed pattern swallows an optional "Bearer" so the
# token after "Authorization: Bearer" is consumed along with it.
_SENSITIVE_PATTERNS = [
    re.compile(
        r"(token|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?(?:Bearer\s+)?[\w\-\.]+",
        re.IGNORECASE,
    ),
    re.compile(r"(Bearer)\s+[\w\-\.]+"),
]

# Client libraries that chat on every websocket frame or HTTP call.
_NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp", "aiosqlite", "asyncio")


def _redact(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if not isinstance(value, str):
            continue
        for pattern in _SENSITIVE_PATTERNS:
            value = pattern.sub(rf"\1={_MASK}", value)
        event_dict[key] = value
    return event_dict


def _stderr_handler(json_output: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    return handler


def setup_logging(settings: Settings) -> None:
    """Configure logging from ``settings.log_level`` and ``settings.log_json``.

    The bot's own loggers follow the configured level. The client libraries
    in ``_NOISY_LOGGERS`` never go below WARNING.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            _redact,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(settings.log_json))
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
