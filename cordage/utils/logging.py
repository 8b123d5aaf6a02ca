"""
Structured logging built on structlog.

Usage:
    from cordage.utils.logging import get_logger

    logger = get_logger(__name__)
    logger.debug("tool_started", tool_name="search", call_id="cdg-1")
"""

import logging
import sys
from typing import Any

import structlog

from cordage.config import settings

_REDACTED = "***REDACTED***"

_SENSITIVE_MARKERS = ("api_key", "apikey", "password", "secret", "authorization", "token")

# Token counters are usage metadata, not credentials.
_SAFE_TOKEN_KEYS = {"tokens", "total_tokens", "input_tokens", "output_tokens", "prompt_tokens"}

_configured = False


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    if lowered in _SAFE_TOKEN_KEYS or lowered.endswith("_tokens"):
        return False
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def filter_sensitive_data(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor that redacts credential-like fields."""
    for key in list(event_dict.keys()):
        if key != "event" and _is_sensitive(key):
            event_dict[key] = _REDACTED
    return event_dict


def configure_logging(log_level: str | None = None, json_format: bool | None = None) -> None:
    """
    Configure structlog for the process.

    Args:
        log_level: Level name, defaults to settings.log_level. Unknown names fall back to INFO.
        json_format: Render JSON lines instead of console output, defaults to settings.log_json.
    """
    global _configured

    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO

    use_json = settings.log_json if json_format is None else json_format
    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            filter_sensitive_data,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger bound to ``name``."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)


__all__ = ["configure_logging", "filter_sensitive_data", "get_logger"]
