"""
Logging Configuration - Structured logging with crawl context
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional
from contextvars import ContextVar

# Context variables for crawl tracking
current_channel_id: ContextVar[Optional[str]] = ContextVar('current_channel_id', default=None)
current_video_id: ContextVar[Optional[str]] = ContextVar('current_video_id', default=None)

# CRAWLER_LOG_LEVEL style names are accepted alongside stdlib names
_LEVEL_ALIASES = {
    "WARN": "WARNING",
    "SILENT": "CRITICAL",
}


class StructuredFormatter(logging.Formatter):
    """
    JSON-structured log formatter with crawl context.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        channel_id = current_channel_id.get()
        video_id = current_video_id.get()

        if channel_id:
            log_data["channel_id"] = channel_id
        if video_id:
            log_data["video_id"] = video_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def resolve_level(level: str) -> int:
    name = (level or "INFO").strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str = "INFO", structured: bool = True, stream=None):
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARN/WARNING, ERROR, SILENT)
        structured: Use JSON format (True) or human-readable (False)
        stream: Output stream, stdout by default
    """
    numeric_level = resolve_level(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)

    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        ))

    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


class CrawlContext:
    """
    Context manager for setting crawl context in logs.

    Usage:
        with CrawlContext(channel_id="UC...", video_id="xyz"):
            logger.info("Crawling...")  # Will include channel_id and video_id
    """
    def __init__(self, channel_id: Optional[str] = None, video_id: Optional[str] = None):
        self.channel_id = channel_id
        self.video_id = video_id
        self._tokens = []

    def __enter__(self):
        if self.channel_id:
            self._tokens.append((current_channel_id, current_channel_id.set(self.channel_id)))
        if self.video_id:
            self._tokens.append((current_video_id, current_video_id.set(self.video_id)))
        return self

    def __exit__(self, *args):
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
