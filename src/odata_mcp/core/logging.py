"""Structured logging for the OData MCP router.

Log records are rendered as one JSON object per line carrying a timestamp,
level, the emitting component (logger name), the message, and optional
structured metadata such as the namespace or tool name involved.
"""

from typing import Literal, Optional, Any
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
import json
import logging


LogLevel = Literal['debug', 'info', 'warn', 'error']

_LEVEL_NAMES: dict[int, LogLevel] = {
    logging.DEBUG: 'debug',
    logging.INFO: 'info',
    logging.WARNING: 'warn',
    logging.ERROR: 'error',
    logging.CRITICAL: 'error',
}


@dataclass
class LogEntry:
    """Structured log entry with JSON serialization.

    Attributes:
        level: Log level (debug, info, warn, error)
        component: Component name that generated the log
        message: Human-readable log message
        metadata: Optional additional structured data
        error: Formatted exception text, when the record carried one
        timestamp: ISO 8601 formatted timestamp (auto-generated if not provided)
    """
    level: LogLevel
    component: str
    message: str
    metadata: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        """Convert log entry to a JSON string, dropping empty optional fields."""
        payload = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(payload, default=str)


class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as LogEntry JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_NAMES.get(record.levelno, 'info')

        metadata = getattr(record, 'metadata', None)

        error = None
        if record.exc_info:
            error = self.formatException(record.exc_info)

        entry = LogEntry(
            level=level,
            component=record.name,
            message=record.getMessage(),
            metadata=metadata,
            error=error,
            timestamp=datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        )
        return entry.to_json()


def setup_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging on the root logger.

    Existing root handlers are replaced so repeated calls do not duplicate
    output. Handlers write to stderr, which keeps stdout free for the stdio
    MCP transport.

    Args:
        level: Python logging level (default: logging.INFO)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter())

    root_logger.addHandler(console_handler)


def log_with_metadata(
    logger: logging.Logger,
    level: int,
    message: str,
    metadata: Optional[dict[str, Any]] = None
) -> None:
    """Log a message with structured metadata attached to the record.

    Args:
        logger: Logger instance to use
        level: Python logging level
        message: Log message
        metadata: Optional structured metadata dictionary
    """
    extra = {'metadata': metadata} if metadata is not None else {}
    logger.log(level, message, extra=extra)
