"""
Structured logging utility for experiment runs.

Provides JSON-formatted logging with context injection, duration fields
and bounded value summaries so observation logs stay queryable.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

DEFAULT_SUMMARY_LIMIT = 120


def summarize_value(value: Any, limit: int = DEFAULT_SUMMARY_LIMIT) -> str:
    """
    Build a bounded repr of a value for log output.

    Experiment results can be arbitrarily large (query results, payloads),
    so only the head of the repr is kept.

    Args:
        value: Any result produced by a control or candidate
        limit: Maximum number of characters to keep

    Returns:
        repr string, truncated with a length marker when too long

    Example:
        >>> summarize_value(42)
        '42'
        >>> summarize_value(list(range(100)), limit=10)
        '[0, 1, 2...(390 chars)'
    """
    if value is None:
        return "None"

    try:
        text = repr(value)
    except Exception as e:  # noqa: BLE001
        return f"<unrepresentable {type(value).__name__}: {e}>"

    if len(text) <= limit:
        return text

    return f"{text[: max(limit - 2, 0)]}...({len(text)} chars)"


class StructuredLogger:
    """
    JSON-formatted logger with context injection and operation timing.

    All log output is JSON format so observations can be parsed downstream.
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__ from calling module)
        """
        self.logger = logging.getLogger(name)

        # Level and output belong to the host application
        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Human-readable message
            operation: Operation name (e.g., "run_experiment", "publish")
            context: Context dict with experiment name, order, etc.
            duration_ms: Operation duration in milliseconds
            error: Error message if applicable

        Returns:
            JSON-formatted log string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "message": message,
        }

        if operation:
            log_entry["operation"] = operation

        if context:
            log_entry["context"] = context

        if duration_ms is not None:
            log_entry["duration_ms"] = round(duration_ms, 2)

        if error:
            log_entry["error"] = error

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def debug(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_log("DEBUG", message, operation, context))

    def info(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log info message."""
        log_json = self._format_log("INFO", message, operation, context, duration_ms)
        self.logger.info(log_json)

    def warning(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        """Log warning message."""
        log_json = self._format_log("WARNING", message, operation, context, error=error)
        self.logger.warning(log_json)

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log error message."""
        log_json = self._format_log("ERROR", message, operation, context, duration_ms, error)
        self.logger.error(log_json)


def get_logger(name: str) -> StructuredLogger:
    """
    Factory function to get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
