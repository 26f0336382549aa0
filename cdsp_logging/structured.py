"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

Structured logger emitting one JSON object per record.

Design:
- JSON output (compatible with log aggregators)
- Wraps Python's logging module (handlers, levels, propagation)
- Contextual metadata (task, geometry counts, ...)
- Type-safe events (LogEvent enum)

Output:
    {
        "timestamp": "2026-10-19T09:12:04.481516+00:00",
        "level": "INFO",
        "component": "session",
        "event": "split.applied",
        "message": "Split polygon into 2 pieces",
        "metadata": {"pieces": 2}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "session", "cli")
        logger: Underlying Python logger instance

    Example:
        >>> logger = StructuredLogger("session")
        >>> logger.info(
        ...     event=LogEvent.TASK_STARTED,
        ...     message="Started split task",
        ...     metadata={'task': 'split'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component identifier
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: cdsp.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"cdsp.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        log_level = getattr(logging, level)
        if not self.logger.isEnabledFor(log_level):
            return

        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            log_entry['metadata'] = metadata

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        self.logger.log(log_level, json.dumps(log_entry, default=str))

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log DEBUG level message."""
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log INFO level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
        """
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log WARNING level message.

        Used for commits that left the layer untouched, e.g.:
            >>> logger.warning(
            ...     event=LogEvent.SPLIT_SKIPPED,
            ...     message="No cut applied to Polygon",
            ...     metadata={'targets': 1}
            ... )
        """
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Log ERROR level message.

        Args:
            event: Typed log event
            message: Human-readable message
            metadata: Additional context
            exc_info: Exception instance being reported

        Example:
            >>> try:
            ...     session.submit()
            ... except SessionStateError as e:
            ...     logger.error(
            ...         event=LogEvent.SESSION_STATE_ERROR,
            ...         message="Nothing to submit",
            ...         exc_info=e,
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)


class JSONFormatter(logging.Formatter):
    """
    Formatter passing through the JSON built by StructuredLogger.
    """

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int | str = logging.INFO
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Args:
        component: Component identifier
        level: Logging level, as int or name ("DEBUG", "INFO", ...)

    Returns:
        Configured StructuredLogger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    return StructuredLogger(component=component, level=level)
