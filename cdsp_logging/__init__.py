"""
Structured Logging for CDSP
===========================

Bounded Context: Observability

JSON-structured logging for the editing session and CLI.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from cdsp_logging import create_logger, LogEvent
    >>> logger = create_logger("session")
    >>> logger.info(
    ...     event=LogEvent.TASK_SUBMITTED,
    ...     message="Submitted combine task",
    ...     metadata={'task': 'combine', 'deals': 2}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
