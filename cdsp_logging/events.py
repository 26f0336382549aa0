"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for the editing session's structured logs.

Event Naming Convention:
    <context>.<action>

    context: task, selection, combine, decompose, peel, split, config, error
    action: started, cancelled, submitted, changed, applied, skipped

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.task
    | filter event = "split.applied"
    | stats count() by bin(1h)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - task.*: Session task lifecycle
    - selection.*: Selection set and hover changes
    - combine.* / decompose.* / peel.* / split.*: Committed transformations
    - config.*: Configuration loading
    - error.*: Contract violations
    """

    # ========== Task Events ==========
    TASK_STARTED = "task.started"
    """A task became active (previous task cancelled if any)."""

    TASK_CANCELLED = "task.cancelled"
    """Active task discarded without commit."""

    TASK_SUBMITTED = "task.submitted"
    """Active task committed and callback invoked."""

    TASK_REJECTED = "task.rejected"
    """Entry guard refused to start a task (wrong geometry kind)."""

    # ========== Selection Events ==========
    SELECTION_CHANGED = "selection.changed"
    """Chosen set toggled by a click or a batch."""

    HIT_CHANGED = "selection.hit_changed"
    """Hovered candidate changed."""

    # ========== Transformation Events ==========
    COMBINE_APPLIED = "combine.applied"
    """Geometries merged into a multi-geometry."""

    DECOMPOSE_APPLIED = "decompose.applied"
    """Multi-geometry exploded."""

    PEEL_APPLIED = "peel.applied"
    """Holes punched into a polygon."""

    SPLIT_APPLIED = "split.applied"
    """Source split into several geometries."""

    SPLIT_SKIPPED = "split.skipped"
    """No cut applied, source left unchanged."""

    # ========== Config Events ==========
    CONFIG_LOADED = "config.loaded"
    """Configuration loaded from file."""

    # ========== Error Events ==========
    EMPTY_TARGETS_ERROR = "error.empty_targets"
    """Peel/split submitted without targets."""

    SESSION_STATE_ERROR = "error.session_state"
    """Operation incompatible with the session state."""


TASK_EVENTS = {
    LogEvent.TASK_STARTED,
    LogEvent.TASK_CANCELLED,
    LogEvent.TASK_SUBMITTED,
    LogEvent.TASK_REJECTED,
}

SELECTION_EVENTS = {
    LogEvent.SELECTION_CHANGED,
    LogEvent.HIT_CHANGED,
}

TRANSFORM_EVENTS = {
    LogEvent.COMBINE_APPLIED,
    LogEvent.DECOMPOSE_APPLIED,
    LogEvent.PEEL_APPLIED,
    LogEvent.SPLIT_APPLIED,
    LogEvent.SPLIT_SKIPPED,
}

ERROR_EVENTS = {
    LogEvent.EMPTY_TARGETS_ERROR,
    LogEvent.SESSION_STATE_ERROR,
}
