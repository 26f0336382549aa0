"""
cdsp_session - Interaction controller for geometry editing tasks

Bounded Context: Task lifecycle and selection
Responsibilities:
  - Explicit task state machine (Idle, Combining, Decomposing, Peeling, Splitting)
  - Hover / click / batch selection with coordinate-key membership
  - Preview symbols for hovered and chosen geometries
  - Commit through cdsp_engine, report (result, deals) to a callback

Design Philosophy:
  - At most one active task; starting a task cancels the previous one
  - Layers are mutated only on submit
  - Fail-fast on contract violations (SessionStateError, EmptyTargetsError)
"""

from .config import CDSPConfig
from .session import CDSPSession, TaskResult
from .state import (
    Combining,
    Decomposing,
    EmptyTargetsError,
    Idle,
    Peeling,
    SessionStateError,
    Splitting,
    TaskKind,
)
from .symbols import symbol_or_default

__all__ = [
    "CDSPConfig",
    "CDSPSession",
    "TaskResult",
    "Combining",
    "Decomposing",
    "EmptyTargetsError",
    "Idle",
    "Peeling",
    "SessionStateError",
    "Splitting",
    "TaskKind",
    "symbol_or_default",
]
