"""
Session State Module
====================

Task state machine for the editing session.

Design:
- Tagged union: one frozen dataclass per state
- Transitions replace the state object, never patch it
- Idle is the single reset target (cancel, remove, after submit)

States:
    Idle --combine()--> Combining
    Idle --decompose()--> Decomposing
    Idle --peel()--> Peeling
    Idle --split()--> Splitting
    any --cancel()/submit()--> Idle
    any --start another task--> (cancel) --> new task state
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from cdsp_geometry.layer import Layer, VectorLayer
from cdsp_geometry.shapes import Geometry


class SessionStateError(Exception):
    """Raised when an operation is incompatible with the session state"""
    pass


class EmptyTargetsError(SessionStateError):
    """Raised when a peel or split task is submitted without targets"""
    pass


class TaskKind(str, Enum):
    """Editing tasks a session can run."""

    COMBINE = "combine"
    DECOMPOSE = "decompose"
    PEEL = "peel"
    SPLIT = "split"


@dataclass(frozen=True)
class Idle:
    """No active task."""

    task: ClassVar[Optional[TaskKind]] = None


@dataclass(frozen=True)
class ActiveTask:
    """
    Fields shared by every task state.

    Attributes:
        source: Geometry the task was started on
        layer: Layer owning source
        chosen: Selection set, in selection order
        hit: Currently hovered candidate (preview only)
    """

    source: Geometry
    layer: Layer
    chosen: Tuple[Geometry, ...] = ()
    hit: Optional[Geometry] = None


@dataclass(frozen=True)
class Combining(ActiveTask):
    task: ClassVar[TaskKind] = TaskKind.COMBINE


@dataclass(frozen=True)
class Decomposing(ActiveTask):
    """
    Decompose in progress.

    Attributes:
        scratch: Layer holding the exploded parts (hit candidates)
    """

    task: ClassVar[TaskKind] = TaskKind.DECOMPOSE
    scratch: VectorLayer = field(default_factory=lambda: VectorLayer("scratch"))


@dataclass(frozen=True)
class Peeling(ActiveTask):
    task: ClassVar[TaskKind] = TaskKind.PEEL


@dataclass(frozen=True)
class Splitting(ActiveTask):
    task: ClassVar[TaskKind] = TaskKind.SPLIT


SessionState = Union[Idle, Combining, Decomposing, Peeling, Splitting]

IDLE = Idle()
