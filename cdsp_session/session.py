"""
CDSPSession - Interactive combine / decompose / split / peel controller

Bounded Context: Editing task orchestration
Responsibilities:
  - Start tasks (entry guards per geometry kind)
  - Track hovered and chosen geometries from pointer events or batches
  - Commit the task through the engines and report (result, deals)
  - Keep at most one active task (starting a task cancels the previous)

Threading:
  - Single-threaded, synchronous: call from the UI event loop only

Geometry mutation happens once, in submit(). Pointer events only update the
session state and the preview.
"""

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence, Union

from cdsp_engine.combine import combine, decompose, explode, toggle_choice
from cdsp_engine.peel import peel
from cdsp_engine.split_line import split_line
from cdsp_engine.split_polygon import split_polygon
from cdsp_geometry.layer import Layer, VectorLayer, hit_test
from cdsp_geometry.projection import PlanarProjection, Projection
from cdsp_geometry.rings import stringify_coords
from cdsp_geometry.service import IntersectionService
from cdsp_geometry.shapes import Geometry, GeometryKind
from cdsp_logging import LogEvent, StructuredLogger, create_logger

from .config import CDSPConfig
from .state import (
    IDLE,
    ActiveTask,
    Combining,
    Decomposing,
    EmptyTargetsError,
    Idle,
    Peeling,
    SessionState,
    SessionStateError,
    Splitting,
    TaskKind,
)
from .symbols import styled_copy

CommitCallback = Callable[[Union[Geometry, List[Geometry], None], List[Geometry]], None]


@dataclass(frozen=True)
class TaskResult:
    """
    Outcome of a submitted task.

    Attributes:
        task: Task that was committed
        result: Derived geometry (combine/decompose/peel) or geometries (split)
        deals: Original geometries consumed by the task (copies)
    """

    task: TaskKind
    result: Union[Geometry, List[Geometry], None]
    deals: List[Geometry]


class CDSPSession:
    """
    Editing session driving the geometry engines.

    Example:
        session = CDSPSession(config=CDSPConfig(zoom=14))

        # Interactive: hover and click candidates, then commit
        session.combine(parcel)
        session.pointer_move(coord)
        session.click(coord)
        session.submit(lambda result, deals: print(result, deals))

        # Batch: split immediately with known cutting lines
        session.split(parcel, [cut_a, cut_b], callback=on_commit)
    """

    def __init__(
        self,
        config: Optional[CDSPConfig] = None,
        projection: Optional[Projection] = None,
        zoom_provider: Optional[Callable[[], float]] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            config: Session configuration (default: CDSPConfig())
            projection: Coordinate <-> screen projection (default: planar)
            zoom_provider: Returns the map's current zoom (default: config.zoom)
            logger: Structured logger (default: "session" component)
        """
        self.config = config or CDSPConfig()
        self.projection = projection or PlanarProjection()
        self.zoom_provider = zoom_provider
        self.logger = logger or create_logger("session", self.config.log_level)
        self.last_result: Optional[TaskResult] = None
        self._state: SessionState = IDLE

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def task(self) -> Optional[TaskKind]:
        return self._state.task

    @property
    def is_active(self) -> bool:
        return not isinstance(self._state, Idle)

    @property
    def chosen(self) -> tuple:
        return self._state.chosen if self.is_active else ()

    @property
    def hit(self) -> Optional[Geometry]:
        return self._state.hit if self.is_active else None

    @property
    def children(self) -> List[Geometry]:
        """Exploded parts of the geometry being decomposed."""
        if isinstance(self._state, Decomposing):
            return self._state.scratch.get_geometries()
        return []

    def intersection_service(self) -> IntersectionService:
        """Service bound to the current zoom, fixed for one operation."""
        zoom = self.zoom_provider() if self.zoom_provider else self.config.zoom
        return IntersectionService(self.projection, zoom, self.config.epsilon)

    # ------------------------------------------------------------------
    # Task entry points
    # ------------------------------------------------------------------

    def combine(self, geometry: Geometry) -> Optional["CDSPSession"]:
        """Start combining geometries of geometry's layer into one."""
        if not isinstance(geometry, Geometry):
            return self._reject(TaskKind.COMBINE, geometry)
        self._start(Combining(source=geometry, layer=self._layer_of(geometry), chosen=(geometry,)))
        return self

    def decompose(self, geometry: Geometry) -> Optional["CDSPSession"]:
        """Start decomposing a multi-geometry; every part starts chosen."""
        if not isinstance(geometry, Geometry) or not geometry.is_multi:
            return self._reject(TaskKind.DECOMPOSE, geometry)
        layer = self._layer_of(geometry)
        scratch = VectorLayer("scratch", tolerance=self.config.identify_tolerance)
        for part in explode(geometry):
            scratch.add(part)
        self._start(Decomposing(
            source=geometry,
            layer=layer,
            chosen=tuple(scratch.get_geometries()),
            scratch=scratch,
        ))
        return self

    def peel(
        self,
        geometry: Geometry,
        targets: Union[Geometry, Sequence[Geometry], None] = None,
        callback: Optional[CommitCallback] = None,
    ) -> Optional["CDSPSession"]:
        """
        Start peeling holes into a polygon.

        With targets, the task is committed immediately (see last_result).
        """
        if not isinstance(geometry, Geometry) or geometry.kind is not GeometryKind.POLYGON:
            return self._reject(TaskKind.PEEL, geometry)
        self._start(Peeling(source=geometry, layer=self._layer_of(geometry)))
        return self._maybe_commit(targets, callback)

    def split(
        self,
        geometry: Geometry,
        targets: Union[Geometry, Sequence[Geometry], None] = None,
        callback: Optional[CommitCallback] = None,
    ) -> Optional["CDSPSession"]:
        """
        Start splitting a polygon or line string.

        With targets, the task is committed immediately (see last_result).
        """
        if not isinstance(geometry, Geometry) or geometry.kind not in (
            GeometryKind.POLYGON,
            GeometryKind.LINE_STRING,
        ):
            return self._reject(TaskKind.SPLIT, geometry)
        self._start(Splitting(source=geometry, layer=self._layer_of(geometry)))
        return self._maybe_commit(targets, callback)

    # ------------------------------------------------------------------
    # Interaction events
    # ------------------------------------------------------------------

    def pointer_move(self, coord: Sequence[float]) -> Optional[Geometry]:
        """
        Update the hovered candidate.

        Returns:
            The new hit, or None when nothing eligible is under coord
        """
        state = self._state
        if isinstance(state, Idle):
            return None

        candidates = self._candidates(state, coord)
        hit = None
        if candidates and self._eligible(state, candidates[0]):
            hit = candidates[0]

        if hit is not state.hit:
            self._state = replace(state, hit=hit)
            self.logger.debug(
                event=LogEvent.HIT_CHANGED,
                message="Hovered candidate changed",
                metadata={'task': state.task.value, 'hit': hit is not None},
            )
        return hit

    def click(self, coord: Sequence[float]) -> tuple:
        """
        Toggle selection at coord.

        Returns:
            The selection after the click
        """
        state = self._state
        if isinstance(state, Idle):
            return ()

        if isinstance(state, Decomposing):
            clicked = [
                geo for geo in reversed(state.chosen)
                if hit_test(geo, coord, state.scratch.tolerance)
            ]
            if clicked:
                chosen = toggle_choice(state.chosen, clicked[0], force_remove=True)
            elif state.hit is not None:
                chosen = state.chosen + (state.hit,)
            else:
                return state.chosen
        elif isinstance(state, (Combining, Peeling, Splitting)):
            if state.hit is None or self._is_source(state, state.hit):
                return state.chosen
            chosen = toggle_choice(state.chosen, state.hit)
        else:
            raise SessionStateError(f"Unknown session state: {state!r}")

        self._set_chosen(state, chosen)
        return chosen

    def choose(self, geometries: Iterable[Geometry]) -> tuple:
        """
        Toggle a batch of geometries in the selection.

        Ineligible geometries (wrong family, the source itself) are ignored.

        Returns:
            The selection after the batch
        """
        state = self._state
        if isinstance(state, Idle):
            raise SessionStateError("No active task: start a task before choosing geometries")

        chosen = state.chosen
        for geo in geometries:
            if self._is_source(state, geo) or not self._eligible(state, geo):
                continue
            chosen = toggle_choice(chosen, geo)
        self._set_chosen(state, chosen)
        return chosen

    def preview(self) -> List[Geometry]:
        """Styled copies of the chosen geometries and the hovered candidate."""
        state = self._state
        if isinstance(state, Idle):
            return []
        width = self.config.line_width
        previews = [styled_copy(geo, self.config.choose_sv_color, width) for geo in state.chosen]
        if state.hit is not None:
            previews.append(styled_copy(state.hit, self.config.hit_sv_color, width))
        return previews

    # ------------------------------------------------------------------
    # Commit / cancel
    # ------------------------------------------------------------------

    def submit(self, callback: Optional[CommitCallback] = None) -> TaskResult:
        """
        Commit the active task.

        callback(result, deals) is invoked exactly once; the session returns
        to Idle whether or not the commit succeeds.

        Raises:
            SessionStateError: If no task is active
            EmptyTargetsError: If a peel/split task has no targets
        """
        state = self._state
        if isinstance(state, Idle):
            error = SessionStateError("No active task to submit")
            self.logger.error(
                event=LogEvent.SESSION_STATE_ERROR,
                message="Submit called without an active task",
                exc_info=error,
            )
            raise error

        try:
            outcome = self._commit(state)
            self.last_result = outcome
            self.logger.info(
                event=LogEvent.TASK_SUBMITTED,
                message=f"Submitted {state.task.value} task",
                metadata={'task': state.task.value, 'deals': len(outcome.deals)},
            )
            if callback is not None:
                callback(outcome.result, outcome.deals)
        finally:
            self._reset()
        return outcome

    def cancel(self) -> None:
        """Discard the active task without touching any layer."""
        if self.is_active:
            self.logger.info(
                event=LogEvent.TASK_CANCELLED,
                message=f"Cancelled {self._state.task.value} task",
                metadata={'task': self._state.task.value},
            )
        self._reset()

    def remove(self) -> None:
        """Alias of cancel()."""
        self.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        state = self._state
        if isinstance(state, Decomposing):
            state.scratch.clear()
        self._state = IDLE

    def _start(self, state: ActiveTask) -> None:
        if self.is_active:
            self.cancel()
        self._state = state
        self.logger.info(
            event=LogEvent.TASK_STARTED,
            message=f"Started {state.task.value} task",
            metadata={'task': state.task.value, 'source': state.source.kind.value},
        )

    def _reject(self, task: TaskKind, geometry) -> None:
        kind = geometry.kind.value if isinstance(geometry, Geometry) else type(geometry).__name__
        self.logger.debug(
            event=LogEvent.TASK_REJECTED,
            message=f"Cannot {task.value} a {kind}",
            metadata={'task': task.value, 'geometry': kind},
        )
        return None

    def _layer_of(self, geometry: Geometry) -> Layer:
        if geometry.layer is None:
            error = SessionStateError("Geometry is not attached to a layer")
            self.logger.error(
                event=LogEvent.SESSION_STATE_ERROR,
                message="Task started on a detached geometry",
                exc_info=error,
            )
            raise error
        return geometry.layer

    def _maybe_commit(self, targets, callback) -> "CDSPSession":
        if isinstance(targets, Geometry):
            targets = [targets]
        if targets:
            self.choose(targets)
            self.submit(callback)
        return self

    def _set_chosen(self, state: ActiveTask, chosen: tuple) -> None:
        self._state = replace(state, chosen=chosen)
        self.logger.debug(
            event=LogEvent.SELECTION_CHANGED,
            message="Selection changed",
            metadata={'task': state.task.value, 'chosen': len(chosen)},
        )

    @staticmethod
    def _is_source(state: ActiveTask, geometry: Geometry) -> bool:
        if isinstance(state, Decomposing):
            return False
        return stringify_coords(geometry) == stringify_coords(state.source)

    @staticmethod
    def _eligible(state: ActiveTask, geometry: Geometry) -> bool:
        if isinstance(state, Splitting):
            return geometry.kind.part_kind is GeometryKind.LINE_STRING
        return geometry.kind.same_family(state.source.kind)

    def _candidates(self, state: ActiveTask, coord: Sequence[float]) -> List[Geometry]:
        if isinstance(state, Combining):
            return state.layer.identify(coord)
        if isinstance(state, Decomposing):
            return state.scratch.identify(coord)
        if isinstance(state, Peeling):
            return [g for g in state.layer.identify(coord) if not self._is_source(state, g)]
        if isinstance(state, Splitting):
            return [
                g for g in state.layer.identify(coord)
                if not self._is_source(state, g) and g.kind is GeometryKind.LINE_STRING
            ]
        raise SessionStateError(f"Unknown session state: {state!r}")

    def _commit(self, state: ActiveTask) -> TaskResult:
        if isinstance(state, Combining):
            result, deals = combine(state.source, state.chosen, state.layer)
            self.logger.info(
                event=LogEvent.COMBINE_APPLIED,
                message=f"Combined {len(state.chosen)} geometries",
                metadata={'chosen': len(state.chosen)},
            )
        elif isinstance(state, Decomposing):
            result, deals = decompose(
                state.source, state.scratch.get_geometries(), state.chosen, state.layer
            )
            self.logger.info(
                event=LogEvent.DECOMPOSE_APPLIED,
                message=f"Decomposed into {len(deals)} standalone geometries",
                metadata={'kept': len(state.chosen), 'standalone': len(deals)},
            )
        elif isinstance(state, Peeling):
            self._require_targets(state)
            result, deals = peel(state.source, state.chosen)
            self.logger.info(
                event=LogEvent.PEEL_APPLIED,
                message=f"Peeled {len(state.chosen)} targets",
                metadata={'rings': len(result.coordinates)},
            )
        elif isinstance(state, Splitting):
            self._require_targets(state)
            result, deals = self._commit_split(state)
        else:
            raise SessionStateError(f"Unknown session state: {state!r}")
        return TaskResult(task=state.task, result=result, deals=deals)

    def _require_targets(self, state: ActiveTask) -> None:
        if not state.chosen:
            error = EmptyTargetsError(f"Cannot submit {state.task.value} without targets")
            self.logger.error(
                event=LogEvent.EMPTY_TARGETS_ERROR,
                message=str(error),
                metadata={'task': state.task.value},
                exc_info=error,
            )
            raise error

    def _commit_split(self, state: Splitting):
        service = self.intersection_service()
        source, layer = state.source, state.layer
        if source.kind is GeometryKind.POLYGON:
            pieces = split_polygon(service, source, state.chosen, self.config.multi_crossing_cuts)
        else:
            pieces = split_line(service, source, state.chosen)

        deals = []
        for target in state.chosen:
            deals.append(target.copy())
            target.remove()

        if len(pieces) == 1 and pieces[0] is source:
            self.logger.warning(
                event=LogEvent.SPLIT_SKIPPED,
                message=f"No cut applied to {source.kind.value}",
                metadata={'targets': len(state.chosen)},
            )
            return pieces, deals

        index = layer.index_of(source)
        layer.remove(source)
        for offset, piece in enumerate(pieces):
            layer.add(piece, index=index + offset if index >= 0 else None)
        self.logger.info(
            event=LogEvent.SPLIT_APPLIED,
            message=f"Split {source.kind.value} into {len(pieces)} pieces",
            metadata={'pieces': len(pieces), 'targets': len(state.chosen)},
        )
        return pieces, [source.copy()] + deals
