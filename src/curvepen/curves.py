"""Pointer-driven authoring of Bezier paths.

The CurveAuthoringTool turns pointer-down/move/up events into a list of curve
points (corner, smooth and asymmetric anchors with optional handles) and, when
the path is finished, into a command sequence persisted by the host store.
Observers receive an immutable CurveAuthoringState snapshot after every change.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import KDTree

from curvepen.commands import Close, Command, Cubic, Line, Move, PathCommandProcessor
from curvepen.common import CurveToolMode, DragPhase, DragType, PointType
from curvepen.config import DEFAULT_CURVE_TOOL_CONFIG, DEFAULT_GRID_SETTINGS, CurveToolConfig, GridSettings
from curvepen.geom import GeomMath, Point, ViewTransform
from curvepen.host import NO_MODIFIERS, DocumentStore, Modifiers

logger = logging.getLogger(__name__)

###############################################################################
# State types
###############################################################################


@dataclass(frozen=True)
class CurvePoint:
    """An authored anchor.

    Attributes:
        id: Identifier unique within the tool instance.
        x: Anchor x-coordinate in model space.
        y: Anchor y-coordinate in model space.
        type: Handle continuity class.
        handle_in: Absolute position of the incoming handle, if any.
        handle_out: Absolute position of the outgoing handle, if any.
        selected: Whether the point is the selected one.
    """

    id: str
    x: float
    y: float
    type: PointType = PointType.CORNER
    handle_in: Optional[Point] = None
    handle_out: Optional[Point] = None
    selected: bool = False

    @property
    def position(self) -> Point:
        """The anchor as Point."""
        return Point(self.x, self.y)

    @property
    def has_handles(self) -> bool:
        """True if at least one handle is set."""
        return self.handle_in is not None or self.handle_out is not None


@dataclass(frozen=True)
class DragState:
    """An armed or running drag.

    Attributes:
        drag_type: What the drag moves.
        point_id: Id of the point owning the dragged element.
        start_point: Pointer location (model space) when the drag started.
        phase: ARMED until the pointer travelled far enough, CONFIRMED afterwards.
        start_anchor: Anchor position when a point drag started.
    """

    drag_type: DragType
    point_id: str
    start_point: Point
    phase: DragPhase = DragPhase.CONFIRMED
    start_anchor: Optional[Point] = None

    @property
    def is_dragging(self) -> bool:
        """True once the drag is confirmed."""
        return self.phase is DragPhase.CONFIRMED


@dataclass(frozen=True)
class CurveAuthoringState:
    """Read-only snapshot of the authoring state handed to observers."""

    mode: CurveToolMode = CurveToolMode.INACTIVE
    points: Tuple[CurvePoint, ...] = ()
    selected_point_id: Optional[str] = None
    drag_state: Optional[DragState] = None
    is_closing_path: bool = False
    preview_point: Optional[Point] = None
    current_path_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """True while the tool is activated."""
        return self.mode is not CurveToolMode.INACTIVE

    def point(self, point_id: str) -> Optional[CurvePoint]:
        """Look up a point by id."""
        for pt in self.points:
            if pt.id == point_id:
                return pt
        return None


StateListener = Callable[[CurveAuthoringState], None]


###############################################################################
# Conversion
###############################################################################


def points_to_commands(
    points: Sequence[CurvePoint], is_closing_path: bool = False, precision: int = DEFAULT_CURVE_TOOL_CONFIG.precision
) -> List[Command]:
    """Convert authored points into the commands of one subpath.

    The first point becomes a Move. A segment becomes a Line when neither the
    predecessor has an outgoing handle nor the point an incoming one, otherwise a
    Cubic whose missing control points coincide with their anchors. A Close is
    appended for closed paths. Coordinates are rounded to _precision_ decimals.
    """
    if not points:
        return []

    commands: List[Command] = [Move(points[0].x, points[0].y)]
    for prev, point in zip(points, points[1:]):
        if prev.handle_out is None and point.handle_in is None:
            commands.append(Line(point.x, point.y))
            continue
        cp1 = prev.handle_out if prev.handle_out is not None else prev.position
        cp2 = point.handle_in if point.handle_in is not None else point.position
        commands.append(Cubic(cp1.x, cp1.y, cp2.x, cp2.y, point.x, point.y))

    if is_closing_path:
        commands.append(Close())
    return PathCommandProcessor.round_commands(commands, precision)


###############################################################################
# HitTester
###############################################################################


class HitTester:
    """Nearest-neighbour lookups of anchors and handles around a pointer location."""

    @staticmethod
    def _query(coords: List[Tuple[float, float]], location: Point, tolerance: float) -> Optional[int]:
        if not coords:
            return None
        tree = KDTree(np.array(coords, dtype=np.float64))
        # upper bound nudged so that a distance equal to the tolerance still hits
        _, idx = tree.query(location.to_tuple(), k=1, distance_upper_bound=float(np.nextafter(tolerance, np.inf)))
        idx = int(idx)
        if idx >= len(coords):
            return None
        return idx

    @staticmethod
    def find_point(points: Sequence[CurvePoint], location: Point, tolerance: float) -> Optional[CurvePoint]:
        """Return the anchor nearest to _location_ within _tolerance_."""
        idx = HitTester._query([(p.x, p.y) for p in points], location, tolerance)
        return None if idx is None else points[idx]

    @staticmethod
    def find_handle(
        points: Sequence[CurvePoint], location: Point, tolerance: float
    ) -> Optional[Tuple[CurvePoint, DragType]]:
        """Return the point and handle type of the handle nearest to _location_ within _tolerance_."""
        owners: List[Tuple[CurvePoint, DragType]] = []
        coords: List[Tuple[float, float]] = []
        for p in points:
            if p.handle_in is not None:
                owners.append((p, DragType.HANDLE_IN))
                coords.append(p.handle_in.to_tuple())
            if p.handle_out is not None:
                owners.append((p, DragType.HANDLE_OUT))
                coords.append(p.handle_out.to_tuple())
        idx = HitTester._query(coords, location, tolerance)
        return None if idx is None else owners[idx]


###############################################################################
# CurveAuthoringTool
###############################################################################


class CurveAuthoringTool:
    """State machine building one Bezier path at a time from pointer events.

    Pointer locations are given in screen space and converted with the host view
    transform. Geometry changing operations request a history snapshot from the
    store before their first mutation.
    """

    def __init__(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        store: DocumentStore,
        config: CurveToolConfig = DEFAULT_CURVE_TOOL_CONFIG,
        grid: GridSettings = DEFAULT_GRID_SETTINGS,
        view: Optional[ViewTransform] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.config = config
        self.grid = grid
        self.view = view if view is not None else ViewTransform()
        self._clock = clock

        self._mode = CurveToolMode.INACTIVE
        self._points: List[CurvePoint] = []
        self._selected_point_id: Optional[str] = None
        self._drag_state: Optional[DragState] = None
        self._is_closing_path = False
        self._preview_point: Optional[Point] = None
        self._current_path_id: Optional[str] = None

        self._listeners: List[StateListener] = []
        self._ids = itertools.count(1)
        self._last_click_time: Optional[float] = None
        self._last_click_screen: Optional[Point] = None
        self._last_preview_notify: Optional[float] = None
        self._preview_pending = False

    ###########################################################################
    # Observation
    ###########################################################################

    def get_state(self) -> CurveAuthoringState:
        """Return an immutable snapshot of the current state."""
        return CurveAuthoringState(
            mode=self._mode,
            points=tuple(self._points),
            selected_point_id=self._selected_point_id,
            drag_state=self._drag_state,
            is_closing_path=self._is_closing_path,
            preview_point=self._preview_point,
            current_path_id=self._current_path_id,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register _listener_ for state changes and return a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        self._preview_pending = False
        state = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Curve state listener %r failed", listener)

    def _notify_coalesced(self) -> None:
        """Notify at most once per frame interval; later calls are delivered by flush()."""
        now = self._clock()
        if self._last_preview_notify is None or now - self._last_preview_notify >= self.config.frame_interval:
            self._last_preview_notify = now
            self._notify()
        else:
            self._preview_pending = True

    def flush(self) -> bool:
        """Deliver a pending coalesced notification. Returns True if one was delivered."""
        if not self._preview_pending:
            return False
        self._last_preview_notify = self._clock()
        self._notify()
        return True

    ###########################################################################
    # Lifecycle
    ###########################################################################

    @property
    def is_active(self) -> bool:
        """True while the tool is activated."""
        return self._mode is not CurveToolMode.INACTIVE

    def activate(self) -> None:
        """Activate the tool with an empty point list."""
        self._reset_authoring()
        self._mode = CurveToolMode.CREATING
        logger.debug("Curve tool activated")
        self._notify()

    def exit(self) -> None:
        """Leave the tool; a path with at least 2 points is finished first, anything else is discarded."""
        if not self.is_active:
            return
        if len(self._points) >= 2:
            self._finish()
        self._reset_authoring()
        self._mode = CurveToolMode.INACTIVE
        self._last_click_time = None
        self._last_click_screen = None
        logger.debug("Curve tool exited")
        self._notify()

    def _reset_authoring(self) -> None:
        self._points = []
        self._selected_point_id = None
        self._drag_state = None
        self._is_closing_path = False
        self._preview_point = None
        self._preview_pending = False

    ###########################################################################
    # Helpers
    ###########################################################################

    def _to_model(self, screen_point: Point) -> Point:
        model = self.view.screen_to_model(screen_point)
        return GeomMath.snap_to_grid(model, self.grid.effective_size)

    def _index_of(self, point_id: str) -> Optional[int]:
        for idx, pt in enumerate(self._points):
            if pt.id == point_id:
                return idx
        return None

    def _select(self, point_id: Optional[str]) -> None:
        self._points = [replace(p, selected=p.id == point_id) for p in self._points]
        self._selected_point_id = point_id

    def _default_handles(self, point: CurvePoint) -> Tuple[Point, Point]:
        offset = self.config.default_handle_offset
        return Point(point.x - offset, point.y), Point(point.x + offset, point.y)

    def _is_double_click(self, screen_point: Point, now: float) -> bool:
        """Track pointer-downs and report the second one of a double click."""
        last_time, last_point = self._last_click_time, self._last_click_screen
        if (
            last_time is not None
            and last_point is not None
            and (now - last_time) * 1000.0 <= self.config.double_click_ms
            and screen_point.distance_to(last_point) <= self.config.double_click_distance
        ):
            self._last_click_time = None
            self._last_click_screen = None
            return True
        self._last_click_time = now
        self._last_click_screen = screen_point
        return False

    ###########################################################################
    # Pointer events
    ###########################################################################

    def on_pointer_down(
        self, point: Point, modifiers: Modifiers = NO_MODIFIERS, timestamp: Optional[float] = None
    ) -> bool:
        """Handle a pointer-down at screen location _point_. Returns True if the event was consumed."""
        if self._mode not in (CurveToolMode.CREATING, CurveToolMode.EDITING):
            return False

        location = self._to_model(point)
        now = self._clock() if timestamp is None else timestamp
        tolerance = self.view.model_length(self.config.hit_tolerance)

        point_hit = HitTester.find_point(self._points, location, tolerance)
        if point_hit is not None and modifiers.alt:
            self._select(point_hit.id)
            self.toggle_point_type(point_hit.id)
            return True

        if self._mode is CurveToolMode.CREATING:
            first = self._points[0] if self._points else None
            if (
                first is not None
                and len(self._points) >= self.config.min_points_to_close
                and HitTester.find_point([first], location, tolerance) is not None
            ):
                logger.debug("Closing path on first point %s", first.id)
                self._is_closing_path = True
                self.finish_path()
                return True

            if self._is_double_click(point, now) and len(self._points) >= self.config.min_points_to_close:
                logger.debug("Double click finishes path with %d points", len(self._points))
                self.finish_path()
                return True

        handle_hit = HitTester.find_handle(self._points, location, tolerance)
        if handle_hit is not None:
            owner, drag_type = handle_hit
            self.store.push_history_snapshot()
            self._drag_state = DragState(drag_type=drag_type, point_id=owner.id, start_point=location)
            self._mode = CurveToolMode.DRAGGING_HANDLE
            self._notify()
            return True

        if point_hit is not None:
            self._select(point_hit.id)
            self.store.push_history_snapshot()
            self._drag_state = DragState(
                drag_type=DragType.POINT,
                point_id=point_hit.id,
                start_point=location,
                start_anchor=point_hit.position,
            )
            self._mode = CurveToolMode.DRAGGING_POINT
            self._notify()
            return True

        self._create_point(location)
        return True

    def _create_point(self, location: Point) -> None:
        self.store.push_history_snapshot()
        new_point = CurvePoint(id=f"curve-point-{next(self._ids)}", x=location.x, y=location.y)
        self._points.append(new_point)
        self._select(new_point.id)
        self._drag_state = DragState(
            drag_type=DragType.HANDLE_OUT,
            point_id=new_point.id,
            start_point=location,
            phase=DragPhase.ARMED,
        )
        self._mode = CurveToolMode.EDITING
        logger.debug("Created point %s at (%g, %g)", new_point.id, location.x, location.y)
        self._notify()

    def on_pointer_move(
        self, point: Point, modifiers: Modifiers = NO_MODIFIERS, timestamp: Optional[float] = None
    ) -> bool:
        """Handle a pointer-move to screen location _point_. Returns True if the event was consumed."""
        # pylint: disable=unused-argument
        if not self.is_active:
            return False

        location = self._to_model(point)
        drag = self._drag_state

        if self._mode is CurveToolMode.CREATING:
            self._preview_point = location
            self._notify_coalesced()
            return True

        if self._mode is CurveToolMode.EDITING:
            if drag is not None and drag.phase is DragPhase.ARMED:
                threshold = self.view.model_length(self.config.drag_threshold)
                if location.distance_to(drag.start_point) > threshold:
                    self._promote_to_smooth(drag, location)
            return True

        if drag is None:
            return False

        if self._mode is CurveToolMode.DRAGGING_HANDLE:
            self._drag_handle(drag, location)
            return True

        if self._mode is CurveToolMode.DRAGGING_POINT:
            self._drag_point(drag, location)
            return True

        return False

    def _promote_to_smooth(self, drag: DragState, location: Point) -> None:
        idx = self._index_of(drag.point_id)
        if idx is None:
            self._drag_state = None
            return
        target = self._points[idx]
        self._points[idx] = replace(
            target,
            type=PointType.SMOOTH,
            handle_out=location,
            handle_in=GeomMath.mirror(location, target.position),
        )
        self._drag_state = replace(drag, phase=DragPhase.CONFIRMED)
        self._mode = CurveToolMode.DRAGGING_HANDLE
        logger.debug("Point %s promoted to smooth", target.id)
        self._notify()

    def _drag_handle(self, drag: DragState, location: Point) -> None:
        idx = self._index_of(drag.point_id)
        if idx is None:
            return
        target = self._points[idx]
        anchor = target.position
        if drag.drag_type is DragType.HANDLE_IN:
            handle_in = location
            handle_out = target.handle_out
            if target.type is PointType.SMOOTH and handle_out is not None:
                handle_out = GeomMath.mirror(location, anchor)
        else:
            handle_out = location
            handle_in = target.handle_in
            if target.type is PointType.SMOOTH and handle_in is not None:
                handle_in = GeomMath.mirror(location, anchor)
        self._points[idx] = replace(target, handle_in=handle_in, handle_out=handle_out)
        self._notify()

    def _drag_point(self, drag: DragState, location: Point) -> None:
        idx = self._index_of(drag.point_id)
        if idx is None:
            return
        origin = drag.start_anchor if drag.start_anchor is not None else drag.start_point
        anchor = origin + (location - drag.start_point)
        target = self._points[idx]
        # translate the current handles, they may have changed during the drag
        shift = anchor - target.position
        self._points[idx] = replace(
            target,
            x=anchor.x,
            y=anchor.y,
            handle_in=None if target.handle_in is None else target.handle_in + shift,
            handle_out=None if target.handle_out is None else target.handle_out + shift,
        )
        self._notify()

    def on_pointer_up(
        self, point: Point, modifiers: Modifiers = NO_MODIFIERS, timestamp: Optional[float] = None
    ) -> bool:
        """Handle a pointer-up. Returns True if the event was consumed."""
        # pylint: disable=unused-argument
        if self._mode in (CurveToolMode.DRAGGING_HANDLE, CurveToolMode.DRAGGING_POINT, CurveToolMode.EDITING):
            self._drag_state = None
            self._mode = CurveToolMode.CREATING
            self._notify()
            return True
        return False

    ###########################################################################
    # Direct operations
    ###########################################################################

    def toggle_point_type(self, point_id: str) -> None:
        """Advance a point through CORNER -> SMOOTH -> ASYMMETRIC -> CORNER."""
        point = self.get_state().point(point_id)
        if point is None:
            return
        self.set_point_type(point_id, point.type.next_in_cycle())

    def set_point_type(self, point_id: str, point_type: PointType) -> None:
        """Change the type of a point.

        CORNER removes both handles. SMOOTH and ASYMMETRIC add default handles when the
        point has none; SMOOTH re-mirrors existing handles through the anchor.
        """
        idx = self._index_of(point_id)
        if idx is None or self._points[idx].type is point_type:
            return

        self.store.push_history_snapshot()
        point = self._points[idx]
        handle_in, handle_out = point.handle_in, point.handle_out
        if point_type is PointType.CORNER:
            handle_in = handle_out = None
        elif handle_in is None and handle_out is None:
            handle_in, handle_out = self._default_handles(point)
        elif point_type is PointType.SMOOTH:
            if handle_out is not None:
                handle_in = GeomMath.mirror(handle_out, point.position)
            else:
                handle_out = GeomMath.mirror(handle_in, point.position)

        self._points[idx] = replace(point, type=point_type, handle_in=handle_in, handle_out=handle_out)
        logger.debug("Point %s changed from %s to %s", point_id, point.type.value, point_type.value)
        self._notify()

    def break_handles(self, point_id: str) -> None:
        """Turn a SMOOTH point into an ASYMMETRIC one, keeping its handles."""
        idx = self._index_of(point_id)
        if idx is None or self._points[idx].type is not PointType.SMOOTH:
            return
        self.store.push_history_snapshot()
        self._points[idx] = replace(self._points[idx], type=PointType.ASYMMETRIC)
        self._notify()

    def delete_selected_point(self) -> None:
        """Remove the selected point; fewer than 2 remaining points clear the path."""
        if self._selected_point_id is None or self._index_of(self._selected_point_id) is None:
            return

        self.store.push_history_snapshot()
        self._points = [p for p in self._points if p.id != self._selected_point_id]
        self._selected_point_id = None
        self._drag_state = None
        if len(self._points) < 2:
            self._points = []
            self._mode = CurveToolMode.CREATING
        self._notify()

    def add_point_to_segment(self, segment_index: int, t: float = 0.5) -> Optional[str]:
        """Insert a CORNER point into the segment between points _segment_index_ and _segment_index_+1.

        Returns:
            The id of the new point, None if the segment does not exist.
        """
        if segment_index < 0 or segment_index >= len(self._points) - 1:
            return None

        self.store.push_history_snapshot()
        start = self._points[segment_index].position
        end = self._points[segment_index + 1].position
        location = GeomMath.lerp(start, end, t)
        new_point = CurvePoint(id=f"curve-point-{next(self._ids)}", x=location.x, y=location.y)
        self._points.insert(segment_index + 1, new_point)
        self._select(new_point.id)
        self._notify()
        return new_point.id

    def finish_path(self) -> Optional[str]:
        """Finish the path being authored.

        Returns:
            The id of the materialized path, None if fewer than 2 points were authored.
        """
        if len(self._points) < 2:
            self._is_closing_path = False
            return None
        path_id = self._finish()
        self._reset_authoring()
        self._mode = CurveToolMode.CREATING
        self._notify()
        return path_id

    def _finish(self) -> str:
        commands = points_to_commands(self._points, self._is_closing_path, self.config.precision)
        self.store.push_history_snapshot()
        path_id = self.store.materialize_path(commands)
        self._current_path_id = path_id
        logger.debug("Materialized path %s with %d commands", path_id, len(commands))
        return path_id
