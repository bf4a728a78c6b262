"""Path simplification: reduce an oversampled subpath to a sparse polyline within a tolerance.

The reduction works on the polyline of a subpath (curves are flattened first),
runs a Ramer-Douglas-Peucker pass that also enforces a minimum spacing between
retained points, and emits Move/Line commands again. Simplifying a simplified
subpath with the same parameters returns it unchanged.

Smoothing is the companion operation: interior corners of a polyline are
replaced by cubic segments whose handles follow the neighbouring segments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from curvepen.bezier import BezierCurve
from curvepen.commands import Close, Command, Cubic, Line, Move, PathCommandProcessor
from curvepen.config import DEFAULT_GRID_SETTINGS, DEFAULT_SIMPLIFIER_SETTINGS, GridSettings, SimplifierSettings
from curvepen.geom import GeomMath, Point
from curvepen.host import DocumentStore

logger = logging.getLogger(__name__)

# Corners next to a shorter segment are not smoothed
MIN_SEGMENT_LENGTH = 1e-6

###############################################################################
# Requests and selections
###############################################################################


@dataclass(frozen=True)
class SimplificationRequest:
    """Input of a simplification run.

    Attributes:
        commands: Commands of one subpath.
        tolerance: Maximum perpendicular deviation of a point removed by the chord test.
        max_distance: Minimum spacing of retained points; closer points are collapsed.
        grid_size: If > 0, retained points are quantized to this grid.
        curve_steps: Number of segments each cubic command is flattened into.
    """

    commands: Tuple[Command, ...]
    tolerance: float
    max_distance: float
    grid_size: float = 0.0
    curve_steps: int = DEFAULT_SIMPLIFIER_SETTINGS.curve_steps

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.max_distance < 0:
            raise ValueError(f"max_distance must be >= 0, got {self.max_distance}")
        if self.grid_size < 0:
            raise ValueError(f"grid_size must be >= 0, got {self.grid_size}")
        if self.curve_steps < 1:
            raise ValueError(f"curve_steps must be >= 1, got {self.curve_steps}")

    @classmethod
    def from_settings(
        cls,
        commands: Sequence[Command],
        settings: SimplifierSettings = DEFAULT_SIMPLIFIER_SETTINGS,
        grid: GridSettings = DEFAULT_GRID_SETTINGS,
    ) -> SimplificationRequest:
        """Build a request from the configured settings and the host grid."""
        return cls(
            commands=tuple(commands),
            tolerance=settings.tolerance,
            max_distance=settings.max_distance,
            grid_size=grid.effective_size,
            curve_steps=settings.curve_steps,
        )


@dataclass(frozen=True)
class CommandSelection:
    """A selected command, addressed by its subpath and its index inside that subpath."""

    subpath_id: str
    index: int


class SelectionError(ValueError):
    """Raised when a command selection cannot be simplified as one run."""


###############################################################################
# PathSimplifier
###############################################################################


class PathSimplifier:
    """Collection of static path-simplification utilities."""

    @staticmethod
    def flatten(commands: Sequence[Command], curve_steps: int) -> NDArray[np.float64]:
        """Convert a subpath into its polyline (shape (n, 2)).

        Move and Line contribute their end point, a Cubic is polygonized into
        _curve_steps_ segments, a Close inside the run returns to the subpath start.
        A trailing Close is expected to be removed by the caller.
        """
        pts: List[NDArray[np.float64]] = []
        pen: Optional[Point] = None
        start: Optional[Point] = None

        for cmd in commands:
            if isinstance(cmd, Move):
                pen = start = Point(cmd.x, cmd.y)
                pts.append(np.array([[cmd.x, cmd.y]], dtype=np.float64))
            elif isinstance(cmd, Line):
                pen = Point(cmd.x, cmd.y)
                pts.append(np.array([[cmd.x, cmd.y]], dtype=np.float64))
            elif isinstance(cmd, Cubic) and pen is not None:
                control_points = np.array(
                    [pen.to_tuple(), (cmd.x1, cmd.y1), (cmd.x2, cmd.y2), (cmd.x, cmd.y)], dtype=np.float64
                )
                buffer = np.empty((curve_steps, 2), dtype=np.float64)
                BezierCurve.polygonize_cubic_curve_inplace(control_points, curve_steps, buffer, 0, skip_first=True)
                pts.append(buffer)
                pen = Point(cmd.x, cmd.y)
            elif isinstance(cmd, Close) and start is not None:
                pen = start
                pts.append(np.array([start.to_tuple()], dtype=np.float64))

        if not pts:
            return np.empty((0, 2), dtype=np.float64)
        return np.vstack(pts)

    @staticmethod
    def quantize(points: NDArray[np.float64], grid_size: float) -> NDArray[np.float64]:
        """Quantize all points to the grid; grid_size <= 0 returns the points unchanged."""
        if grid_size <= 0:
            return points
        return np.round(points / grid_size) * grid_size

    @staticmethod
    def reduce_points(points: NDArray[np.float64], tolerance: float, max_distance: float) -> NDArray[np.float64]:
        """Ramer-Douglas-Peucker reduction with point-to-segment distances and a spacing rule.

        For each run between two retained points the point farthest from their chord
        (ties keep the earliest) is retained, and both halves processed, if its
        distance exceeds _tolerance_ and it lies farther than _max_distance_ from
        both ends of the run. Otherwise the whole run is discarded.

        Every input point therefore lies within max(tolerance, max_distance) of the
        result, and neighbouring retained points are more than _max_distance_ apart
        whenever more than the two end points remain. Retained points are split
        points of the same runs on a second pass, so the reduction is idempotent.
        """
        n = len(points)
        if n <= 2:
            return points

        keep = np.zeros(n, dtype=bool)
        keep[0] = keep[-1] = True
        stack = [(0, n - 1)]
        while stack:
            first, last = stack.pop()
            if last - first < 2:
                continue
            distances = GeomMath.perpendicular_distances(points[first + 1 : last], points[first], points[last])
            idx = int(np.argmax(distances))
            split = first + 1 + idx
            if distances[idx] <= tolerance:
                continue
            to_first = np.hypot(*(points[split] - points[first]))
            to_last = np.hypot(*(points[split] - points[last]))
            if min(to_first, to_last) <= max_distance:
                continue
            keep[split] = True
            stack.append((first, split))
            stack.append((split, last))
        return points[keep]

    @staticmethod
    def simplify(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        commands: Sequence[Command],
        tolerance: float,
        max_distance: float,
        grid_size: float = 0.0,
        curve_steps: int = DEFAULT_SIMPLIFIER_SETTINGS.curve_steps,
    ) -> List[Command]:
        """Simplify the commands of one subpath.

        Args:
            commands: Commands of one subpath. A non-Move first command is coerced to Move.
            tolerance: Maximum perpendicular deviation of a point removed by the chord test.
            max_distance: Collapse distance for neighbouring points.
            grid_size: Grid to quantize the points to, 0 disables quantization.
            curve_steps: Number of segments a cubic is flattened into.

        Returns:
            The reduced commands (Move, Lines, and a Close if the input was closed), or
            an empty list if the subpath has fewer than 2 points.
        """
        working = list(commands)
        is_closed = False
        while working and isinstance(working[-1], Close):
            is_closed = True
            working.pop()

        working = PathCommandProcessor.ensure_starts_with_move(working)
        points = PathSimplifier.flatten(working, curve_steps)
        if len(points) < 2:
            logger.debug("Skipping simplification of subpath with %d point(s)", len(points))
            return []

        points = PathSimplifier.quantize(points, grid_size)
        reduced = PathSimplifier.reduce_points(points, tolerance, max_distance)

        result: List[Command] = [Move(float(reduced[0, 0]), float(reduced[0, 1]))]
        result.extend(Line(float(x), float(y)) for x, y in reduced[1:])
        if is_closed:
            result.append(Close())

        logger.debug("Simplified subpath from %d to %d points", len(points), len(reduced))
        return result

    @staticmethod
    def resolve_selection(selection: Sequence[CommandSelection]) -> Tuple[str, int, int]:
        """Check that a selection forms one run inside a single subpath.

        Returns:
            Tuple (subpath_id, first_index, last_index) of the selected range.

        Raises:
            SelectionError: If the selection is empty, spans several subpaths, or holds fewer than 2 commands.
        """
        groups: Dict[str, List[int]] = {}
        for item in selection:
            groups.setdefault(item.subpath_id, []).append(item.index)

        if not groups:
            raise SelectionError("Selection is empty")
        if len(groups) > 1:
            raise SelectionError(f"Selection spans {len(groups)} subpaths: {sorted(groups)}")

        ((subpath_id, indices),) = groups.items()
        unique = sorted(set(indices))
        if len(unique) < 2:
            raise SelectionError("At least 2 commands must be selected")
        return subpath_id, unique[0], unique[-1]

    @staticmethod
    def simplify_range(
        commands: Sequence[Command],
        first: int,
        last: int,
        request_template: SimplificationRequest,
    ) -> Optional[List[Command]]:
        """Simplify commands[first:last+1] inside a subpath and return the whole new subpath.

        A range that does not start at the subpath start is simplified together with
        the pen position before it, which stays fixed. Returns None if nothing can be
        simplified.
        """
        commands = list(commands)
        if first < 0 or last >= len(commands) or first > last:
            raise SelectionError(f"Range [{first}, {last}] is outside a subpath of {len(commands)} commands")

        run = commands[first : last + 1]
        context = None
        if first > 0:
            context = PathCommandProcessor.pen_position(commands, first)
            if context is not None:
                run = [Move(context.x, context.y)] + run

        simplified = PathSimplifier.simplify(
            run,
            request_template.tolerance,
            request_template.max_distance,
            request_template.grid_size,
            request_template.curve_steps,
        )
        if not simplified:
            return None
        if context is not None:
            simplified = simplified[1:]
        return commands[:first] + simplified + commands[last + 1 :]

    @staticmethod
    def snap_command(command: Command, grid_size: float) -> Command:
        """Quantize all coordinates of a command, control points included, to the grid."""
        if grid_size <= 0 or isinstance(command, Close):
            return command
        s = GeomMath.snap_value
        if isinstance(command, Cubic):
            return Cubic(
                s(command.x1, grid_size),
                s(command.y1, grid_size),
                s(command.x2, grid_size),
                s(command.y2, grid_size),
                s(command.x, grid_size),
                s(command.y, grid_size),
            )
        return type(command)(s(command.x, grid_size), s(command.y, grid_size))

    @staticmethod
    def smooth(
        commands: Sequence[Command],
        smoothing_factor: float = DEFAULT_SIMPLIFIER_SETTINGS.smoothing_factor,
        grid_size: float = 0.0,
        indices: Optional[Iterable[int]] = None,
    ) -> List[Command]:
        """Replace interior Line corners of one subpath by Cubic commands.

        A Line is converted if it follows a Line or Cubic and is followed by one.
        With _prev_, _corner_ and _next_ being the end points of the predecessor,
        the Line itself and the successor, the Cubic keeps the end point _corner_ and gets
            control1 = corner - unit(corner - prev) * d
            control2 = corner + unit(next - corner) * d
        with d = min(|corner - prev|, |next - corner|) * _smoothing_factor_.
        Corners next to a segment shorter than MIN_SEGMENT_LENGTH stay Lines.

        A trailing Close is first turned into a Line back to the subpath start (unless
        the pen is already there), so the last corner before it is smoothed too; the
        Close is appended again afterwards.

        Args:
            commands: Commands of one subpath. A non-Move first command is coerced to Move.
            smoothing_factor: Share of the shorter neighbouring segment used as handle length.
            grid_size: If > 0, all coordinates of the result are quantized to this grid.
            indices: Indices of the commands that may be converted; None allows every command.

        Returns:
            The smoothed commands; fewer than 2 commands are returned unchanged.
        """
        if len(commands) < 2:
            return list(commands)

        working = list(commands)
        is_closed = isinstance(working[-1], Close)
        if is_closed:
            working.pop()
        shift = len(working)
        working = PathCommandProcessor.ensure_starts_with_move(working)
        shift -= len(working)
        if not working:
            return list(commands)

        start = Point(working[0].x, working[0].y)
        if is_closed and not PathCommandProcessor.pen_position(working, len(working)).is_close(start):
            working.append(Line(start.x, start.y))

        allowed = None if indices is None else {idx - shift for idx in indices}
        result = list(working)
        converted = 0
        for idx in range(1, len(working) - 1):
            prev, cmd, nxt = working[idx - 1], working[idx], working[idx + 1]
            if allowed is not None and idx not in allowed:
                continue
            if not isinstance(cmd, Line) or not isinstance(prev, (Line, Cubic)) or not isinstance(nxt, (Line, Cubic)):
                continue
            prev_pt, corner, next_pt = Point(prev.x, prev.y), Point(cmd.x, cmd.y), Point(nxt.x, nxt.y)
            in_length = prev_pt.distance_to(corner)
            out_length = corner.distance_to(next_pt)
            if in_length < MIN_SEGMENT_LENGTH or out_length < MIN_SEGMENT_LENGTH:
                continue
            offset = min(in_length, out_length) * smoothing_factor
            control1 = corner - (corner - prev_pt) * (offset / in_length)
            control2 = corner + (next_pt - corner) * (offset / out_length)
            result[idx] = Cubic(control1.x, control1.y, control2.x, control2.y, corner.x, corner.y)
            converted += 1

        if grid_size > 0:
            result = [PathSimplifier.snap_command(cmd, grid_size) for cmd in result]
        if is_closed:
            result.append(Close())

        logger.debug("Smoothed %d of %d commands", converted, len(commands))
        return result

    @staticmethod
    def smooth_range(
        commands: Sequence[Command],
        first: int,
        last: int,
        smoothing_factor: float = DEFAULT_SIMPLIFIER_SETTINGS.smoothing_factor,
        grid_size: float = 0.0,
    ) -> Optional[List[Command]]:
        """Smooth the corners of commands[first:last+1] and return the whole new subpath.

        Neighbours outside the range still define the corner directions. Returns None
        if the subpath does not change.
        """
        commands = list(commands)
        if first < 0 or last >= len(commands) or first > last:
            raise SelectionError(f"Range [{first}, {last}] is outside a subpath of {len(commands)} commands")

        smoothed = PathSimplifier.smooth(commands, smoothing_factor, grid_size, range(first, last + 1))
        if smoothed == commands:
            return None
        return smoothed


###############################################################################
# Entry points
###############################################################################


def simplify(request: SimplificationRequest) -> List[Command]:
    """Stateless simplification of the subpath in _request_."""
    return PathSimplifier.simplify(
        request.commands, request.tolerance, request.max_distance, request.grid_size, request.curve_steps
    )


def _resolve_in(
    subpaths: Mapping[str, Sequence[Command]], selection: Sequence[CommandSelection]
) -> Tuple[str, int, int]:
    subpath_id, first, last = PathSimplifier.resolve_selection(selection)
    if subpath_id not in subpaths:
        raise SelectionError(f"Unknown subpath '{subpath_id}'")
    return subpath_id, first, last


def _persist(store: DocumentStore, results: Dict[str, List[Command]]) -> List[str]:
    """Replace all _results_ in the store after a single history snapshot."""
    if results:
        store.push_history_snapshot()
        for subpath_id, commands in results.items():
            store.replace_subpath_commands(subpath_id, commands)
    return list(results)


def simplify_selection(
    store: DocumentStore,
    subpaths: Mapping[str, Sequence[Command]],
    selection: Sequence[CommandSelection],
    settings: SimplifierSettings = DEFAULT_SIMPLIFIER_SETTINGS,
    grid: GridSettings = DEFAULT_GRID_SETTINGS,
) -> bool:
    """Simplify the selected commands of one subpath and persist the result.

    The selection is rejected (nothing happens) when it spans several subpaths.

    Returns:
        True if the store received replacement commands.
    """
    try:
        subpath_id, first, last = _resolve_in(subpaths, selection)
        template = SimplificationRequest.from_settings((), settings, grid)
        new_commands = PathSimplifier.simplify_range(subpaths[subpath_id], first, last, template)
    except SelectionError as e:
        logger.warning("Simplification rejected: %s", e)
        return False

    if new_commands is None:
        return False
    return bool(_persist(store, {subpath_id: new_commands}))


def simplify_subpaths(
    store: DocumentStore,
    subpaths: Mapping[str, Sequence[Command]],
    subpath_ids: Sequence[str],
    settings: SimplifierSettings = DEFAULT_SIMPLIFIER_SETTINGS,
    grid: GridSettings = DEFAULT_GRID_SETTINGS,
) -> List[str]:
    """Simplify whole subpaths, each one independently, with one history snapshot for all.

    Returns:
        Ids of the subpaths that were replaced.
    """
    results: Dict[str, List[Command]] = {}
    for subpath_id in subpath_ids:
        commands = subpaths.get(subpath_id)
        if commands is None:
            logger.warning("Skipping unknown subpath '%s'", subpath_id)
            continue
        simplified = simplify(SimplificationRequest.from_settings(commands, settings, grid))
        if simplified:
            results[subpath_id] = simplified
    return _persist(store, results)


def smooth_selection(
    store: DocumentStore,
    subpaths: Mapping[str, Sequence[Command]],
    selection: Sequence[CommandSelection],
    settings: SimplifierSettings = DEFAULT_SIMPLIFIER_SETTINGS,
    grid: GridSettings = DEFAULT_GRID_SETTINGS,
) -> bool:
    """Smooth the corners of the selected commands of one subpath and persist the result.

    Selections are validated like for simplify_selection().

    Returns:
        True if the store received replacement commands.
    """
    try:
        subpath_id, first, last = _resolve_in(subpaths, selection)
        new_commands = PathSimplifier.smooth_range(
            subpaths[subpath_id], first, last, settings.smoothing_factor, grid.effective_size
        )
    except SelectionError as e:
        logger.warning("Smoothing rejected: %s", e)
        return False

    if new_commands is None:
        return False
    return bool(_persist(store, {subpath_id: new_commands}))


def smooth_subpaths(
    store: DocumentStore,
    subpaths: Mapping[str, Sequence[Command]],
    subpath_ids: Sequence[str],
    settings: SimplifierSettings = DEFAULT_SIMPLIFIER_SETTINGS,
    grid: GridSettings = DEFAULT_GRID_SETTINGS,
) -> List[str]:
    """Smooth whole subpaths with one history snapshot for all; unchanged subpaths are skipped.

    Returns:
        Ids of the subpaths that were replaced.
    """
    results: Dict[str, List[Command]] = {}
    for subpath_id in subpath_ids:
        commands = subpaths.get(subpath_id)
        if commands is None:
            logger.warning("Skipping unknown subpath '%s'", subpath_id)
            continue
        smoothed = PathSimplifier.smooth(commands, settings.smoothing_factor, grid.effective_size)
        if smoothed != list(commands):
            results[subpath_id] = smoothed
    return _persist(store, results)
