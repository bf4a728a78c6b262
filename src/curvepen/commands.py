"""Path command model and command-sequence utilities.

A subpath is an ordered sequence of commands that starts with a Move. The
commands are a tagged union of frozen dataclasses, so each command only carries
the coordinates that belong to its kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from curvepen.common import PathCmds
from curvepen.config import DEFAULT_CURVE_TOOL_CONFIG, CurveToolConfig
from curvepen.geom import GeomMath, Point

logger = logging.getLogger(__name__)

###############################################################################
# Commands
###############################################################################


@dataclass(frozen=True)
class Move:
    """MoveTo: start a subpath at (x, y)."""

    x: float
    y: float

    cmd: ClassVar[PathCmds] = "M"


@dataclass(frozen=True)
class Line:
    """LineTo: straight line from the current point to (x, y)."""

    x: float
    y: float

    cmd: ClassVar[PathCmds] = "L"


@dataclass(frozen=True)
class Cubic:
    """Cubic Bezier from the current point to (x, y) with controls (x1, y1) and (x2, y2)."""

    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float

    cmd: ClassVar[PathCmds] = "C"

    @property
    def control1(self) -> Point:
        """First control point."""
        return Point(self.x1, self.y1)

    @property
    def control2(self) -> Point:
        """Second control point."""
        return Point(self.x2, self.y2)


@dataclass(frozen=True)
class Close:
    """ClosePath: line back to the start of the subpath."""

    cmd: ClassVar[PathCmds] = "Z"


Command = Union[Move, Line, Cubic, Close]


###############################################################################
# PathCommandInfo
###############################################################################


@dataclass(frozen=True)
class PathCommandInfo:
    """Metadata for path commands.

    Attributes:
        coordinates: Number of scalar coordinates this command carries
        is_curve: Whether this command represents a curve
        is_drawing: Whether this command draws (vs. move)
    """

    coordinates: int
    is_curve: bool
    is_drawing: bool = True


# Command registry with metadata
COMMAND_INFO = {
    "M": PathCommandInfo(2, False, False),  # MoveTo - not drawing
    "L": PathCommandInfo(2, False, True),  # LineTo - drawing
    "C": PathCommandInfo(6, True, True),  # Cubic - curve, drawing
    "Z": PathCommandInfo(0, False, True),  # ClosePath - drawing, no coordinates
}

_COMMAND_TYPES = {"M": Move, "L": Line, "C": Cubic, "Z": Close}


class CommandAdjacencyError(ValueError):
    """Raised when a command may not follow its predecessor within a subpath."""


###############################################################################
# PathCommandProcessor
###############################################################################


class PathCommandProcessor:
    """Static helpers operating on command sequences."""

    @staticmethod
    def is_curve_command(command: Command) -> bool:
        """Return True if command represents a curve."""
        return COMMAND_INFO[command.cmd].is_curve

    @staticmethod
    def is_drawing_command(command: Command) -> bool:
        """Return True if command draws (vs. move)."""
        return COMMAND_INFO[command.cmd].is_drawing

    @staticmethod
    def end_point(command: Command) -> Optional[Point]:
        """Return the point the pen rests on after _command_, None for Close."""
        if isinstance(command, Close):
            return None
        return Point(command.x, command.y)

    @staticmethod
    def to_dict(command: Command) -> dict:
        """Convert a command to a dictionary for the host store."""
        if isinstance(command, Close):
            return {"command": "Z"}
        if isinstance(command, Cubic):
            return {
                "command": "C",
                "x1": command.x1,
                "y1": command.y1,
                "x2": command.x2,
                "y2": command.y2,
                "x": command.x,
                "y": command.y,
            }
        return {"command": command.cmd, "x": command.x, "y": command.y}

    @staticmethod
    def from_dict(data: dict) -> Command:
        """Create a command from a dictionary.

        Raises:
            ValueError: If the command letter is unknown or a coordinate is missing.
        """
        letter = data.get("command")
        if letter not in _COMMAND_TYPES:
            raise ValueError(f"Unknown command '{letter}'")
        try:
            if letter == "Z":
                return Close()
            if letter == "C":
                return Cubic(
                    float(data["x1"]),
                    float(data["y1"]),
                    float(data["x2"]),
                    float(data["y2"]),
                    float(data["x"]),
                    float(data["y"]),
                )
            return _COMMAND_TYPES[letter](float(data["x"]), float(data["y"]))
        except KeyError as e:
            raise ValueError(f"Command '{letter}' is missing coordinate {e}") from e

    @staticmethod
    def validate_adjacency(previous: Optional[Command], command: Command) -> None:
        """Check that _command_ may follow _previous_ inside one subpath.

        Raises:
            CommandAdjacencyError: For a Close directly after a Close, or a Move directly after a Move.
        """
        if previous is None:
            return
        if isinstance(previous, Close) and isinstance(command, Close):
            raise CommandAdjacencyError("Close command cannot follow a Close command")
        if isinstance(previous, Move) and isinstance(command, Move):
            raise CommandAdjacencyError("Move command cannot follow a Move command")

    @staticmethod
    def validate_subpath(commands: Sequence[Command]) -> None:
        """Validate a subpath: non-empty, Move first, no Move after the start, valid adjacency.

        Raises:
            ValueError: If the sequence is not a valid subpath.
        """
        if not commands:
            raise ValueError("A subpath needs at least one command")
        if not isinstance(commands[0], Move):
            raise ValueError(f"A subpath must start with 'M', got '{commands[0].cmd}'")
        for idx in range(1, len(commands)):
            PathCommandProcessor.validate_adjacency(commands[idx - 1], commands[idx])
            if isinstance(commands[idx], Move):
                raise ValueError(f"Unexpected 'M' at command index {idx} inside a subpath")

    @staticmethod
    def insert_command(commands: Sequence[Command], index: int, command: Command) -> List[Command]:
        """Return a copy of _commands_ with _command_ inserted at _index_.

        An insertion that would create an invalid neighbour pair is dropped and the
        unchanged input is returned as a new list.
        """
        result = list(commands)
        index = max(0, min(index, len(result)))
        previous = result[index - 1] if index > 0 else None
        following = result[index] if index < len(result) else None
        try:
            PathCommandProcessor.validate_adjacency(previous, command)
            if following is not None:
                PathCommandProcessor.validate_adjacency(command, following)
        except CommandAdjacencyError as e:
            logger.warning("Dropping insertion of '%s' at index %d: %s", command.cmd, index, e)
            return list(commands)
        result.insert(index, command)
        return result

    @staticmethod
    def ensure_starts_with_move(commands: Sequence[Command]) -> List[Command]:
        """Return _commands_ with a first command coerced to Move at its end point.

        A leading Close carries no coordinates and is dropped.
        """
        result = list(commands)
        while result and isinstance(result[0], Close):
            logger.debug("Dropping leading Close command")
            result.pop(0)
        if result and PathCommandProcessor.is_drawing_command(result[0]):
            first = result[0]
            logger.debug("Coercing leading '%s' command to 'M'", first.cmd)
            result[0] = Move(first.x, first.y)
        return result

    @staticmethod
    def round_command(command: Command, precision: int) -> Command:
        """Round all coordinates of a command to _precision_ decimals."""
        if isinstance(command, Close):
            return command
        r = GeomMath.round_value
        if isinstance(command, Cubic):
            return Cubic(
                r(command.x1, precision),
                r(command.y1, precision),
                r(command.x2, precision),
                r(command.y2, precision),
                r(command.x, precision),
                r(command.y, precision),
            )
        return type(command)(r(command.x, precision), r(command.y, precision))

    @staticmethod
    def round_commands(commands: Iterable[Command], precision: int) -> List[Command]:
        """Round all coordinates of all commands."""
        return [PathCommandProcessor.round_command(cmd, precision) for cmd in commands]

    @staticmethod
    def anchor_points(commands: Sequence[Command]) -> NDArray[np.float64]:
        """Return the end points of all non-Close commands as array of shape (n, 2)."""
        pts = [(cmd.x, cmd.y) for cmd in commands if not isinstance(cmd, Close)]
        if not pts:
            return np.empty((0, 2), dtype=np.float64)
        return np.array(pts, dtype=np.float64)

    @staticmethod
    def split_into_subpaths(commands: Sequence[Command]) -> List[List[Command]]:
        """Split a command sequence into subpaths at each Move."""
        subpaths: List[List[Command]] = []
        current: List[Command] = []
        for cmd in commands:
            if isinstance(cmd, Move) and current:
                subpaths.append(current)
                current = []
            current.append(cmd)
        if current:
            subpaths.append(current)
        return subpaths

    @staticmethod
    def pen_position(commands: Sequence[Command], index: int) -> Optional[Point]:
        """Pen position before the command at _index_, honouring Close."""
        subpath_start: Optional[Point] = None
        pen: Optional[Point] = None
        for cmd in commands[:index]:
            if isinstance(cmd, Move):
                subpath_start = Point(cmd.x, cmd.y)
                pen = subpath_start
            elif isinstance(cmd, Close):
                pen = subpath_start
            else:
                pen = Point(cmd.x, cmd.y)
        return pen

    @staticmethod
    def lines_to_curves(
        commands: Sequence[Command],
        indices: Optional[Iterable[int]] = None,
        config: CurveToolConfig = DEFAULT_CURVE_TOOL_CONFIG,
    ) -> List[Command]:
        """Convert Line commands into Cubic commands with estimated control points.

        Args:
            commands: The subpath commands.
            indices: Indices of the commands to convert; None converts every Line.
            config: Source of the estimator constants (tension, control_ratio, precision).

        Returns:
            A new command list; commands that are not Lines or have no predecessor stay unchanged.
        """
        result = list(commands)
        targets = range(len(result)) if indices is None else sorted(set(indices))
        for idx in targets:
            if idx <= 0 or idx >= len(result) or not isinstance(result[idx], Line):
                continue
            prev = PathCommandProcessor.pen_position(result, idx)
            if prev is None:
                continue
            current = Point(result[idx].x, result[idx].y)
            nxt = None
            if idx + 1 < len(result) and isinstance(result[idx + 1], (Line, Cubic)):
                nxt = Point(result[idx + 1].x, result[idx + 1].y)
            cp1, cp2 = GeomMath.estimate_control_points(
                prev, current, nxt, tension=config.tension, control_ratio=config.control_ratio
            )
            result[idx] = PathCommandProcessor.round_command(
                Cubic(cp1.x, cp1.y, cp2.x, cp2.y, current.x, current.y), config.precision
            )
        return result

    @staticmethod
    def curves_to_lines(commands: Sequence[Command], indices: Optional[Iterable[int]] = None) -> List[Command]:
        """Replace Cubic commands by Lines to their end points."""
        result = list(commands)
        targets = range(len(result)) if indices is None else sorted(set(indices))
        for idx in targets:
            if 0 <= idx < len(result) and PathCommandProcessor.is_curve_command(result[idx]):
                result[idx] = Line(result[idx].x, result[idx].y)
        return result

    @staticmethod
    def command_tuples(commands: Sequence[Command]) -> List[Tuple]:
        """Commands as plain tuples (letter, coords...) with the coordinates in path-data order."""
        out: List[Tuple] = []
        for cmd in commands:
            if isinstance(cmd, Close):
                out.append(("Z",))
            elif isinstance(cmd, Cubic):
                out.append(("C", cmd.x1, cmd.y1, cmd.x2, cmd.y2, cmd.x, cmd.y))
            else:
                out.append((cmd.cmd, cmd.x, cmd.y))
        return out
