"""Test module for the command model in curvepen.commands

The tests are run using pytest.
"""

import dataclasses

import numpy as np
import pytest

from curvepen.commands import (
    COMMAND_INFO,
    Close,
    CommandAdjacencyError,
    Cubic,
    Line,
    Move,
    PathCommandProcessor,
)
from curvepen.config import CurveToolConfig
from curvepen.geom import Point

###############################################################################
# Command model
###############################################################################


class TestCommandModel:
    """Command dataclasses and their metadata."""

    def test_command_letters(self):
        """Each command kind carries its letter."""
        assert [c.cmd for c in (Move(0, 0), Line(1, 1), Cubic(0, 0, 1, 1, 2, 2), Close())] == ["M", "L", "C", "Z"]

    def test_commands_are_frozen(self):
        """Commands cannot be modified."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            Move(0, 0).x = 5  # type: ignore[misc]

    def test_command_info(self):
        """Curve and drawing flags."""
        assert COMMAND_INFO["C"].is_curve
        assert not COMMAND_INFO["M"].is_drawing
        assert PathCommandProcessor.is_curve_command(Cubic(0, 0, 1, 1, 2, 2))
        assert not PathCommandProcessor.is_drawing_command(Move(0, 0))
        assert PathCommandProcessor.is_drawing_command(Close())

    def test_cubic_control_points(self):
        """Control point accessors."""
        cubic = Cubic(1, 2, 3, 4, 5, 6)
        assert cubic.control1 == Point(1, 2)
        assert cubic.control2 == Point(3, 4)

    def test_end_point(self):
        """Close has no end point."""
        assert PathCommandProcessor.end_point(Line(3, 4)) == Point(3, 4)
        assert PathCommandProcessor.end_point(Close()) is None


class TestCommandDicts:
    """Dictionary conversion for the host store."""

    @pytest.mark.parametrize("command", [Move(1, 2), Line(3, 4), Cubic(1, 2, 3, 4, 5, 6), Close()])
    def test_round_trip(self, command):
        """to_dict/from_dict restore the command."""
        assert PathCommandProcessor.from_dict(PathCommandProcessor.to_dict(command)) == command

    def test_unknown_letter(self):
        """Unknown letters are rejected."""
        with pytest.raises(ValueError):
            PathCommandProcessor.from_dict({"command": "Q", "x": 0, "y": 0})

    def test_missing_coordinate(self):
        """Missing coordinates are rejected."""
        with pytest.raises(ValueError, match="missing"):
            PathCommandProcessor.from_dict({"command": "C", "x": 0, "y": 0})


###############################################################################
# Validation
###############################################################################


class TestValidation:
    """Adjacency rules and subpath validation."""

    def test_close_after_close(self):
        """Close may not follow Close."""
        with pytest.raises(CommandAdjacencyError):
            PathCommandProcessor.validate_adjacency(Close(), Close())

    def test_move_after_move(self):
        """Move may not follow Move."""
        with pytest.raises(CommandAdjacencyError):
            PathCommandProcessor.validate_adjacency(Move(0, 0), Move(1, 1))

    def test_valid_pairs(self):
        """Regular pairs pass."""
        PathCommandProcessor.validate_adjacency(None, Close())
        PathCommandProcessor.validate_adjacency(Move(0, 0), Line(1, 1))
        PathCommandProcessor.validate_adjacency(Line(1, 1), Close())

    def test_validate_subpath(self):
        """A subpath must start with Move and contain no further Move."""
        PathCommandProcessor.validate_subpath([Move(0, 0), Line(1, 1), Close()])
        with pytest.raises(ValueError):
            PathCommandProcessor.validate_subpath([])
        with pytest.raises(ValueError):
            PathCommandProcessor.validate_subpath([Line(0, 0)])
        with pytest.raises(ValueError):
            PathCommandProcessor.validate_subpath([Move(0, 0), Line(1, 1), Move(2, 2)])

    def test_insert_command(self):
        """Valid insertions are applied to a copy."""
        commands = [Move(0, 0), Line(10, 0)]
        result = PathCommandProcessor.insert_command(commands, 1, Line(5, 5))
        assert result == [Move(0, 0), Line(5, 5), Line(10, 0)]
        assert commands == [Move(0, 0), Line(10, 0)]

    def test_insert_invalid_command_is_dropped(self, caplog):
        """An insertion creating Close-Close is dropped with a warning."""
        commands = [Move(0, 0), Line(10, 0), Close()]
        result = PathCommandProcessor.insert_command(commands, 3, Close())
        assert result == commands
        assert "Dropping insertion" in caplog.text

    def test_ensure_starts_with_move(self):
        """A leading non-Move command is coerced, a leading Close dropped."""
        assert PathCommandProcessor.ensure_starts_with_move([Line(1, 2), Line(3, 4)]) == [Move(1, 2), Line(3, 4)]
        assert PathCommandProcessor.ensure_starts_with_move([Close(), Cubic(0, 0, 1, 1, 2, 2)]) == [Move(2, 2)]
        assert not PathCommandProcessor.ensure_starts_with_move([])


###############################################################################
# Sequence utilities
###############################################################################


class TestSequenceUtilities:
    """Rounding, splitting and conversion helpers."""

    def test_round_commands(self):
        """All coordinates are rounded."""
        result = PathCommandProcessor.round_commands([Move(0.126, 1.0), Cubic(0.111, 0.2, 0.3, 0.4, 0.5, 0.6)], 2)
        assert result == [Move(0.13, 1.0), Cubic(0.11, 0.2, 0.3, 0.4, 0.5, 0.6)]

    def test_anchor_points(self):
        """Anchors of all non-Close commands."""
        pts = PathCommandProcessor.anchor_points([Move(0, 0), Cubic(1, 1, 2, 2, 3, 3), Close()])
        assert np.allclose(pts, [[0, 0], [3, 3]])
        assert PathCommandProcessor.anchor_points([Close()]).shape == (0, 2)

    def test_split_into_subpaths(self):
        """Subpaths start at each Move."""
        commands = [Move(0, 0), Line(1, 0), Close(), Move(5, 5), Line(6, 6)]
        subpaths = PathCommandProcessor.split_into_subpaths(commands)
        assert subpaths == [[Move(0, 0), Line(1, 0), Close()], [Move(5, 5), Line(6, 6)]]

    def test_pen_position(self):
        """The pen returns to the subpath start after Close."""
        commands = [Move(0, 0), Line(10, 0), Close(), Line(5, 5)]
        assert PathCommandProcessor.pen_position(commands, 0) is None
        assert PathCommandProcessor.pen_position(commands, 2) == Point(10, 0)
        assert PathCommandProcessor.pen_position(commands, 3) == Point(0, 0)

    def test_lines_to_curves_last_segment(self):
        """A trailing line uses the interpolation estimate."""
        result = PathCommandProcessor.lines_to_curves([Move(0, 0), Line(10, 0)])
        assert result == [Move(0, 0), Cubic(4, 0, 6, 0, 10, 0)]

    def test_lines_to_curves_with_successor(self):
        """A line followed by another uses the tangent blend."""
        result = PathCommandProcessor.lines_to_curves([Move(0, 0), Line(10, 0), Line(10, 10)], indices=[1])
        assert result == [Move(0, 0), Cubic(3, 0, 7, -3, 10, 0), Line(10, 10)]

    def test_lines_to_curves_custom_constants(self):
        """Estimator constants come from the config."""
        config = CurveToolConfig(control_ratio=0.25)
        result = PathCommandProcessor.lines_to_curves([Move(0, 0), Line(8, 0)], config=config)
        assert result[1] == Cubic(2, 0, 6, 0, 8, 0)

    def test_curves_to_lines(self):
        """Cubics are replaced by lines to their end points."""
        result = PathCommandProcessor.curves_to_lines([Move(0, 0), Cubic(1, 1, 2, 2, 3, 3), Line(4, 4)])
        assert result == [Move(0, 0), Line(3, 3), Line(4, 4)]

    def test_command_tuples(self):
        """Plain tuple representation."""
        tuples = PathCommandProcessor.command_tuples([Move(0, 0), Cubic(1, 2, 3, 4, 5, 6), Close()])
        assert tuples == [("M", 0, 0), ("C", 1, 2, 3, 4, 5, 6), ("Z",)]
