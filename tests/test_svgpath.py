"""Test module for the curvepen.svgpath module.

The tests are grouped into test cases, each of which is a function prefixed with "test_".
The tests are run using pytest.
"""

import pytest

from curvepen.commands import COMMAND_INFO, Close, Cubic, Line, Move
from curvepen.svgpath import SvgPathData


def test_format_absolute_commands():
    """Test that commands are written with absolute coordinates."""
    commands = [Move(0, 0), Line(10, 0), Cubic(1, 2, 3, 4, 5, 6), Close()]
    assert SvgPathData.format(commands) == "M 0 0 L 10 0 C 1 2 3 4 5 6 Z"


def test_format_coordinate_counts():
    """Test that each written command carries the coordinate count of its kind."""
    commands = [Move(0, 0), Line(10, 0), Cubic(1, 2, 3, 4, 5, 6), Close()]
    for command in commands:
        letter, *coords = SvgPathData.format([command]).split()
        assert letter == command.cmd
        assert len(coords) == COMMAND_INFO[letter].coordinates


def test_format_precision():
    """Test that coordinates are rounded when a precision is given."""
    assert SvgPathData.format([Move(1.23456, -0.004)], precision=2) == "M 1.23 0"


def test_parse_absolute():
    """Test parsing of absolute commands."""
    assert SvgPathData.parse("M10 20 L30 40 C 1 2 3 4 5 6 Z") == [
        Move(10, 20),
        Line(30, 40),
        Cubic(1, 2, 3, 4, 5, 6),
        Close(),
    ]


def test_parse_relative():
    """Test that relative commands are resolved against the current point."""
    assert SvgPathData.parse("m 10 10 l 5 0 c 1 1 2 2 3 3") == [
        Move(10, 10),
        Line(15, 10),
        Cubic(16, 11, 17, 12, 18, 13),
    ]


def test_parse_horizontal_vertical():
    """Test that H and V become lines."""
    assert SvgPathData.parse("M 1 2 H 10 V 20 h -5 v -5") == [
        Move(1, 2),
        Line(10, 2),
        Line(10, 20),
        Line(5, 20),
        Line(5, 15),
    ]


def test_parse_implicit_lines_after_move():
    """Test that further pairs after a MoveTo are LineTo commands."""
    assert SvgPathData.parse("M 0 0 10 0 10 10") == [Move(0, 0), Line(10, 0), Line(10, 10)]


def test_parse_close_resets_current_point():
    """Test that a relative command after Z starts from the subpath start."""
    assert SvgPathData.parse("M 5 5 L 10 5 Z l 1 1") == [Move(5, 5), Line(10, 5), Close(), Line(6, 6)]


def test_parse_compact_numbers():
    """Test numbers without separators and exponents."""
    assert SvgPathData.parse("M-1.5-2L1e1,.5") == [Move(-1.5, -2), Line(10, 0.5)]


@pytest.mark.parametrize("path_string", ["M 0 0 Q 1 1 2 2", "M 0 0 A 1 1 0 0 1 2 2", "M 0 0 S 1 1 2 2"])
def test_parse_unsupported_commands(path_string):
    """Test that unsupported commands raise ValueError."""
    with pytest.raises(ValueError):
        SvgPathData.parse(path_string)


def test_parse_wrong_argument_count():
    """Test that an incomplete argument list raises ValueError."""
    with pytest.raises(ValueError):
        SvgPathData.parse("M 0 0 L 1")


def test_beautify():
    """Test normalization of a relative path string."""
    assert SvgPathData.beautify("m1 1l1.004 0z", precision=2) == "M 1 1 L 2 1 Z"


def test_format_subpaths():
    """Test that each subpath gets its own string."""
    commands = [Move(0, 0), Line(1, 0), Close(), Move(5, 5), Line(6, 6)]
    assert SvgPathData.format_subpaths(commands) == ["M 0 0 L 1 0 Z", "M 5 5 L 6 6"]
