"""SVG path-data strings for curvepen command sequences"""

from __future__ import annotations

import re
from typing import ClassVar, List, Optional, Sequence

from curvepen.commands import COMMAND_INFO, Close, Command, Cubic, Line, Move, PathCommandProcessor


class SvgPathData:
    """
    This class provides static methods to convert command sequences from and to
    SVG path-data strings (the "d" attribute of an SVG path element).
    Supported commands (command : number of values : command-character):
        MoveTo:           2: Mm
        LineTo:           2: Ll   1: Hh(x)   1:Vv(y)
        CubicBezier:      6: Cc
        ClosePath:        0: Zz
    H and V are read as Line commands.
    """

    # Command letters accepted by the tokenizer (all SVG commands, unsupported ones are rejected later):
    SVG_CMDS: ClassVar[str] = "MmLlHhVvCcSsQqTtAaZz"
    # Definition of a number:
    SVG_ARGS: ClassVar[str] = r"[-+]?[0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?"

    @staticmethod
    def _fmt(value: float, precision: Optional[int]) -> str:
        if precision is not None:
            value = round(value, precision)
        return f"{value + 0.0:g}"

    @staticmethod
    def format(commands: Sequence[Command], precision: Optional[int] = None) -> str:
        """
        Convert _commands_ into an SVG path-data string using absolute coordinates.

        Args:
            commands (Sequence[Command]): commands to convert
            precision (Optional[int], optional): number of decimals to round to. Defaults to None.

        Returns:
            str: path-data string like "M 0 0 L 10 0 Z"
        """
        parts: List[str] = []
        for letter, *coords in PathCommandProcessor.command_tuples(commands):
            parts.append(" ".join([letter] + [SvgPathData._fmt(v, precision) for v in coords]))
        return " ".join(parts)

    @staticmethod
    def parse(path_string: str) -> List[Command]:
        """
        Parse an SVG path-data string into commands with absolute coordinates.

        Relative commands are resolved against the current point, "Z" moves the
        current point back to the start of its subpath. Additional coordinate pairs
        after a MoveTo are read as LineTo, as defined by SVG.

        Args:
            path_string (str): SVG path string input

        Returns:
            List[Command]: the parsed commands

        Raises:
            ValueError: For unsupported commands (S, Q, T, A) or an incomplete argument list.
        """
        org_commands = re.findall(f"[{SvgPathData.SVG_CMDS}][^{SvgPathData.SVG_CMDS}]*", path_string)
        result: List[Command] = []
        # Current point and start point of the current subpath (absolute)
        cur_x, cur_y = 0.0, 0.0
        start_x, start_y = 0.0, 0.0

        for command in org_commands:
            letter = command[0]
            args = [float(a) for a in re.findall(SvgPathData.SVG_ARGS, command[1:])]
            upper = letter.upper()
            relative = letter.islower()

            if upper == "Z":
                result.append(Close())
                cur_x, cur_y = start_x, start_y
                continue

            if upper in ("H", "V"):
                batch_size = 1
            elif upper in COMMAND_INFO:
                batch_size = COMMAND_INFO[upper].coordinates
            else:
                raise ValueError(f"Unsupported path command '{letter}'")
            if not args or len(args) % batch_size:
                raise ValueError(f"Command '{letter}' expects a multiple of {batch_size} arguments, got {len(args)}")

            for i in range(0, len(args), batch_size):
                batch = args[i : i + batch_size]
                off_x, off_y = (cur_x, cur_y) if relative else (0.0, 0.0)
                if upper == "M":
                    x, y = batch[0] + off_x, batch[1] + off_y
                    if i == 0:
                        result.append(Move(x, y))
                        start_x, start_y = x, y
                    else:
                        result.append(Line(x, y))
                elif upper == "L":
                    x, y = batch[0] + off_x, batch[1] + off_y
                    result.append(Line(x, y))
                elif upper == "H":
                    x, y = batch[0] + off_x, cur_y
                    result.append(Line(x, y))
                elif upper == "V":
                    x, y = cur_x, batch[0] + off_y
                    result.append(Line(x, y))
                else:  # "C"
                    x, y = batch[4] + off_x, batch[5] + off_y
                    result.append(
                        Cubic(batch[0] + off_x, batch[1] + off_y, batch[2] + off_x, batch[3] + off_y, x, y)
                    )
                cur_x, cur_y = x, y

        return result

    @staticmethod
    def beautify(path_string: str, precision: Optional[int] = None) -> str:
        """Normalize a path-data string: absolute coordinates, one command per letter, optional rounding."""
        return SvgPathData.format(SvgPathData.parse(path_string), precision)

    @staticmethod
    def format_subpaths(commands: Sequence[Command], precision: Optional[int] = None) -> List[str]:
        """Format each subpath of _commands_ into its own path-data string."""
        return [SvgPathData.format(sub, precision) for sub in PathCommandProcessor.split_into_subpaths(commands)]
