"""Central module containing enums and type definitions for curve authoring."""

from __future__ import annotations

from enum import Enum
from typing import Literal

###############################################################################
# Types
###############################################################################


PathCmds = Literal[  # Type-Definition for the path commands produced and consumed by curvepen
    # MoveTo (2) - start a new subpath and move the current point to (x,y)
    "M",
    # LineTo (2) - draw a straight line from the current point to (x,y)
    "L",
    # Cubic Bezier To (6) - draw a cubic Bezier curve with two control points and an endpoint (x,y)
    "C",
    # ClosePath (0) - close subpath by drawing a line from the current point to start point
    "Z",
]


###############################################################################
# Enums
###############################################################################


class PointType(Enum):
    """Handle continuity class of an authored anchor."""

    CORNER = "corner"
    SMOOTH = "smooth"
    ASYMMETRIC = "asymmetric"

    def next_in_cycle(self) -> PointType:
        """Return the type following this one in the toggle cycle CORNER -> SMOOTH -> ASYMMETRIC -> CORNER."""
        return _POINT_TYPE_CYCLE[self]


_POINT_TYPE_CYCLE = {
    PointType.CORNER: PointType.SMOOTH,
    PointType.SMOOTH: PointType.ASYMMETRIC,
    PointType.ASYMMETRIC: PointType.CORNER,
}


class CurveToolMode(Enum):
    """Modes of the curve authoring state machine."""

    INACTIVE = "inactive"
    CREATING = "creating"
    EDITING = "editing"
    DRAGGING_HANDLE = "dragging_handle"
    DRAGGING_POINT = "dragging_point"


class DragType(Enum):
    """What a drag operation moves."""

    POINT = "point"
    HANDLE_IN = "handle_in"
    HANDLE_OUT = "handle_out"


class DragPhase(Enum):
    """Sub-state of a drag.

    ARMED: pointer went down on empty space, a point was created, but the pointer has
        not yet moved far enough to turn the gesture into a handle drag.
    CONFIRMED: the drag is live and every pointer move is applied.
    """

    ARMED = "armed"
    CONFIRMED = "confirmed"
