"""Handling geometries"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

###############################################################################
# Point
###############################################################################


@dataclass(frozen=True)
class Point:
    """A 2D point (or vector) in model space.

    Attributes:
        x (float): The x-coordinate.
        y (float): The y-coordinate.
    """

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to _other_."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_close(self, other: Point, abs_tol: float = 1e-9) -> bool:
        """True if both coordinates agree within _abs_tol_."""
        return math.isclose(self.x, other.x, abs_tol=abs_tol) and math.isclose(self.y, other.y, abs_tol=abs_tol)

    def to_tuple(self) -> Tuple[float, float]:
        """The point as tuple (x, y)."""
        return (self.x, self.y)

    @classmethod
    def from_sequence(cls, values: Sequence[Union[int, float]]) -> Point:
        """Create a Point from a sequence (x, y, ...)."""
        return cls(float(values[0]), float(values[1]))

    def to_dict(self) -> dict:
        """Convert the point to a dictionary."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> Point:
        """Create a Point from a dictionary."""
        return cls(x=float(data.get("x", 0.0)), y=float(data.get("y", 0.0)))


###############################################################################
# ViewTransform
###############################################################################


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom of the host view, used to convert pointer locations to model space.

    A model point p is displayed at screen point p * zoom + (pan_x, pan_y).

    Attributes:
        zoom (float): Screen pixels per model unit.
        pan_x (float): Screen x-offset of the model origin.
        pan_y (float): Screen y-offset of the model origin.
    """

    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def __post_init__(self):
        if self.zoom <= 0:
            raise ValueError(f"zoom must be > 0, got {self.zoom}")

    @property
    def affine_trafo(self) -> Tuple[float, float, float, float, float, float]:
        """Model-to-screen affine transformation [a00, a01, a10, a11, b0, b1]."""
        return (self.zoom, 0.0, 0.0, self.zoom, self.pan_x, self.pan_y)

    def model_to_screen(self, point: Point) -> Point:
        """Convert a model-space point to screen space."""
        return Point(*GeomMath.transform_point(self.affine_trafo, point.to_tuple()))

    def screen_to_model(self, point: Point) -> Point:
        """Convert a screen-space point to model space."""
        inv = 1.0 / self.zoom
        trafo = (inv, 0.0, 0.0, inv, -self.pan_x * inv, -self.pan_y * inv)
        return Point(*GeomMath.transform_point(trafo, point.to_tuple()))

    def model_length(self, pixels: float) -> float:
        """Convert a screen length in pixels to model units."""
        return pixels / self.zoom


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def transform_point(
        affine_trafo: Sequence[Union[int, float]], point: Sequence[Union[int, float]]
    ) -> Tuple[float, float]:
        """
        Perform an affine transformation on the given 2D point.

        The given _affine_trafo_ is a list of 6 floats, performing an affine transformation.
        The transformation is defined as:
            | x' | = | a00 a01 b0 |   | x |
            | y' | = | a10 a11 b1 | * | y |
            | 1  | = |  0   0  1  |   | 1 |
        with
            affine_trafo = [a00, a01, a10, a11, b0, b1]

        Args:
            affine_trafo (Tuple/List[float]): Affine transformation - [a00, a01, a10, a11, b0, b1]
            point (Tuple/List[float]): 2D point - (x, y)

        Returns:
            Tuple[float, float]: the transformed point
        """
        x_new = float(affine_trafo[0] * point[0] + affine_trafo[1] * point[1] + affine_trafo[4])
        y_new = float(affine_trafo[2] * point[0] + affine_trafo[3] * point[1] + affine_trafo[5])
        return (x_new, y_new)

    @staticmethod
    def mirror(handle: Point, anchor: Point) -> Point:
        """Reflect _handle_ through _anchor_ (point reflection)."""
        return Point(2.0 * anchor.x - handle.x, 2.0 * anchor.y - handle.y)

    @staticmethod
    def lerp(start: Point, end: Point, t: float) -> Point:
        """Linear interpolation between _start_ (t=0) and _end_ (t=1)."""
        return Point(start.x + (end.x - start.x) * t, start.y + (end.y - start.y) * t)

    @staticmethod
    def snap_value(value: float, grid_size: float) -> float:
        """Quantize a single coordinate to the grid; a grid_size <= 0 leaves it unchanged."""
        if grid_size <= 0:
            return value
        return round(value / grid_size) * grid_size

    @staticmethod
    def snap_to_grid(point: Point, grid_size: float) -> Point:
        """Quantize both coordinates of _point_ to the grid."""
        if grid_size <= 0:
            return point
        return Point(GeomMath.snap_value(point.x, grid_size), GeomMath.snap_value(point.y, grid_size))

    @staticmethod
    def round_value(value: float, precision: int) -> float:
        """Round _value_ to _precision_ decimals (half away from zero)."""
        factor = 10.0**precision
        rounded = math.floor(abs(value) * factor + 0.5) / factor
        rounded = math.copysign(rounded, value)
        # normalize -0.0
        return rounded + 0.0

    @staticmethod
    def perpendicular_distance(point: Point, line_start: Point, line_end: Point) -> float:
        """
        Distance from _point_ to the segment _line_start_ - _line_end_.

        The projection is clamped to the segment, so points beyond an end are measured
        against that end. A degenerate segment measures the distance to its start.
        """
        dx = line_end.x - line_start.x
        dy = line_end.y - line_start.y
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            return point.distance_to(line_start)
        t = ((point.x - line_start.x) * dx + (point.y - line_start.y) * dy) / length_sq
        t = max(0.0, min(1.0, t))
        proj_x = line_start.x + t * dx
        proj_y = line_start.y + t * dy
        return math.hypot(point.x - proj_x, point.y - proj_y)

    @staticmethod
    def perpendicular_distances(
        points: NDArray[np.float64], line_start: NDArray[np.float64], line_end: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Vectorized point-to-segment distances of all _points_ (shape (n, 2))."""
        pts = np.asarray(points, dtype=np.float64)
        start = np.asarray(line_start, dtype=np.float64)
        seg = np.asarray(line_end, dtype=np.float64) - start
        length_sq = float(seg @ seg)
        rel = pts - start
        if length_sq == 0.0:
            return np.hypot(rel[:, 0], rel[:, 1])
        t = np.clip((rel @ seg) / length_sq, 0.0, 1.0)
        diff = rel - np.outer(t, seg)
        return np.hypot(diff[:, 0], diff[:, 1])

    @staticmethod
    def estimate_control_points(
        prev_point: Point,
        current_point: Point,
        next_point: Optional[Point] = None,
        tension: float = 0.3,
        control_ratio: float = 0.4,
    ) -> Tuple[Point, Point]:
        """
        Estimate the two control points of a cubic segment running from _prev_point_ to _current_point_.

        With a known successor the tangent at _current_point_ is taken Catmull-Rom like
        from the chord _prev_point_ -> _next_point_ and scaled by _tension_; the first
        control point leaves _prev_point_ along the segment by the same factor.
        Without a successor both control points sit on the segment, _control_ratio_ of
        its length away from their anchor.

        Args:
            prev_point (Point): Start anchor of the segment.
            current_point (Point): End anchor of the segment.
            next_point (Optional[Point]): Anchor following _current_point_, if any.
            tension (float): Tangent scale used when _next_point_ is given.
            control_ratio (float): Interpolation ratio used when _next_point_ is missing.

        Returns:
            Tuple[Point, Point]: (control1, control2)
        """
        delta = current_point - prev_point
        if next_point is None:
            return prev_point + delta * control_ratio, current_point - delta * control_ratio

        tangent = next_point - prev_point
        return prev_point + delta * tension, current_point - tangent * tension
