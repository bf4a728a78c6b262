"""Cubic Bezier curve utilities used to flatten path commands into polylines."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Step count from which the vectorized implementation is faster than forward differencing
_NUMPY_STEPS_THRESHOLD: int = 70


class BezierCurve:
    """Class to handle cubic Bezier curve operations.

    Provides methods for evaluating and polygonizing cubic Bezier curves into
    2D point sequences, with a pure Python and a NumPy implementation.
    """

    @staticmethod
    def evaluate_cubic(points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]], t: float) -> Tuple[float, float]:
        """Evaluate the cubic curve defined by 4 control points at parameter _t_."""
        (p0x, p0y), (p1x, p1y), (p2x, p2y), (p3x, p3y) = ((float(p[0]), float(p[1])) for p in points)
        omt = 1.0 - t
        b0 = omt * omt * omt
        b1 = 3.0 * omt * omt * t
        b2 = 3.0 * omt * t * t
        b3 = t * t * t
        return (b0 * p0x + b1 * p1x + b2 * p2x + b3 * p3x, b0 * p0y + b1 * p1y + b2 * p2y + b3 * p3y)

    @classmethod
    def polygonize_cubic_curve_python_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]],
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a cubic Bezier curve directly into pre-allocated buffer using pure Python.
        Optimized using forward differencing for O(1) per point computation.
        """
        pt0 = points[0]
        x, y = float(pt0[0]), float(pt0[1])

        # Discrete differences derived from the first curve samples B(0), B(h), B(2h), B(3h)
        h = 1.0 / steps
        b0_x, b0_y = x, y
        b1_x, b1_y = cls.evaluate_cubic(points, h)
        b2_x, b2_y = cls.evaluate_cubic(points, 2.0 * h)
        b3_x, b3_y = cls.evaluate_cubic(points, 3.0 * h)

        dx_first = b1_x - b0_x
        dy_first = b1_y - b0_y
        dx_second = b2_x - 2.0 * b1_x + b0_x
        dy_second = b2_y - 2.0 * b1_y + b0_y
        # third differences are constant for a cubic
        dx_third = b3_x - 3.0 * b2_x + 3.0 * b1_x - b0_x
        dy_third = b3_y - 3.0 * b2_y + 3.0 * b1_y - b0_y

        output_idx = start_index
        if not skip_first:
            output_buffer[output_idx, 0] = x
            output_buffer[output_idx, 1] = y
            output_idx += 1

        for _ in range(1, steps + 1):
            x += dx_first
            y += dy_first

            dx_first += dx_second
            dy_first += dy_second
            dx_second += dx_third
            dy_second += dy_third

            output_buffer[output_idx, 0] = x
            output_buffer[output_idx, 1] = y
            output_idx += 1

        # Pin the end point, forward differencing accumulates rounding error
        pt3 = points[3]
        output_buffer[output_idx - 1, 0] = float(pt3[0])
        output_buffer[output_idx - 1, 1] = float(pt3[1])

        return steps + (1 if not skip_first else 0)

    @classmethod
    def polygonize_cubic_curve_numpy_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]],
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a cubic Bezier curve directly into pre-allocated buffer using NumPy.
        Uses direct evaluation with vectorized operations.
        """
        points_array = np.array(points, dtype=np.float64)[:, :2]

        t = np.linspace(0, 1, steps + 1, dtype=np.float64)
        if skip_first:
            t = t[1:]

        omt = 1 - t
        basis = np.column_stack([omt**3, 3 * omt**2 * t, 3 * omt * t**2, t**3])
        curve = basis @ points_array

        end_idx = start_index + len(t)
        output_buffer[start_index:end_idx, 0:2] = curve
        return len(t)

    @classmethod
    def polygonize_cubic_curve_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]],
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a cubic Bezier curve directly into pre-allocated buffer.
        Uses pure Python for small step counts, NumPy for larger ones.

        Args:
            points: Control points as Sequence[Tuple[float, float]] or NDArray[np.float64]
                    Must contain exactly 4 points: start, control1, control2, end
            steps: Number of segments to divide the curve into
            output_buffer: Pre-allocated buffer (n, 2) to write points into
            start_index: Starting index in output_buffer
            skip_first: If True, skip writing the first point (to avoid duplication)

        Returns:
            Number of points written to buffer
        """
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")
        if len(points) != 4:
            raise ValueError(f"A cubic curve needs 4 control points, got {len(points)}")
        if steps < _NUMPY_STEPS_THRESHOLD:
            return cls.polygonize_cubic_curve_python_inplace(points, steps, output_buffer, start_index, skip_first)
        return cls.polygonize_cubic_curve_numpy_inplace(points, steps, output_buffer, start_index, skip_first)

    @classmethod
    def polygonize_cubic_curve(
        cls, points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]], steps: int
    ) -> NDArray[np.float64]:
        """
        Polygonize a cubic Bezier curve into line segments.

        Args:
            points: Control points (start, control1, control2, end)
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 2) containing the polygonized points
        """
        result = np.empty((steps + 1, 2), dtype=np.float64)
        cls.polygonize_cubic_curve_inplace(points, steps, result, start_index=0, skip_first=False)
        return result
