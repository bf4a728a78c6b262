"""Test module for curvepen.geom

The tests are run using pytest.
These tests ensure that all functions and interfaces in src/curvepen/geom.py
remain working correctly after changes and refactoring.
"""

import numpy as np
import pytest

from curvepen.geom import GeomMath, Point, ViewTransform

###############################################################################
# Point Tests
###############################################################################


class TestPoint:
    """Test class for Point arithmetic and conversion."""

    def test_arithmetic(self):
        """Test addition, subtraction and scaling."""
        a = Point(1.0, 2.0)
        b = Point(3.0, 5.0)
        assert a + b == Point(4.0, 7.0)
        assert b - a == Point(2.0, 3.0)
        assert a * 2 == Point(2.0, 4.0)
        assert 2 * a == Point(2.0, 4.0)

    def test_distance(self):
        """Test euclidean distance."""
        assert Point(0, 0).distance_to(Point(3, 4)) == pytest.approx(5.0)

    def test_dict_round_trip(self):
        """Test conversion to and from a dictionary."""
        point = Point(1.5, -2.5)
        assert Point.from_dict(point.to_dict()) == point
        assert Point.from_dict({}) == Point(0.0, 0.0)

    def test_from_sequence(self):
        """Test creation from a sequence with extra values."""
        assert Point.from_sequence((1, 2, 3)) == Point(1.0, 2.0)


###############################################################################
# ViewTransform Tests
###############################################################################


class TestViewTransform:
    """Test class for screen/model conversions."""

    def test_identity(self):
        """Test that the default view does not change points."""
        view = ViewTransform()
        assert view.screen_to_model(Point(10, 20)) == Point(10, 20)

    def test_round_trip(self):
        """Test that screen_to_model inverts model_to_screen."""
        view = ViewTransform(zoom=2.5, pan_x=-30.0, pan_y=12.0)
        point = Point(7.0, -3.0)
        back = view.screen_to_model(view.model_to_screen(point))
        assert back.is_close(point)

    def test_model_length(self):
        """Test conversion of pixel lengths."""
        assert ViewTransform(zoom=4.0).model_length(8.0) == pytest.approx(2.0)

    def test_invalid_zoom(self):
        """Test that a non-positive zoom is rejected."""
        with pytest.raises(ValueError):
            ViewTransform(zoom=0.0)


###############################################################################
# GeomMath Tests
###############################################################################


class TestGeomMath:
    """Test class for GeomMath functionality."""

    def test_transform_point_identity(self):
        """Test point transformation with identity matrix."""
        assert GeomMath.transform_point([1, 0, 0, 1, 0, 0], (10.0, 20.0)) == (10.0, 20.0)

    def test_transform_point_translation_and_scale(self):
        """Test point transformation with scale and translation."""
        assert GeomMath.transform_point([2, 0, 0, 3, 5.0, 10.0], (10.0, 20.0)) == (25.0, 70.0)

    def test_mirror(self):
        """Test point reflection of a handle through its anchor."""
        anchor = Point(10, 0)
        handle = Point(15, 3)
        mirrored = GeomMath.mirror(handle, anchor)
        assert mirrored == Point(5, -3)
        assert handle - anchor == anchor - mirrored

    def test_lerp(self):
        """Test linear interpolation."""
        assert GeomMath.lerp(Point(0, 0), Point(10, 20), 0.5) == Point(5, 10)

    def test_snap_to_grid(self):
        """Test grid quantization and the disabled grid."""
        assert GeomMath.snap_to_grid(Point(14.9, -6), 10.0) == Point(10.0, -10.0)
        assert GeomMath.snap_to_grid(Point(14.9, -6), 0.0) == Point(14.9, -6)

    def test_round_value(self):
        """Test rounding half away from zero and -0.0 normalization."""
        assert GeomMath.round_value(1.25, 1) == 1.3
        assert GeomMath.round_value(-1.25, 1) == -1.3
        assert GeomMath.round_value(3.14159, 2) == 3.14
        zero = GeomMath.round_value(-0.0001, 2)
        assert zero == 0.0
        assert np.copysign(1.0, zero) == 1.0

    def test_perpendicular_distance(self):
        """Test the point-to-segment distance including clamping."""
        start, end = Point(0, 0), Point(10, 0)
        assert GeomMath.perpendicular_distance(Point(5, 3), start, end) == pytest.approx(3.0)
        assert GeomMath.perpendicular_distance(Point(13, 4), start, end) == pytest.approx(5.0)
        assert GeomMath.perpendicular_distance(Point(-3, 4), start, end) == pytest.approx(5.0)

    def test_perpendicular_distance_degenerate_segment(self):
        """Test that a zero-length segment measures the distance to its start."""
        assert GeomMath.perpendicular_distance(Point(3, 4), Point(0, 0), Point(0, 0)) == pytest.approx(5.0)

    def test_perpendicular_distances_matches_scalar(self):
        """Test that the vectorized distances agree with the scalar version."""
        pts = np.array([[5.0, 3.0], [13.0, 4.0], [-3.0, 4.0], [2.0, -1.0]])
        start = np.array([0.0, 0.0])
        end = np.array([10.0, 0.0])
        result = GeomMath.perpendicular_distances(pts, start, end)
        expected = [GeomMath.perpendicular_distance(Point(*p), Point(0, 0), Point(10, 0)) for p in pts]
        assert np.allclose(result, expected)

    def test_estimate_control_points_without_next(self):
        """Test the interpolation estimate with only a predecessor."""
        cp1, cp2 = GeomMath.estimate_control_points(Point(0, 0), Point(10, 0))
        assert cp1.is_close(Point(4, 0))
        assert cp2.is_close(Point(6, 0))

    def test_estimate_control_points_with_next(self):
        """Test the tangent blend with both neighbors."""
        cp1, cp2 = GeomMath.estimate_control_points(Point(0, 0), Point(10, 0), Point(10, 10))
        assert cp1.is_close(Point(3, 0))
        assert cp2.is_close(Point(7, -3))
