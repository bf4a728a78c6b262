"""Test module for curvepen.config

The tests are run using pytest.
"""

import pytest

from curvepen.common import PointType
from curvepen.config import (
    DEFAULT_CURVE_TOOL_CONFIG,
    CurveToolConfig,
    GridSettings,
    SimplifierSettings,
)


class TestCurveToolConfig:
    """Defaults and serialization of the tool configuration."""

    def test_defaults(self):
        """Default values of the authoring tool."""
        config = DEFAULT_CURVE_TOOL_CONFIG
        assert config.hit_tolerance == 8.0
        assert config.drag_threshold == 5.0
        assert config.double_click_ms == 300.0
        assert config.double_click_distance == 5.0
        assert config.default_handle_offset == 30.0
        assert config.tension == pytest.approx(0.3)
        assert config.control_ratio == pytest.approx(0.4)

    def test_dict_round_trip(self):
        """to_dict/from_dict restore the configuration."""
        config = CurveToolConfig(hit_tolerance=4.0, precision=3, tension=0.5)
        assert CurveToolConfig.from_dict(config.to_dict()) == config

    def test_partial_dict(self):
        """Missing keys fall back to defaults."""
        config = CurveToolConfig.from_dict({"precision": 1})
        assert config.precision == 1
        assert config.hit_tolerance == DEFAULT_CURVE_TOOL_CONFIG.hit_tolerance


class TestGridSettings:
    """Grid size resolution."""

    def test_effective_size(self):
        """Only an enabled grid with positive size quantizes."""
        assert GridSettings().effective_size == 0.0
        assert GridSettings(enabled=True, size=5.0).effective_size == 5.0
        assert GridSettings(enabled=True, size=0.0).effective_size == 0.0

    def test_dict_round_trip(self):
        """to_dict/from_dict restore the settings."""
        grid = GridSettings(enabled=True, size=2.5)
        assert GridSettings.from_dict(grid.to_dict()) == grid


class TestSimplifierSettings:
    """Validation of simplifier parameters."""

    def test_dict_round_trip(self):
        """to_dict/from_dict restore the settings."""
        settings = SimplifierSettings(tolerance=0.25, max_distance=3.0, curve_steps=8, smoothing_factor=0.4)
        assert SimplifierSettings.from_dict(settings.to_dict()) == settings

    @pytest.mark.parametrize(
        "kwargs", [{"tolerance": -1.0}, {"max_distance": -0.1}, {"curve_steps": 0}, {"smoothing_factor": -0.5}]
    )
    def test_invalid_values(self, kwargs):
        """Negative distances and step counts below 1 are rejected."""
        with pytest.raises(ValueError):
            SimplifierSettings(**kwargs)


class TestPointTypeCycle:
    """Toggle order of point types."""

    def test_cycle(self):
        """CORNER -> SMOOTH -> ASYMMETRIC -> CORNER."""
        assert PointType.CORNER.next_in_cycle() is PointType.SMOOTH
        assert PointType.SMOOTH.next_in_cycle() is PointType.ASYMMETRIC
        assert PointType.ASYMMETRIC.next_in_cycle() is PointType.CORNER
