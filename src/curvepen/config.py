"""Configuration values for the curve tool, the grid and the path simplifier."""

from __future__ import annotations

from dataclasses import dataclass

###############################################################################
# CurveToolConfig
###############################################################################


@dataclass(frozen=True)
class CurveToolConfig:
    """Tuning values of the curve authoring tool.

    Pixel values are measured in screen space and converted to model space
    using the current view zoom.

    Attributes:
        hit_tolerance: Radius in pixels used to hit-test points and handles.
        drag_threshold: Pointer travel in pixels that turns a click into a handle drag.
        double_click_ms: Maximum time between two pointer-downs of a double click.
        double_click_distance: Maximum distance in pixels between two pointer-downs of a double click.
        default_handle_offset: Horizontal handle offset added when a handle-less point gets handles.
        precision: Number of decimals of emitted command coordinates.
        tension: Tangent scale of the control-point estimate when both neighbors are known.
        control_ratio: Interpolation ratio of the control-point estimate when only the predecessor is known.
        frame_interval: Minimum seconds between two coalesced preview notifications.
        min_points_to_close: Points required before clicking the first point closes the path.
    """

    hit_tolerance: float = 8.0
    drag_threshold: float = 5.0
    double_click_ms: float = 300.0
    double_click_distance: float = 5.0
    default_handle_offset: float = 30.0
    precision: int = 2
    tension: float = 0.3
    control_ratio: float = 0.4
    frame_interval: float = 1.0 / 60.0
    min_points_to_close: int = 3

    def to_dict(self) -> dict:
        """Convert config to a dictionary for serialization."""
        return {
            "hit_tolerance": self.hit_tolerance,
            "drag_threshold": self.drag_threshold,
            "double_click_ms": self.double_click_ms,
            "double_click_distance": self.double_click_distance,
            "default_handle_offset": self.default_handle_offset,
            "precision": self.precision,
            "tension": self.tension,
            "control_ratio": self.control_ratio,
            "frame_interval": self.frame_interval,
            "min_points_to_close": self.min_points_to_close,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CurveToolConfig:
        """Create CurveToolConfig from a dictionary, missing keys fall back to defaults."""
        default = cls()
        return cls(
            hit_tolerance=float(data.get("hit_tolerance", default.hit_tolerance)),
            drag_threshold=float(data.get("drag_threshold", default.drag_threshold)),
            double_click_ms=float(data.get("double_click_ms", default.double_click_ms)),
            double_click_distance=float(data.get("double_click_distance", default.double_click_distance)),
            default_handle_offset=float(data.get("default_handle_offset", default.default_handle_offset)),
            precision=int(data.get("precision", default.precision)),
            tension=float(data.get("tension", default.tension)),
            control_ratio=float(data.get("control_ratio", default.control_ratio)),
            frame_interval=float(data.get("frame_interval", default.frame_interval)),
            min_points_to_close=int(data.get("min_points_to_close", default.min_points_to_close)),
        )


###############################################################################
# GridSettings
###############################################################################


@dataclass(frozen=True)
class GridSettings:
    """Grid configuration owned by the host document.

    Attributes:
        enabled: If True, authored points are snapped to the grid.
        size: Grid spacing in model units.
    """

    enabled: bool = False
    size: float = 10.0

    @property
    def effective_size(self) -> float:
        """Grid size to quantize with, 0.0 when snapping is disabled."""
        if not self.enabled or self.size <= 0:
            return 0.0
        return self.size

    def to_dict(self) -> dict:
        """Convert grid settings to a dictionary for serialization."""
        return {"enabled": self.enabled, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict) -> GridSettings:
        """Create GridSettings from a dictionary."""
        return cls(enabled=bool(data.get("enabled", False)), size=float(data.get("size", 10.0)))


###############################################################################
# SimplifierSettings
###############################################################################


@dataclass(frozen=True)
class SimplifierSettings:
    """Parameters of a simplification run.

    Attributes:
        tolerance: Maximum perpendicular deviation of a removed point from its retained chord.
        max_distance: Minimum spacing of retained points; closer points are collapsed.
        curve_steps: Number of segments a cubic command is flattened into before reduction.
        smoothing_factor: Share of the shorter neighbouring segment used as handle length when smoothing corners.
    """

    tolerance: float = 0.1
    max_distance: float = 10.0
    curve_steps: int = 16
    smoothing_factor: float = 0.25

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.max_distance < 0:
            raise ValueError(f"max_distance must be >= 0, got {self.max_distance}")
        if self.curve_steps < 1:
            raise ValueError(f"curve_steps must be >= 1, got {self.curve_steps}")
        if self.smoothing_factor < 0:
            raise ValueError(f"smoothing_factor must be >= 0, got {self.smoothing_factor}")

    def to_dict(self) -> dict:
        """Convert settings to a dictionary for serialization."""
        return {
            "tolerance": self.tolerance,
            "max_distance": self.max_distance,
            "curve_steps": self.curve_steps,
            "smoothing_factor": self.smoothing_factor,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SimplifierSettings:
        """Create SimplifierSettings from a dictionary."""
        return cls(
            tolerance=float(data.get("tolerance", 0.1)),
            max_distance=float(data.get("max_distance", 10.0)),
            curve_steps=int(data.get("curve_steps", 16)),
            smoothing_factor=float(data.get("smoothing_factor", 0.25)),
        )


DEFAULT_CURVE_TOOL_CONFIG = CurveToolConfig()
DEFAULT_GRID_SETTINGS = GridSettings()
DEFAULT_SIMPLIFIER_SETTINGS = SimplifierSettings()
