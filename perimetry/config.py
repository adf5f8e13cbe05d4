"""
Screening Configuration
=======================

Immutable configuration for a perimetry screening session, plus the
validation helpers shared by the rest of the package.

The defaults reproduce the reference screening layout: a 20x20 grid,
a 5 second response deadline and a radius sweep from 12 down to 2 cells.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from numbers import Real
from typing import Any

from perimetry.geometry import MAX_PRECISION

QUADRANTS: tuple[int, ...] = (1, 2, 3, 4)

DEFAULT_FOCAL_POINTS: dict[int, tuple[float, float]] = {
    1: (4.0, 4.0),
    2: (15.0, 5.0),
    3: (15.0, 15.0),
    4: (5.0, 15.0),
}

# The first probe of each test sits in the quadrant diagonally opposite the focal point
DEFAULT_INITIAL_PROBES: dict[int, tuple[float, float]] = {
    1: (15.0, 15.0),
    2: (5.0, 15.0),
    3: (5.0, 5.0),
    4: (15.0, 5.0),
}


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass


def validate_quadrant(quadrant: Any) -> int:
    """Validate a quadrant index.

    Args:
        quadrant: Candidate quadrant index

    Returns:
        The quadrant as a plain int

    Raises:
        ValidationError: If quadrant is not an integer in 1-4
    """
    if isinstance(quadrant, bool) or not isinstance(quadrant, int):
        raise ValidationError(
            f"quadrant must be an integer in {QUADRANTS}, got {type(quadrant).__name__}"
        )
    if quadrant not in QUADRANTS:
        raise ValidationError(f"quadrant must be one of {QUADRANTS}, got {quadrant}")
    return int(quadrant)


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name} must be a number, got {type(value).__name__}")
    value_float = float(value)
    if not math.isfinite(value_float):
        raise ValidationError(f"{name} must be finite, got {value}")
    return value_float


def _require_positive(name: str, value: Any) -> float:
    value_float = _require_number(name, value)
    if value_float <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value_float


def _normalize_quadrant_table(
    name: str, table: Any, grid_size: int
) -> dict[int, tuple[float, float]]:
    """Validate a per-quadrant coordinate table and copy it into a plain dict."""
    if not isinstance(table, Mapping):
        raise ValidationError(f"{name} must be a mapping, got {type(table).__name__}")

    normalized: dict[int, tuple[float, float]] = {}
    for quadrant in QUADRANTS:
        # Tables parsed from JSON arrive with string keys
        if quadrant in table:
            coords = table[quadrant]
        elif str(quadrant) in table:
            coords = table[str(quadrant)]
        else:
            raise ValidationError(f"{name} is missing an entry for quadrant {quadrant}")

        if not isinstance(coords, (tuple, list)) or len(coords) != 2:
            raise ValidationError(
                f"{name}[{quadrant}] must be an (x, y) pair, got {coords!r}"
            )
        x = _require_number(f"{name}[{quadrant}].x", coords[0])
        y = _require_number(f"{name}[{quadrant}].y", coords[1])
        if not (0 <= x <= grid_size - 1 and 0 <= y <= grid_size - 1):
            raise ValidationError(
                f"{name}[{quadrant}] = ({x}, {y}) lies outside the "
                f"{grid_size}x{grid_size} grid"
            )
        normalized[quadrant] = (x, y)

    return normalized


@dataclass(frozen=True)
class PerimetryConfig:
    """Immutable configuration for the adaptive sampling engine.

    Attributes:
        grid_size: Number of cells along each axis; coordinates live in
            [0, grid_size - 1]
        response_deadline_ms: Time the user has to acknowledge a probe
        max_radius: Starting sweep radius, in cells from the focal point
        min_radius: Smallest radius the sweep falls back to
        radius_step: Radius decrement between fallback passes
        quadrant_margin: Cells of slack around the grid midlines when deciding
            whether a candidate lies in the quadrant of interest
        sweep_advance: Angle added to the sweep cursor after an accepted probe
        sweep_fine_step: Angle added between rejected candidates
        max_sweep_iterations: Candidates tried per radius before falling back
        bucket_width: Nominal angular width of a boundary bucket in radians
        boundary_tolerance: Angular neighbourhood scanned for boundary evidence
        key_precision: Decimal places kept when quantizing ledger keys
        step_inward_after_miss: Try one radius step closer along the same ray
            after a missed probe before resuming the sweep
        focal_points: Focal point per quadrant test
        initial_probes: First probe per quadrant test

    Raises:
        ValidationError: If any field is out of range
    """

    grid_size: int = 20
    response_deadline_ms: float = 5000.0
    max_radius: float = 12.0
    min_radius: float = 2.0
    radius_step: float = 2.0
    quadrant_margin: float = 2.0
    sweep_advance: float = 0.2
    sweep_fine_step: float = 0.01
    max_sweep_iterations: int = 360
    bucket_width: float = 0.05
    boundary_tolerance: float = 0.1
    key_precision: int = 0
    step_inward_after_miss: bool = False
    focal_points: Mapping[int, tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_FOCAL_POINTS)
    )
    initial_probes: Mapping[int, tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_INITIAL_PROBES)
    )

    def __post_init__(self) -> None:
        """Validate fields and freeze the quadrant tables."""
        if isinstance(self.grid_size, bool) or not isinstance(self.grid_size, int):
            raise ValidationError(
                f"grid_size must be an integer, got {type(self.grid_size).__name__}"
            )
        if self.grid_size < 2:
            raise ValidationError(f"grid_size must be at least 2, got {self.grid_size}")

        _require_positive("response_deadline_ms", self.response_deadline_ms)
        min_radius = _require_positive("min_radius", self.min_radius)
        max_radius = _require_positive("max_radius", self.max_radius)
        if max_radius < min_radius:
            raise ValidationError(
                f"max_radius ({max_radius}) cannot be smaller than min_radius ({min_radius})"
            )
        _require_positive("radius_step", self.radius_step)
        if _require_number("quadrant_margin", self.quadrant_margin) < 0:
            raise ValidationError(
                f"quadrant_margin must be non-negative, got {self.quadrant_margin}"
            )
        _require_positive("sweep_advance", self.sweep_advance)
        _require_positive("sweep_fine_step", self.sweep_fine_step)
        _require_positive("bucket_width", self.bucket_width)
        if self.bucket_width > math.pi:
            raise ValidationError(
                f"bucket_width must not exceed pi, got {self.bucket_width}"
            )
        if _require_number("boundary_tolerance", self.boundary_tolerance) < 0:
            raise ValidationError(
                f"boundary_tolerance must be non-negative, got {self.boundary_tolerance}"
            )

        for name in ("max_sweep_iterations", "key_precision"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(
                    f"{name} must be an integer, got {type(value).__name__}"
                )
        if self.max_sweep_iterations < 1:
            raise ValidationError(
                f"max_sweep_iterations must be at least 1, got {self.max_sweep_iterations}"
            )
        if not 0 <= self.key_precision <= MAX_PRECISION:
            raise ValidationError(
                f"key_precision must be between 0 and {MAX_PRECISION}, got {self.key_precision}"
            )

        if not isinstance(self.step_inward_after_miss, bool):
            raise ValidationError(
                f"step_inward_after_miss must be a bool, "
                f"got {type(self.step_inward_after_miss).__name__}"
            )

        # Use object.__setattr__ because the dataclass is frozen
        object.__setattr__(
            self,
            "focal_points",
            _normalize_quadrant_table("focal_points", self.focal_points, self.grid_size),
        )
        object.__setattr__(
            self,
            "initial_probes",
            _normalize_quadrant_table("initial_probes", self.initial_probes, self.grid_size),
        )

    @property
    def response_deadline_s(self) -> float:
        """Response deadline in seconds, as used by the scheduler."""
        return float(self.response_deadline_ms) / 1000.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PerimetryConfig:
        """Build a configuration from plain data such as parsed JSON.

        Args:
            data: Mapping of field names to values; missing fields keep
                their defaults

        Returns:
            A validated PerimetryConfig

        Raises:
            ValidationError: If data is not a mapping or contains unknown keys
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"config data must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")

        return cls(**dict(data))
