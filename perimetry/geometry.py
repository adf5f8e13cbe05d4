"""
Grid geometry utilities: point type, rounding, clamping and polar measurements
relative to the focal point.
"""

from dataclasses import dataclass, replace
import math
import numpy as np
from numpy.typing import NDArray

TWO_PI = 2.0 * math.pi

# Decimal places a float64 coordinate can meaningfully carry
MAX_PRECISION = 15


@dataclass(frozen=True)
class Point:
    """
    A grid location, optionally carrying the outcome of probing it.

    Attributes:
        x: Column coordinate (grows to the right)
        y: Row coordinate (grows downward, screen convention)
        seen: True if the user acknowledged a probe at this location
    """
    x: float
    y: float
    seen: bool = False

    def with_seen(self, seen: bool) -> "Point":
        """Return a copy of this point carrying the given outcome."""
        return replace(self, seen=seen)

    @property
    def as_array(self) -> NDArray[np.float64]:
        """Return (x, y) as a numpy array."""
        return np.array((self.x, self.y), dtype=np.float64)


def round_half_up(value: float, precision: int = 0) -> float:
    """
    Round to a fixed number of decimal places, with halves rounding up.

    Halves always round up (2.5 -> 3, 3.5 -> 4), unlike the built-in round().

    Parameters:
        value: Value to round
        precision: Number of decimal places to keep

    Returns:
        Rounded value
    """
    scale = 10.0 ** precision
    return math.floor(value * scale + 0.5) / scale


def clamp(point: Point, grid_size: int) -> Point:
    """
    Clip a point into the grid, preserving its outcome.

    Parameters:
        point: Point to clip
        grid_size: Cells per axis; valid coordinates are [0, grid_size - 1]

    Returns:
        Point with x and y independently clipped into range
    """
    upper = grid_size - 1
    return Point(
        x=float(np.clip(point.x, 0, upper)),
        y=float(np.clip(point.y, 0, upper)),
        seen=point.seen
    )


def normalize_angle(angle: float) -> float:
    """
    Wrap angle to (-π, π] range.

    Parameters:
        angle: Angle in radians

    Returns:
        Normalized angle in (-π, π]
    """
    return math.pi - ((math.pi - angle) % TWO_PI)


def angle_of(point: Point, focal: Point) -> float:
    """
    Direction of a point as seen from the focal point.

    Parameters:
        point: Point to measure
        focal: Origin of the measurement

    Returns:
        Angle in radians in (-π, π]
    """
    return normalize_angle(float(np.arctan2(point.y - focal.y, point.x - focal.x)))


def distance_of(point: Point, focal: Point) -> float:
    """Euclidean distance between a point and the focal point."""
    return float(np.hypot(point.x - focal.x, point.y - focal.y))


def project_ring(
    focal: Point,
    radius: float,
    angles: NDArray[np.float64],
    grid_size: int
) -> NDArray[np.float64]:
    """
    Project a set of directions at a fixed radius onto grid cells.

    Each direction is projected from the focal point, rounded half-up to
    the nearest cell and clipped into the grid.

    Parameters:
        focal: Origin of the projection
        radius: Distance from the focal point
        angles: Array of shape (N,) of directions in radians
        grid_size: Cells per axis

    Returns:
        Array of shape (N, 2) of (x, y) cell coordinates
    """
    angles = np.asarray(angles, dtype=np.float64)
    xs = np.floor(focal.x + radius * np.cos(angles) + 0.5)
    ys = np.floor(focal.y + radius * np.sin(angles) + 0.5)
    cells = np.column_stack([xs, ys])
    return np.clip(cells, 0, grid_size - 1)


def project(focal: Point, radius: float, angle: float, grid_size: int) -> Point:
    """
    Project a single direction at a fixed radius onto a grid cell.

    Parameters:
        focal: Origin of the projection
        radius: Distance from the focal point
        angle: Direction in radians
        grid_size: Cells per axis

    Returns:
        Unseen Point at the rounded, clamped cell
    """
    cell = project_ring(focal, radius, np.array([angle]), grid_size)[0]
    return Point(x=float(cell[0]), y=float(cell[1]))
