"""
Point Selection
===============

Chooses the next probe location for a quadrant test.

Search order:
1. Optional inward step after a miss (same ray, one radius step closer)
2. Fine angular sweep at the current radius, starting from the sweep cursor
3. The same sweep at each smaller radius down to the minimum, cursor reset
4. Coarse 1° full-circle scan at every radius from maximum to minimum

A candidate is accepted when it lies in the quadrant of interest, has not
been probed yet and lies beyond the known-visible boundary. The search is
deterministic: the same response sequence always yields the same probes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from perimetry.boundary import BoundaryModel
from perimetry.config import PerimetryConfig, validate_quadrant
from perimetry.geometry import (
    TWO_PI,
    Point,
    clamp,
    distance_of,
    project_ring,
    round_half_up,
)
from perimetry.ledger import LocationLedger

logger = logging.getLogger(__name__)

SelectionStage = Literal["inward", "primary", "radius_fallback", "full_scan", "exhausted"]

FULL_SCAN_ANGLES: NDArray[np.float64] = np.deg2rad(np.arange(360, dtype=np.float64))


@dataclass
class SelectionResult:
    """Outcome of one selection attempt.

    Attributes:
        point: The next probe, or None when the quadrant test is exhausted
        radius: Radius cursor to carry into the next selection
        sweep_angle: Sweep cursor to carry into the next selection
        stage: Which part of the search produced the point
    """

    point: Point | None
    radius: float
    sweep_angle: float
    stage: SelectionStage

    def __bool__(self) -> bool:
        """Returns True if a next probe was found."""
        return self.point is not None

    @property
    def exhausted(self) -> bool:
        return self.point is None


def base_angle(quadrant: int) -> float:
    """Starting direction of the sweep for a quadrant test."""
    return (validate_quadrant(quadrant) - 1) * math.pi / 2


def in_quadrant_of_interest(
    point: Point, quadrant: int, grid_size: int, margin: float = 2.0
) -> bool:
    """Check whether a point lies in the region a quadrant test examines.

    The examined region is diagonally opposite the focal point, bounded by
    the grid midlines widened by `margin` cells. Screen coordinates are used,
    so y grows downward.

    Args:
        point: Candidate location
        quadrant: Quadrant test index (1-4)
        grid_size: Cells per axis
        margin: Slack around the midlines

    Returns:
        True if the point lies in the examined region
    """
    mid = grid_size / 2
    if quadrant == 1:
        return point.x >= mid - margin and point.y >= mid - margin
    if quadrant == 2:
        return point.x <= mid + margin and point.y >= mid - margin
    if quadrant == 3:
        return point.x <= mid + margin and point.y <= mid + margin
    if quadrant == 4:
        return point.x >= mid - margin and point.y <= mid + margin
    return False


def is_acceptable(
    point: Point,
    quadrant: int,
    ledger: LocationLedger,
    boundary: BoundaryModel,
    config: PerimetryConfig,
) -> bool:
    """Acceptance test shared by every stage of the search."""
    return (
        in_quadrant_of_interest(point, quadrant, config.grid_size, config.quadrant_margin)
        and not ledger.is_tested(point.x, point.y)
        and boundary.is_beyond_boundary(point)
    )


def radius_schedule(start: float, config: PerimetryConfig) -> list[float]:
    """Radii visited from `start` downward in `radius_step` decrements.

    Stops at the last radius not below `min_radius`. A start below the
    minimum yields just the minimum.
    """
    radii: list[float] = []
    radius = start
    # Absorb float drift so the minimum radius itself is visited
    while radius >= config.min_radius - 1e-9:
        radii.append(radius)
        radius -= config.radius_step
    return radii or [config.min_radius]


def next_inward_point(
    last_point: Point, focal: Point, step: float, grid_size: int
) -> Point | None:
    """Move `step` cells closer to the focal point along the ray through `last_point`.

    Returns:
        The rounded, clamped point, or None if `last_point` is not farther
        than `step` from the focal point
    """
    distance = distance_of(last_point, focal)
    if distance <= step:
        return None

    ratio = (distance - step) / distance
    candidate = Point(
        x=round_half_up(focal.x + (last_point.x - focal.x) * ratio),
        y=round_half_up(focal.y + (last_point.y - focal.y) * ratio),
    )
    return clamp(candidate, grid_size)


def sweep_at_radius(
    focal: Point,
    quadrant: int,
    radius: float,
    sweep_angle: float,
    ledger: LocationLedger,
    boundary: BoundaryModel,
    config: PerimetryConfig,
) -> tuple[Point, float] | None:
    """Fine angular sweep at a single radius.

    Tries up to `max_sweep_iterations` directions, starting at
    `base_angle(quadrant) + sweep_angle` and advancing by `sweep_fine_step`.

    Returns:
        (point, sweep offset at which it was found), or None if no direction
        produced an acceptable candidate
    """
    offsets = sweep_angle + config.sweep_fine_step * np.arange(
        config.max_sweep_iterations, dtype=np.float64
    )
    cells = project_ring(focal, radius, base_angle(quadrant) + offsets, config.grid_size)

    for offset, (x, y) in zip(offsets, cells):
        candidate = Point(x=float(x), y=float(y))
        if is_acceptable(candidate, quadrant, ledger, boundary, config):
            return candidate, float(offset)
    return None


def full_circle_scan(
    focal: Point,
    quadrant: int,
    ledger: LocationLedger,
    boundary: BoundaryModel,
    config: PerimetryConfig,
) -> tuple[Point, float] | None:
    """Coarse 1° scan of the whole circle at every radius, largest first.

    Ignores the sweep cursor. Returns (point, radius) for the first
    acceptable candidate, or None.
    """
    angles = base_angle(quadrant) + FULL_SCAN_ANGLES
    for radius in radius_schedule(config.max_radius, config):
        cells = project_ring(focal, radius, angles, config.grid_size)
        for x, y in cells:
            candidate = Point(x=float(x), y=float(y))
            if is_acceptable(candidate, quadrant, ledger, boundary, config):
                return candidate, radius
    return None


def select_next_point(
    focal: Point,
    quadrant: int,
    radius: float,
    sweep_angle: float,
    ledger: LocationLedger,
    boundary: BoundaryModel,
    config: PerimetryConfig,
    last_point: Point | None = None,
) -> SelectionResult:
    """Select the next probe for a quadrant test.

    Pure with respect to its inputs: the ledger and boundary model are only
    read, and the updated cursors are returned in the result for the caller
    to adopt.

    Args:
        focal: Focal point of the quadrant test
        quadrant: Quadrant test index (1-4)
        radius: Current radius cursor
        sweep_angle: Current sweep cursor, relative to the quadrant's base angle
        ledger: Locations probed so far in this test
        boundary: Visibility evidence gathered so far in this test
        config: Engine configuration
        last_point: The probe that was just answered, used by the inward step

    Returns:
        SelectionResult with the next probe and cursors, falsy on exhaustion

    Raises:
        ValidationError: If quadrant is not in 1-4
    """
    quadrant = validate_quadrant(quadrant)

    if (
        config.step_inward_after_miss
        and last_point is not None
        and not last_point.seen
        and in_quadrant_of_interest(last_point, quadrant, config.grid_size, config.quadrant_margin)
    ):
        inward = next_inward_point(last_point, focal, config.radius_step, config.grid_size)
        if inward is not None and not ledger.is_tested(inward.x, inward.y):
            logger.debug(f"Inward step from ({last_point.x}, {last_point.y}) to ({inward.x}, {inward.y})")
            return SelectionResult(
                point=inward, radius=radius, sweep_angle=sweep_angle, stage="inward"
            )

    radii = radius_schedule(radius, config)
    for index, current_radius in enumerate(radii):
        # Smaller radii restart the sweep from the base angle
        start_angle = sweep_angle if index == 0 else 0.0
        if index > 0:
            logger.debug(f"Sweep exhausted, falling back to radius {current_radius}")

        found = sweep_at_radius(
            focal, quadrant, current_radius, start_angle, ledger, boundary, config
        )
        if found is not None:
            candidate, offset = found
            logger.debug(
                f"Selected ({candidate.x}, {candidate.y}) at radius {current_radius}, "
                f"sweep offset {offset:.3f}"
            )
            return SelectionResult(
                point=candidate,
                radius=current_radius,
                sweep_angle=(offset + config.sweep_advance) % TWO_PI,
                stage="primary" if index == 0 else "radius_fallback",
            )

    floor_radius = radii[-1]

    logger.debug("Radius sweep exhausted, running full-circle scan")
    scanned = full_circle_scan(focal, quadrant, ledger, boundary, config)
    if scanned is not None:
        candidate, scan_radius = scanned
        logger.debug(f"Full-circle scan selected ({candidate.x}, {candidate.y}) at radius {scan_radius}")
        return SelectionResult(
            point=candidate, radius=floor_radius, sweep_angle=0.0, stage="full_scan"
        )

    logger.debug(f"No acceptable point left for quadrant {quadrant}")
    return SelectionResult(point=None, radius=floor_radius, sweep_angle=0.0, stage="exhausted")
