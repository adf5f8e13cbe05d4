"""
Debug logging helpers.

All package modules log under the "perimetry" logger hierarchy. These
helpers attach a console handler to it and format engine values for log
messages.
"""

from __future__ import annotations

import logging
import math
from typing import IO

from perimetry.boundary import BoundaryModel
from perimetry.geometry import Point
from perimetry.session.dataclasses import SessionSnapshot, TestSummary

LOGGER_NAME = "perimetry"
DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_debug_handler: logging.Handler | None = None


def setup_debug_logging(level: int = logging.DEBUG, stream: IO[str] | None = None) -> logging.Handler:
    """Attach a stream handler to the package logger.

    Calling it again replaces the previous handler instead of stacking a
    second one. While the handler is installed, package records do not
    propagate to the root logger, so an application-level basicConfig()
    does not print them a second time.

    Args:
        level: Logging level for the package logger and the handler
        stream: Output stream (defaults to stderr)

    Returns:
        The installed handler
    """
    global _debug_handler

    disable_debug_logging()

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT))

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    _debug_handler = handler
    return handler


def disable_debug_logging() -> None:
    """Remove the handler installed by setup_debug_logging(), if any."""
    global _debug_handler

    if _debug_handler is None:
        return
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.removeHandler(_debug_handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
    _debug_handler = None


def format_angle(angle: float) -> str:
    """Format an angle as radians with degrees in brackets."""
    return f"{angle:.3f} rad ({math.degrees(angle):.1f}°)"


def format_point(point: Point | None) -> str:
    """Format a point with its outcome marker: + seen, - unseen."""
    if point is None:
        return "<none>"
    marker = "+" if point.seen else "-"
    return f"({point.x:.1f}, {point.y:.1f}){marker}"


def format_summary(summary: TestSummary) -> str:
    return (
        f"{summary.total_tested} tested, {summary.seen_count} seen, "
        f"{summary.unseen_count} unseen ({summary.seen_ratio:.0%} seen)"
    )


def format_boundary(boundary: BoundaryModel) -> str:
    """One line per bucket with evidence, ordered by direction."""
    lines = []
    for bucket, distance in sorted(boundary.as_dict().items()):
        center = -math.pi + (bucket + 0.5) * boundary.bucket_width
        lines.append(f"  bucket {bucket:3d} @ {format_angle(center)}: {distance:.2f}")
    return "\n".join(lines) if lines else "  <no evidence>"


def log_snapshot(snapshot: SessionSnapshot, logger: logging.Logger | None = None) -> None:
    """Log a session snapshot at DEBUG level."""
    target = logger if logger is not None else logging.getLogger(LOGGER_NAME)
    target.debug(
        f"status={snapshot.status} quadrant={snapshot.quadrant} "
        f"focal={format_point(snapshot.focal_point)} probe={format_point(snapshot.probe_point)} "
        f"remaining={snapshot.time_remaining_ms:.0f}ms {format_summary(snapshot.summary)}"
    )
