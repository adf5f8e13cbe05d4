"""
Session Data Structures
=======================

State owned by a screening session:
- SessionState: Mutable per-quadrant-test state (cursors, ledger, boundary, log)
- TestSummary: Seen/unseen counts over the tested-point log
- SessionSnapshot: Read-only view handed to the presentation layer
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from perimetry.boundary import BoundaryModel
from perimetry.config import PerimetryConfig, ValidationError, validate_quadrant
from perimetry.geometry import Point, clamp
from perimetry.ledger import LocationLedger

SessionStatus = Literal["idle", "running", "completed"]
CompletionReason = Literal["exhausted", "stopped"]


@dataclass(frozen=True)
class TestSummary:
    """Seen/unseen counts for a quadrant test.

    Attributes:
        total_tested: Number of probes answered or timed out
        seen_count: Probes the user acknowledged (visible points)
        unseen_count: Probes that ran into the deadline (blind spots)
    """

    # Keep pytest from collecting this as a test class
    __test__ = False

    total_tested: int = 0
    seen_count: int = 0
    unseen_count: int = 0

    def __post_init__(self) -> None:
        """Validate count consistency.

        Raises:
            ValidationError: If any count is negative
            ValidationError: If seen_count + unseen_count != total_tested
        """
        for name in ("total_tested", "seen_count", "unseen_count"):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.seen_count + self.unseen_count != self.total_tested:
            raise ValidationError(
                f"seen_count ({self.seen_count}) + unseen_count ({self.unseen_count}) "
                f"must equal total_tested ({self.total_tested})"
            )

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> TestSummary:
        """Count outcomes in a tested-point log."""
        seen = sum(1 for p in points if p.seen)
        return cls(total_tested=len(points), seen_count=seen, unseen_count=len(points) - seen)

    @property
    def seen_ratio(self) -> float:
        """Fraction of tested points that were seen, 0.0 for an empty log."""
        if self.total_tested == 0:
            return 0.0
        return self.seen_count / self.total_tested


@dataclass
class SessionState:
    """Everything a single quadrant test owns.

    A fresh instance is built for every quadrant test; nothing carries over
    from the previous test.

    Attributes:
        quadrant: Quadrant test index (1-4)
        focal_point: Fixed focal point, seen by construction
        probe_point: Probe currently awaiting a response
        radius: Radius cursor of the point selection sweep
        sweep_angle: Angle cursor of the sweep, relative to the quadrant's base angle
        deadline_ms: Response deadline per probe
        ledger: Locations already probed
        boundary: Farthest-seen distance per direction
        tested_points: Ordered log of answered probes
        status: Lifecycle state
        completion_reason: Why the test ended, once it has
    """

    quadrant: int
    focal_point: Point
    probe_point: Point
    radius: float
    sweep_angle: float
    deadline_ms: float
    ledger: LocationLedger
    boundary: BoundaryModel
    tested_points: list[Point] = field(default_factory=list)
    status: SessionStatus = "running"
    completion_reason: CompletionReason | None = None

    @classmethod
    def fresh(cls, quadrant: int, config: PerimetryConfig) -> SessionState:
        """Build the initial state of a quadrant test.

        Args:
            quadrant: Quadrant test index (1-4)
            config: Engine configuration providing the per-quadrant constants

        Returns:
            A running SessionState with empty ledger, boundary and log

        Raises:
            ValidationError: If quadrant is not in 1-4
        """
        quadrant = validate_quadrant(quadrant)
        fx, fy = config.focal_points[quadrant]
        px, py = config.initial_probes[quadrant]
        focal = clamp(Point(x=fx, y=fy, seen=True), config.grid_size)
        probe = clamp(Point(x=px, y=py), config.grid_size)

        return cls(
            quadrant=quadrant,
            focal_point=focal,
            probe_point=probe,
            radius=config.max_radius,
            sweep_angle=0.0,
            deadline_ms=config.response_deadline_ms,
            ledger=LocationLedger(precision=config.key_precision),
            boundary=BoundaryModel(
                focal, bucket_width=config.bucket_width, tolerance=config.boundary_tolerance
            ),
        )

    @property
    def active(self) -> bool:
        return self.status == "running"

    def summary(self) -> TestSummary:
        return TestSummary.from_points(self.tested_points)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for rendering and reporting.

    Attributes:
        status: Lifecycle state of the session
        quadrant: Current quadrant test, or None before the first test
        focal_point: Focal point, or None before the first test
        probe_point: Current probe while running, last probe afterwards
        active: True while a probe awaits a response
        time_remaining_ms: Time left before the current probe times out
        tested_points: Ordered log of answered probes
        summary: Seen/unseen counts over tested_points
        completion_reason: "exhausted" or "stopped" once the test has ended
    """

    status: SessionStatus
    quadrant: int | None = None
    focal_point: Point | None = None
    probe_point: Point | None = None
    active: bool = False
    time_remaining_ms: float = 0.0
    tested_points: tuple[Point, ...] = ()
    summary: TestSummary = field(default_factory=TestSummary)
    completion_reason: CompletionReason | None = None

    @property
    def exhausted(self) -> bool:
        """True if the test ended because no further point could be selected."""
        return self.completion_reason == "exhausted"
