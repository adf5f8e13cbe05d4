"""
Screening Session State Machine
===============================

Drives one quadrant test at a time:

    idle --start_quadrant--> running --(exhausted | stop)--> completed
                               ^                                 |
                               +---------start_quadrant----------+

While running exactly one probe is armed. Either acknowledge() or the
response deadline resolves it, never both: the deadline is cancelled as
soon as an acknowledgment is accepted, and deadline callbacks belonging to
an earlier probe are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial

from perimetry.config import PerimetryConfig, validate_quadrant
from perimetry.geometry import Point
from perimetry.selection import SelectionResult, select_next_point
from perimetry.session.dataclasses import (
    CompletionReason,
    SessionSnapshot,
    SessionState,
    SessionStatus,
    TestSummary,
)
from perimetry.session.scheduler import DeadlineHandle, DeadlineScheduler, ManualScheduler

logger = logging.getLogger(__name__)


class ScreeningSession:
    """Single-actor owner of all quadrant test state.

    Args:
        config: Engine configuration (defaults to PerimetryConfig())
        scheduler: Source of time and response deadlines (defaults to a
            ManualScheduler)
        on_probe: Called with the new probe every time one is armed
        on_complete: Called with a snapshot once per finished quadrant test

    Example:
        >>> scheduler = ManualScheduler()
        >>> session = ScreeningSession(scheduler=scheduler)
        >>> session.start_quadrant(1).probe_point
        Point(x=15.0, y=15.0, seen=False)
        >>> session.acknowledge()
        True
        >>> scheduler.advance(5.0)  # next probe times out
        1
    """

    def __init__(
        self,
        config: PerimetryConfig | None = None,
        scheduler: DeadlineScheduler | None = None,
        on_probe: Callable[[Point], None] | None = None,
        on_complete: Callable[[SessionSnapshot], None] | None = None,
    ) -> None:
        self._config = config if config is not None else PerimetryConfig()
        self._scheduler: DeadlineScheduler = scheduler if scheduler is not None else ManualScheduler()
        self._on_probe = on_probe
        self._on_complete = on_complete

        self._state: SessionState | None = None
        self._deadline: DeadlineHandle | None = None
        self._deadline_at: float | None = None
        self._probe_generation = 0
        self._last_selection: SelectionResult | None = None

    # -------------------------------------------------------------------------
    # Read-only accessors
    # -------------------------------------------------------------------------

    @property
    def config(self) -> PerimetryConfig:
        return self._config

    @property
    def scheduler(self) -> DeadlineScheduler:
        return self._scheduler

    @property
    def state(self) -> SessionState | None:
        """State of the current (or last) quadrant test, None before the first one."""
        return self._state

    @property
    def status(self) -> SessionStatus:
        if self._state is None:
            return "idle"
        return self._state.status

    @property
    def active(self) -> bool:
        return self._state is not None and self._state.active

    @property
    def focal_point(self) -> Point | None:
        return self._state.focal_point if self._state is not None else None

    @property
    def probe_point(self) -> Point | None:
        return self._state.probe_point if self._state is not None else None

    @property
    def tested_points(self) -> tuple[Point, ...]:
        return tuple(self._state.tested_points) if self._state is not None else ()

    @property
    def last_selection(self) -> SelectionResult | None:
        """Result of the most recent point selection in this quadrant test."""
        return self._last_selection

    @property
    def time_remaining_ms(self) -> float:
        """Milliseconds until the current probe times out, 0.0 when not running."""
        if not self.active or self._deadline_at is None:
            return 0.0
        return max(0.0, (self._deadline_at - self._scheduler.now()) * 1000.0)

    def summary(self) -> TestSummary:
        if self._state is None:
            return TestSummary()
        return self._state.summary()

    def snapshot(self) -> SessionSnapshot:
        """Capture the presentation-facing view of the session."""
        state = self._state
        if state is None:
            return SessionSnapshot(status="idle")
        return SessionSnapshot(
            status=state.status,
            quadrant=state.quadrant,
            focal_point=state.focal_point,
            probe_point=state.probe_point,
            active=state.active,
            time_remaining_ms=self.time_remaining_ms,
            tested_points=tuple(state.tested_points),
            summary=state.summary(),
            completion_reason=state.completion_reason,
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start_quadrant(self, quadrant: int) -> SessionSnapshot:
        """Begin a new quadrant test, discarding any previous one.

        Any pending deadline is cancelled. Ledger, boundary model and tested
        point log start empty; cursors start at maximum radius and zero
        sweep angle.

        Args:
            quadrant: Quadrant test index (1-4)

        Returns:
            Snapshot of the freshly started test

        Raises:
            ValidationError: If quadrant is not in 1-4
        """
        quadrant = validate_quadrant(quadrant)
        self._cancel_deadline()

        if self._state is not None and self._state.active:
            logger.info(f"Discarding running quadrant {self._state.quadrant} test")

        self._state = SessionState.fresh(quadrant, self._config)
        self._last_selection = None
        logger.info(
            f"Starting quadrant {quadrant} test: focal ({self._state.focal_point.x}, "
            f"{self._state.focal_point.y}), first probe ({self._state.probe_point.x}, "
            f"{self._state.probe_point.y})"
        )

        self._arm_probe()
        return self.snapshot()

    def acknowledge(self) -> bool:
        """Record that the user saw the current probe.

        Returns:
            True if the acknowledgment was accepted, False if no probe was armed
        """
        if not self.active:
            logger.debug("Ignoring acknowledgment: no quadrant test running")
            return False

        self._cancel_deadline()
        self._resolve_probe(seen=True)
        return True

    def stop(self) -> bool:
        """Operator-initiated stop of the running quadrant test.

        Returns:
            True if a running test was stopped, False otherwise
        """
        if not self.active:
            return False
        self._cancel_deadline()
        self._complete("stopped")
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _on_deadline(self, generation: int) -> None:
        if generation != self._probe_generation or not self.active:
            logger.debug(f"Ignoring stale deadline for probe {generation}")
            return
        self._deadline = None
        self._deadline_at = None
        self._resolve_probe(seen=False)

    def _resolve_probe(self, seen: bool) -> None:
        state = self._state
        assert state is not None  # guarded by self.active

        tested = state.probe_point.with_seen(seen)
        state.ledger.mark_tested(tested)
        state.tested_points.append(tested)
        if seen:
            state.boundary.update(tested)
        logger.debug(
            f"Probe ({tested.x}, {tested.y}) {'seen' if seen else 'timed out'}; "
            f"{len(state.tested_points)} tested"
        )

        result = select_next_point(
            state.focal_point,
            state.quadrant,
            state.radius,
            state.sweep_angle,
            state.ledger,
            state.boundary,
            self._config,
            last_point=tested,
        )
        self._last_selection = result
        state.radius = result.radius
        state.sweep_angle = result.sweep_angle

        if result.point is None:
            self._complete("exhausted")
            return

        state.probe_point = result.point
        self._arm_probe()

    def _arm_probe(self) -> None:
        state = self._state
        assert state is not None

        self._probe_generation += 1
        delay = state.deadline_ms / 1000.0
        self._deadline_at = self._scheduler.now() + delay
        self._deadline = self._scheduler.call_later(
            delay, partial(self._on_deadline, self._probe_generation)
        )

        if self._on_probe is not None:
            self._on_probe(state.probe_point)

    def _cancel_deadline(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
        self._deadline = None
        self._deadline_at = None

    def _complete(self, reason: CompletionReason) -> None:
        state = self._state
        assert state is not None

        state.status = "completed"
        state.completion_reason = reason
        summary = state.summary()
        logger.info(
            f"Quadrant {state.quadrant} test {reason}: {summary.total_tested} tested, "
            f"{summary.seen_count} seen, {summary.unseen_count} unseen"
        )

        if self._on_complete is not None:
            self._on_complete(self.snapshot())
