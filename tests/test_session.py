"""
Tests for the screening session state machine.

Tests cover:
- Lifecycle: idle -> running -> completed, restart from any state
- acknowledge() / deadline resolution, one outcome per probe
- Reset semantics of start_quadrant()
- Presentation-facing accessors and callbacks
"""

import pytest

from perimetry.config import PerimetryConfig, ValidationError
from perimetry.geometry import Point
from perimetry.session import ManualScheduler, ScreeningSession, SessionSnapshot


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def session(scheduler: ManualScheduler) -> ScreeningSession:
    return ScreeningSession(scheduler=scheduler)


# =============================================================================
# Lifecycle
# =============================================================================


class TestIdle:
    """Behaviour before any quadrant test has started."""

    def test_initial_status(self, session: ScreeningSession) -> None:
        assert session.status == "idle"
        assert not session.active
        assert session.state is None
        assert session.focal_point is None
        assert session.probe_point is None
        assert session.tested_points == ()
        assert session.time_remaining_ms == 0.0

    def test_snapshot_when_idle(self, session: ScreeningSession) -> None:
        assert session.snapshot() == SessionSnapshot(status="idle")

    def test_acknowledge_ignored(self, session: ScreeningSession) -> None:
        assert session.acknowledge() is False

    def test_stop_ignored(self, session: ScreeningSession) -> None:
        assert session.stop() is False


class TestStartQuadrant:
    """Tests for start_quadrant()."""

    def test_initial_state(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """Quadrant 1 starts with focal (4, 4), probe (15, 15) and fresh cursors."""
        snapshot = session.start_quadrant(1)

        assert snapshot.status == "running"
        assert snapshot.active
        assert snapshot.quadrant == 1
        assert snapshot.focal_point == Point(x=4.0, y=4.0, seen=True)
        assert snapshot.probe_point == Point(x=15.0, y=15.0, seen=False)
        assert snapshot.time_remaining_ms == pytest.approx(5000.0)
        assert snapshot.tested_points == ()

        state = session.state
        assert state is not None
        assert state.radius == 12.0
        assert state.sweep_angle == 0.0
        assert len(state.ledger) == 0
        assert len(state.boundary) == 0
        assert scheduler.pending == 1

    @pytest.mark.parametrize(
        "quadrant,focal,probe",
        [
            (2, (15.0, 5.0), (5.0, 15.0)),
            (3, (15.0, 15.0), (5.0, 5.0)),
            (4, (5.0, 15.0), (15.0, 5.0)),
        ],
    )
    def test_per_quadrant_constants(
        self, session: ScreeningSession, quadrant: int, focal: tuple, probe: tuple
    ) -> None:
        snapshot = session.start_quadrant(quadrant)
        assert snapshot.focal_point == Point(*focal, seen=True)
        assert snapshot.probe_point == Point(*probe)

    @pytest.mark.parametrize("quadrant", [0, 5, "2", True, None])
    def test_invalid_quadrant_rejected(self, session: ScreeningSession, quadrant: object) -> None:
        with pytest.raises(ValidationError):
            session.start_quadrant(quadrant)  # type: ignore[arg-type]
        assert session.status == "idle"

    def test_invalid_quadrant_keeps_running_test(self, session: ScreeningSession) -> None:
        """A rejected restart leaves the current test untouched."""
        session.start_quadrant(2)
        with pytest.raises(ValidationError):
            session.start_quadrant(9)
        assert session.active
        assert session.snapshot().quadrant == 2

    def test_start_is_idempotent(self, session: ScreeningSession) -> None:
        """Starting the same quadrant twice yields identical initial state."""
        first = session.start_quadrant(3)
        second = session.start_quadrant(3)

        assert first == second
        assert session.state is not None
        assert len(session.state.ledger) == 0

    def test_restart_resets_everything(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """Ledger, boundary, log and cursors reset regardless of prior progress."""
        session.start_quadrant(1)
        session.acknowledge()
        scheduler.advance(5.0)
        session.acknowledge()
        assert len(session.tested_points) == 3

        session.start_quadrant(1)
        state = session.state
        assert state is not None
        assert state.tested_points == []
        assert len(state.ledger) == 0
        assert len(state.boundary) == 0
        assert state.radius == 12.0
        assert state.sweep_angle == 0.0
        assert state.probe_point == Point(x=15.0, y=15.0)

    def test_restart_cancels_pending_deadline(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """The previous test's deadline never fires into the new one."""
        session.start_quadrant(1)
        scheduler.advance(3.0)
        session.start_quadrant(2)

        scheduler.advance(2.5)
        assert session.tested_points == ()
        assert scheduler.pending == 1

        scheduler.advance(2.5)
        assert len(session.tested_points) == 1

    def test_restart_after_completion(self, session: ScreeningSession) -> None:
        session.start_quadrant(1)
        session.stop()
        snapshot = session.start_quadrant(4)
        assert snapshot.status == "running"
        assert snapshot.completion_reason is None


# =============================================================================
# Responses
# =============================================================================


class TestAcknowledge:
    """Tests for acknowledge()."""

    def test_records_seen_probe(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        session.start_quadrant(1)
        scheduler.advance(1.2)

        assert session.acknowledge() is True
        assert session.tested_points == (Point(x=15.0, y=15.0, seen=True),)

        state = session.state
        assert state is not None
        assert state.ledger.is_tested(15.0, 15.0)
        assert len(state.boundary) == 1

    def test_adopts_new_probe_and_rearms(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """The next probe is untested and gets a full deadline."""
        session.start_quadrant(1)
        scheduler.advance(1.2)
        session.acknowledge()

        assert session.active
        assert session.probe_point is not None
        assert session.probe_point != Point(x=15.0, y=15.0)
        assert session.time_remaining_ms == pytest.approx(5000.0)
        assert scheduler.pending == 1

    def test_cancels_deadline(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """Only one outcome is recorded per probe."""
        session.start_quadrant(1)
        scheduler.advance(4.0)
        session.acknowledge()
        scheduler.advance(1.5)  # past the first probe's original deadline

        assert len(session.tested_points) == 1
        assert session.tested_points[0].seen is True

    def test_last_selection_exposed(self, session: ScreeningSession) -> None:
        session.start_quadrant(1)
        assert session.last_selection is None
        session.acknowledge()
        assert session.last_selection is not None
        assert session.last_selection.point == session.probe_point


class TestDeadline:
    """Tests for probe timeouts."""

    def test_timeout_records_unseen_probe(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        session.start_quadrant(1)
        scheduler.advance(5.0)

        assert session.tested_points == (Point(x=15.0, y=15.0, seen=False),)
        state = session.state
        assert state is not None
        assert state.ledger.is_tested(15.0, 15.0)
        assert len(state.boundary) == 0

    def test_countdown(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        session.start_quadrant(1)
        scheduler.advance(3.0)
        assert session.time_remaining_ms == pytest.approx(2000.0)
        assert session.snapshot().time_remaining_ms == pytest.approx(2000.0)

    def test_no_timeout_before_deadline(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        session.start_quadrant(1)
        scheduler.advance(4.0)
        assert session.tested_points == ()

    def test_custom_deadline(self, scheduler: ManualScheduler) -> None:
        session = ScreeningSession(PerimetryConfig(response_deadline_ms=2000), scheduler=scheduler)
        session.start_quadrant(1)
        scheduler.advance(2.0)
        assert len(session.tested_points) == 1


# =============================================================================
# Completion
# =============================================================================


class TestCompletion:
    """Tests for stop() and exhaustion."""

    def test_stop(self, scheduler: ManualScheduler) -> None:
        completed: list[SessionSnapshot] = []
        session = ScreeningSession(scheduler=scheduler, on_complete=completed.append)
        session.start_quadrant(1)
        session.acknowledge()

        assert session.stop() is True
        assert session.status == "completed"
        assert not session.active
        assert session.time_remaining_ms == 0.0
        assert scheduler.pending == 0
        assert session.acknowledge() is False

        assert len(completed) == 1
        assert completed[0].completion_reason == "stopped"
        assert not completed[0].exhausted
        assert completed[0].summary.total_tested == 1

    def test_exhaustion_when_every_probe_times_out(self, scheduler: ManualScheduler) -> None:
        """All-timeout run: no repeats, radius never grows, ends exhausted."""
        completed: list[SessionSnapshot] = []
        session = ScreeningSession(scheduler=scheduler, on_complete=completed.append)
        session.start_quadrant(1)

        radii = [12.0]
        for _ in range(400):
            if not session.active:
                break
            scheduler.advance(5.0)
            assert session.state is not None
            radii.append(session.state.radius)

        assert session.status == "completed"
        assert len(completed) == 1
        assert completed[0].exhausted

        tested = session.tested_points
        keys = [(p.x, p.y) for p in tested]
        assert len(keys) == len(set(keys))
        assert all(not p.seen for p in tested)
        assert all(0 <= p.x <= 19 and 0 <= p.y <= 19 for p in tested)
        assert radii == sorted(radii, reverse=True)
        assert radii[-1] == 2.0

    def test_probe_callback(self, scheduler: ManualScheduler) -> None:
        """on_probe sees the initial probe and every new one."""
        probes: list[Point] = []
        session = ScreeningSession(scheduler=scheduler, on_probe=probes.append)
        session.start_quadrant(1)
        session.acknowledge()
        scheduler.advance(5.0)

        assert len(probes) == 3
        assert probes[0] == Point(x=15.0, y=15.0)
        assert probes[-1] == session.probe_point


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """End-to-end response sequences."""

    def test_single_acknowledgment_then_timeouts(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """Quadrant 3: one seen entry first, every later entry unseen."""
        session.start_quadrant(3)
        session.acknowledge()
        for _ in range(400):
            if not session.active:
                break
            scheduler.advance(5.0)

        tested = session.tested_points
        assert tested[0] == Point(x=5.0, y=5.0, seen=True)
        assert sum(1 for p in tested if p.seen) == 1
        assert all(not p.seen for p in tested[1:])
        assert session.summary().seen_count == 1
        assert session.summary().unseen_count == len(tested) - 1

    def test_boundary_only_grows_over_session(self, session: ScreeningSession, scheduler: ManualScheduler) -> None:
        """Alternating responses never lower a stored boundary distance."""
        session.start_quadrant(2)
        previous: dict[int, float] = {}
        for step in range(40):
            if not session.active:
                break
            if step % 2 == 0:
                session.acknowledge()
            else:
                scheduler.advance(5.0)
            state = session.state
            assert state is not None
            current = state.boundary.as_dict()
            for bucket, distance in previous.items():
                assert current[bucket] >= distance
            previous = current

    def test_same_responses_same_probes(self) -> None:
        """The engine is deterministic for a given response sequence."""

        def run() -> tuple[Point, ...]:
            scheduler = ManualScheduler()
            session = ScreeningSession(scheduler=scheduler)
            session.start_quadrant(4)
            for step in range(30):
                if not session.active:
                    break
                if step % 3 == 0:
                    session.acknowledge()
                else:
                    scheduler.advance(5.0)
            return session.tested_points

        assert run() == run()
