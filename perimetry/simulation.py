"""
Simulated Screening
===================

Runs a whole quadrant test against a scripted responder on a virtual
clock, for demos, regression runs and tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from perimetry.config import PerimetryConfig, ValidationError
from perimetry.geometry import Point, distance_of
from perimetry.session.dataclasses import SessionSnapshot
from perimetry.session.machine import ScreeningSession
from perimetry.session.scheduler import ManualScheduler

logger = logging.getLogger(__name__)

Responder = Callable[[Point, Point], bool]
"""Decides whether a probe is seen: responder(probe, focal) -> seen."""


def visual_field_responder(visible_radius: float) -> Responder:
    """Responder that sees every probe within `visible_radius` of the focal point."""
    if visible_radius < 0:
        raise ValidationError(f"visible_radius must be non-negative, got {visible_radius}")

    def respond(probe: Point, focal: Point) -> bool:
        return distance_of(probe, focal) <= visible_radius

    return respond


def blind_spot_responder(cells: set[tuple[float, float]]) -> Responder:
    """Responder that misses exactly the listed (x, y) cells and sees everything else."""
    blind = {(float(x), float(y)) for x, y in cells}

    def respond(probe: Point, focal: Point) -> bool:
        return (probe.x, probe.y) not in blind

    return respond


def run_simulated_quadrant(
    quadrant: int,
    responder: Responder,
    config: PerimetryConfig | None = None,
    reaction_ms: float = 300.0,
) -> SessionSnapshot:
    """Run one quadrant test to completion with a scripted responder.

    Seen probes are acknowledged `reaction_ms` after they appear; unseen
    probes are left to run into the response deadline.

    Args:
        quadrant: Quadrant test index (1-4)
        responder: Decides the outcome of each probe
        config: Engine configuration (defaults to PerimetryConfig())
        reaction_ms: Simulated reaction time for seen probes

    Returns:
        Final SessionSnapshot. The test normally ends exhausted; if it is
        still running after one probe per grid cell it is stopped.

    Raises:
        ValidationError: If quadrant is invalid or reaction_ms does not fall
            inside the response deadline
    """
    config = config if config is not None else PerimetryConfig()
    if not 0 <= reaction_ms < config.response_deadline_ms:
        raise ValidationError(
            f"reaction_ms must be in [0, {config.response_deadline_ms}), got {reaction_ms}"
        )

    scheduler = ManualScheduler()
    session = ScreeningSession(config=config, scheduler=scheduler)
    session.start_quadrant(quadrant)

    max_probes = config.grid_size * config.grid_size
    for _ in range(max_probes):
        state = session.state
        if state is None or not state.active:
            break
        if responder(state.probe_point, state.focal_point):
            scheduler.advance(reaction_ms / 1000.0)
            session.acknowledge()
        else:
            scheduler.advance(config.response_deadline_s)

    if session.active:
        logger.warning(f"Quadrant {quadrant} still running after {max_probes} probes, stopping")
        session.stop()

    return session.snapshot()
