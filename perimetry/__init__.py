"""
Perimetry Screening Engine
==========================

Adaptive sampling engine for a self-administered visual-field screening
test: decides where each probe appears relative to a fixed focal point,
avoids re-testing locations, steers sampling outward of the known-visible
boundary and detects when a quadrant test is exhausted.
"""

from perimetry.boundary import BoundaryModel
from perimetry.config import (
    PerimetryConfig,
    ValidationError,
    validate_quadrant,
)
from perimetry.debug import (
    disable_debug_logging,
    format_angle,
    format_boundary,
    format_point,
    format_summary,
    log_snapshot,
    setup_debug_logging,
)
from perimetry.geometry import Point, angle_of, clamp, distance_of
from perimetry.ledger import LocationLedger
from perimetry.selection import (
    SelectionResult,
    in_quadrant_of_interest,
    select_next_point,
)
from perimetry.session import (
    AsyncioScheduler,
    ManualScheduler,
    ScreeningSession,
    SessionSnapshot,
    SessionState,
    TestSummary,
)
from perimetry.simulation import (
    blind_spot_responder,
    run_simulated_quadrant,
    visual_field_responder,
)

__all__ = [
    # Engine components
    'Point',
    'clamp',
    'angle_of',
    'distance_of',
    'LocationLedger',
    'BoundaryModel',
    'SelectionResult',
    'in_quadrant_of_interest',
    'select_next_point',
    # Session API
    'PerimetryConfig',
    'ValidationError',
    'validate_quadrant',
    'ScreeningSession',
    'SessionState',
    'SessionSnapshot',
    'TestSummary',
    'ManualScheduler',
    'AsyncioScheduler',
    # Simulation
    'run_simulated_quadrant',
    'visual_field_responder',
    'blind_spot_responder',
    # Debug utilities
    'setup_debug_logging',
    'disable_debug_logging',
    'format_angle',
    'format_point',
    'format_summary',
    'format_boundary',
    'log_snapshot',
]
__version__ = '0.1.0'
