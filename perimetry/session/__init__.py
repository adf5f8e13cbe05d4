"""
Screening session: state, deadline scheduling and the state machine that
ties point selection to user responses.
"""

from perimetry.session.dataclasses import (
    CompletionReason,
    SessionSnapshot,
    SessionState,
    SessionStatus,
    TestSummary,
)
from perimetry.session.machine import ScreeningSession
from perimetry.session.scheduler import (
    AsyncioScheduler,
    DeadlineHandle,
    DeadlineScheduler,
    ManualScheduler,
    ScheduledCall,
)

__all__ = [
    "CompletionReason",
    "SessionSnapshot",
    "SessionState",
    "SessionStatus",
    "TestSummary",
    "ScreeningSession",
    "AsyncioScheduler",
    "DeadlineHandle",
    "DeadlineScheduler",
    "ManualScheduler",
    "ScheduledCall",
]
