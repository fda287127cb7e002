"""Session lifecycle and analytics services."""

from .analytics import AnalyticsService
from .sessions import SessionManager, SessionSummary, TurnOutcome

__all__ = [
    "AnalyticsService",
    "SessionManager",
    "SessionSummary",
    "TurnOutcome",
]
