"""Dashboard API endpoints: learner statistics and session history."""

from typing import Any

from fastapi import APIRouter, Depends

from ..db.models import Learner
from ..services.analytics import AnalyticsService
from .auth import get_current_learner
from .deps import get_analytics_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
async def get_dashboard(
    current_learner: Learner = Depends(get_current_learner),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    """
    Learner dashboard.

    Returns profile totals, summary stats, the ten most recent sessions,
    the most frequent mistakes and weekly progress for the last 30 days.
    """
    return await analytics.dashboard(current_learner)


@router.get("/session/{session_id}")
async def get_session_details(
    session_id: str,
    current_learner: Learner = Depends(get_current_learner),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, Any]:
    """Full transcript and mistakes of one of the learner's sessions."""
    return {"session": await analytics.session_detail(session_id, current_learner.id)}
