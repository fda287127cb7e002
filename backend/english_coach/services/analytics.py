"""Read-side statistics over a learner's session history.

The module-level functions are pure and work on already loaded sessions;
AnalyticsService loads the history and assembles the dashboard.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from ..core.clock import utcnow
from ..db.models import CallSession, Learner
from .sessions import SessionStore, load_owned_session

RECENT_SESSIONS_LIMIT = 10
RECURRING_MISTAKES_LIMIT = 10
PROGRESS_WINDOW_DAYS = 30


@dataclass(frozen=True)
class RecurringMistake:
    original: str
    corrected: str
    frequency: int
    last_occurred: datetime


@dataclass(frozen=True)
class WeeklyBucket:
    year: int
    week: int
    sessions: int = 0
    total_duration: int = 0
    mistakes: int = 0


@dataclass(frozen=True)
class LearnerStats:
    total_sessions: int
    total_mistakes: int
    avg_session_duration: int
    current_week_sessions: int


# =============================================================================
# Pure aggregations
# =============================================================================

def iso_week_key(moment: datetime | date) -> Tuple[int, int]:
    """(ISO year, ISO week) of a date or datetime."""
    iso = moment.isocalendar()
    return iso[0], iso[1]


def recurring_mistakes(
    sessions: Iterable[CallSession],
    limit: int = RECURRING_MISTAKES_LIMIT,
) -> List[RecurringMistake]:
    """
    Group mistakes by (original, corrected) across sessions.

    Sorted by frequency, most frequent first; equal frequencies put the
    most recently seen pair first.
    """
    counts: Dict[Tuple[str, str], int] = defaultdict(int)
    latest: Dict[Tuple[str, str], datetime] = {}

    for session in sessions:
        for mistake in session.mistakes:
            key = (mistake.original, mistake.corrected)
            counts[key] += 1
            if key not in latest or mistake.occurred_at > latest[key]:
                latest[key] = mistake.occurred_at

    ranked = sorted(
        counts,
        key=lambda key: (counts[key], latest[key]),
        reverse=True,
    )
    return [
        RecurringMistake(
            original=key[0],
            corrected=key[1],
            frequency=counts[key],
            last_occurred=latest[key],
        )
        for key in ranked[:limit]
    ]


def weekly_progress(
    sessions: Iterable[CallSession],
    now: datetime,
    window_days: int = PROGRESS_WINDOW_DAYS,
) -> List[WeeklyBucket]:
    """
    Per-week totals for sessions started in the last ``window_days``.

    Every ISO week from the one containing the window start through the
    current week gets a bucket, empty weeks included, in ascending order.
    The last bucket is therefore always the current week.
    """
    window_start = now - timedelta(days=window_days)

    totals: Dict[Tuple[int, int], List[int]] = {}
    cursor = window_start.date() - timedelta(days=window_start.weekday())
    while cursor <= now.date():
        totals[iso_week_key(cursor)] = [0, 0, 0]
        cursor += timedelta(weeks=1)

    for session in sessions:
        if session.start_time < window_start or session.start_time > now:
            continue
        bucket = totals.setdefault(iso_week_key(session.start_time), [0, 0, 0])
        bucket[0] += 1
        bucket[1] += session.duration_seconds or 0
        bucket[2] += len(session.mistakes)

    return [
        WeeklyBucket(year=year, week=week, sessions=s, total_duration=d, mistakes=m)
        for (year, week), (s, d, m) in sorted(totals.items())
    ]


def summarize(
    learner: Learner,
    sessions: Sequence[CallSession],
    progress: Sequence[WeeklyBucket],
) -> LearnerStats:
    total_calls = learner.total_calls or 0
    avg_duration = round((learner.total_call_duration or 0) / total_calls) if total_calls else 0
    return LearnerStats(
        total_sessions=len(sessions),
        total_mistakes=sum(len(session.mistakes) for session in sessions),
        avg_session_duration=avg_duration,
        current_week_sessions=progress[-1].sessions if progress else 0,
    )


def session_overview(session: CallSession) -> Dict[str, Any]:
    """Summary fields of a session, without the transcript."""
    return {
        "id": session.id,
        "start_time": session.start_time,
        "duration": session.duration_seconds,
        "mistakes_count": len(session.mistakes),
        "overall_score": session.overall_score,
        "session_type": session.mode.value,
        "status": session.status.value,
    }


def recent_sessions(
    sessions: Iterable[CallSession],
    limit: int = RECENT_SESSIONS_LIMIT,
) -> List[Dict[str, Any]]:
    """The most recently started sessions, newest first."""
    newest_first = sorted(sessions, key=lambda session: session.start_time, reverse=True)
    return [session_overview(session) for session in newest_first[:limit]]


def session_details(session: CallSession) -> Dict[str, Any]:
    """Full session record including every turn and mistake."""
    return {
        "id": session.id,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "duration": session.duration_seconds,
        "call_type": session.channel.value,
        "session_type": session.mode.value,
        "status": session.status.value,
        "overall_score": session.overall_score,
        "feedback": session.feedback,
        "conversation": [
            {
                "speaker": turn.speaker.value,
                "message": turn.text,
                "timestamp": turn.created_at,
                "has_correction": turn.has_correction,
                "correction_data": {
                    "original": turn.correction_original,
                    "corrected": turn.correction_corrected,
                    "explanation": turn.correction_explanation,
                } if turn.has_correction else None,
            }
            for turn in session.turns
        ],
        "mistakes": [
            {
                "original": mistake.original,
                "corrected": mistake.corrected,
                "mistake_type": mistake.category,
                "context": mistake.context_utterance,
                "timestamp": mistake.occurred_at,
            }
            for mistake in session.mistakes
        ],
    }


# =============================================================================
# Service
# =============================================================================

class AnalyticsService:
    """Builds dashboard payloads from the stores."""

    def __init__(
        self,
        sessions: SessionStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sessions = sessions
        self.clock = clock

    async def dashboard(self, learner: Learner) -> Dict[str, Any]:
        """Stats, recent sessions, recurring mistakes and weekly progress."""
        history = await self.sessions.list_by_owner(learner.id)
        progress = weekly_progress(history, now=self.clock())
        stats = summarize(learner, history, progress)

        return {
            "user": {
                "name": learner.name,
                "phone_number": learner.phone_number,
                "total_calls": learner.total_calls,
                "total_call_duration": learner.total_call_duration,
                "level": learner.level,
            },
            "stats": asdict(stats),
            "recent_sessions": recent_sessions(history),
            "common_mistakes": [asdict(item) for item in recurring_mistakes(history)],
            "weekly_progress": [asdict(bucket) for bucket in progress],
        }

    async def session_detail(self, session_id: str, caller_id: int) -> Dict[str, Any]:
        """Full transcript of a session owned by the caller."""
        record = await load_owned_session(self.sessions, session_id, caller_id)
        return session_details(record)
