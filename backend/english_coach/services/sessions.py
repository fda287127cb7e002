"""Call session lifecycle: start, per-turn processing, end.

States: open -> active (first recorded turn) -> closed (end). A session
with no turns can be closed straight from open.

Turns and mistakes are append-only. The closing fields are written once;
ending a closed session returns the stored summary unchanged.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence

from ..agents.coach.agent import ConversationAgent
from ..agents.coach.prompts import FEEDBACK_NO_MISTAKES, FEEDBACK_WITH_MISTAKES
from ..agents.coach.state import ContextEntry
from ..core.clock import utcnow
from ..core.enums import CallChannel, SessionMode, Speaker
from ..core.errors import SessionClosedError, SessionNotFoundError
from ..db.models import CallSession, SessionMistake, SessionTurn

logger = logging.getLogger(__name__)

FEEDBACK_FOCUS_LIMIT = 3
MISTAKE_CATEGORY = "grammar"


# =============================================================================
# Store contracts
# =============================================================================

class SessionStore(Protocol):
    """Session persistence.

    create and finalize also update the owner's call totals in the same
    transaction.
    """

    async def create(self, owner_id: int, channel: CallChannel, mode: SessionMode,
                     start_time: datetime) -> CallSession: ...

    async def find_by_id(self, session_id: str) -> Optional[CallSession]: ...

    async def append_exchange(self, session_id: str, turns: Sequence[SessionTurn],
                              mistake: Optional[SessionMistake] = None) -> None: ...

    async def finalize(self, session_id: str, owner_id: int, end_time: datetime,
                       duration_seconds: int, overall_score: float, feedback: str) -> bool: ...

    async def list_by_owner(self, owner_id: int,
                            limit: Optional[int] = None) -> List[CallSession]: ...


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class TurnOutcome:
    """What the learner sees after one utterance."""

    session_id: str
    reply: str
    has_correction: bool
    correction: Optional[dict] = None
    error: bool = False


@dataclass(frozen=True)
class SessionSummary:
    """Closing figures of a session."""

    session_id: str
    duration_seconds: int
    mistakes_count: int
    overall_score: float
    feedback: str


# =============================================================================
# Scoring
# =============================================================================

def count_user_turns(turns: Sequence[SessionTurn]) -> int:
    return sum(1 for turn in turns if Speaker(turn.speaker) == Speaker.USER)


def compute_score(mistakes_count: int, user_turns: int) -> float:
    """100 minus the mistake rate as a percentage, clamped to [0, 100]."""
    mistake_rate = mistakes_count / max(1, user_turns)
    return min(100.0, max(0.0, 100.0 - mistake_rate * 100.0))


def build_feedback(mistakes: Sequence[SessionMistake]) -> str:
    if not mistakes:
        return FEEDBACK_NO_MISTAKES
    focus = ", ".join(
        f"{mistake.original} → {mistake.corrected}"
        for mistake in mistakes[:FEEDBACK_FOCUS_LIMIT]
    )
    return FEEDBACK_WITH_MISTAKES.format(count=len(mistakes), focus=focus)


def summarize_closed(record: CallSession) -> SessionSummary:
    return SessionSummary(
        session_id=record.id,
        duration_seconds=record.duration_seconds or 0,
        mistakes_count=len(record.mistakes),
        overall_score=record.overall_score,
        feedback=record.feedback,
    )


async def load_owned_session(
    store: SessionStore,
    session_id: str,
    caller_id: int,
) -> CallSession:
    """Fetch a session owned by the caller.

    A foreign session raises the same SessionNotFoundError as a missing one.
    """
    record = await store.find_by_id(session_id)
    if record is None or record.owner_id != caller_id:
        raise SessionNotFoundError(session_id)
    return record


# =============================================================================
# Manager
# =============================================================================

class SessionManager:
    """Owns the session state machine."""

    def __init__(
        self,
        sessions: SessionStore,
        agent: ConversationAgent,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sessions = sessions
        self.agent = agent
        self.clock = clock

    async def start(
        self,
        owner_id: int,
        channel: CallChannel = CallChannel.VOICE,
        mode: SessionMode = SessionMode.FREE_CONVERSATION,
    ) -> str:
        """Create an open session; the store counts the call. Returns the session id."""
        record = await self.sessions.create(
            owner_id=owner_id,
            channel=CallChannel(channel),
            mode=SessionMode(mode),
            start_time=self.clock(),
        )
        logger.info(f"Started session {record.id} for learner {owner_id} ({record.mode.value})")
        return record.id

    async def process_turn(
        self,
        session_id: str,
        caller_id: int,
        user_text: str,
    ) -> TurnOutcome:
        """
        Send one learner utterance to the agent and record the exchange.

        The model call happens before any write. The user turn, the agent
        turn and an optional mistake are then appended together.

        Raises:
            SessionNotFoundError: Missing session or caller is not the owner
            SessionClosedError: Session has already ended
        """
        record = await load_owned_session(self.sessions, session_id, caller_id)
        if record.end_time is not None:
            raise SessionClosedError(session_id)

        prior_context: List[ContextEntry] = [
            {"speaker": Speaker(turn.speaker).value, "text": turn.text}
            for turn in record.turns
        ]
        reply = await self.agent.respond(
            user_text,
            prior_context,
            record.mode,
            session_id=session_id,
        )
        correction = reply.correction
        now = self.clock()

        user_turn = SessionTurn(
            speaker=Speaker.USER,
            text=user_text,
            has_correction=correction.has_correction,
            created_at=now,
        )
        mistake = None
        if correction.has_correction:
            user_turn.correction_original = correction.original
            user_turn.correction_corrected = correction.corrected
            user_turn.correction_explanation = correction.explanation
            mistake = SessionMistake(
                original=correction.original,
                corrected=correction.corrected,
                category=MISTAKE_CATEGORY,
                context_utterance=user_text,
                occurred_at=now,
            )
        agent_turn = SessionTurn(
            speaker=Speaker.AGENT,
            text=reply.text,
            has_correction=False,
            created_at=now,
        )

        await self.sessions.append_exchange(session_id, [user_turn, agent_turn], mistake)

        return TurnOutcome(
            session_id=session_id,
            reply=reply.text,
            has_correction=correction.has_correction,
            correction=correction.as_dict() if correction.has_correction else None,
            error=reply.error,
        )

    async def end(self, session_id: str, caller_id: int) -> SessionSummary:
        """
        Close a session: duration, score and feedback.

        Ending an already closed session is a no-op returning the stored
        summary. The closing write and the learner's duration total are
        committed together, once.

        Raises:
            SessionNotFoundError: Missing session or caller is not the owner
        """
        record = await load_owned_session(self.sessions, session_id, caller_id)
        if record.end_time is not None:
            return summarize_closed(record)

        end_time = self.clock()
        duration = max(0, int((end_time - record.start_time).total_seconds()))
        mistakes = list(record.mistakes)
        overall_score = compute_score(len(mistakes), count_user_turns(record.turns))
        feedback = build_feedback(mistakes)

        finalized = await self.sessions.finalize(
            session_id,
            owner_id=record.owner_id,
            end_time=end_time,
            duration_seconds=duration,
            overall_score=overall_score,
            feedback=feedback,
        )
        if not finalized:
            # Another request closed it first; report what was stored.
            record = await load_owned_session(self.sessions, session_id, caller_id)
            return summarize_closed(record)

        logger.info(
            f"Ended session {session_id}: {duration}s, "
            f"{len(mistakes)} mistakes, score {overall_score:.1f}"
        )

        return SessionSummary(
            session_id=session_id,
            duration_seconds=duration,
            mistakes_count=len(mistakes),
            overall_score=overall_score,
            feedback=feedback,
        )
