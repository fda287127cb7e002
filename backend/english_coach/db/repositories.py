"""SQLAlchemy-backed stores for learners and call sessions.

Every mutating method runs in its own transaction. A new session and the
owner's call count, a turn pair and its optional mistake, or a session's
closing fields and the owner's duration total are committed as one unit
or not at all.
"""

import functools
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.enums import CallChannel, SessionMode, SessionStatus
from ..core.errors import (
    PersistenceError,
    SessionClosedError,
    SessionNotFoundError,
)
from .base import get_session_maker
from .models import CallSession, Learner, SessionMistake, SessionTurn

logger = logging.getLogger(__name__)

T = TypeVar("T")


def wrap_store_errors(
    func_: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Re-raise SQLAlchemy failures as PersistenceError."""

    @functools.wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Store operation {func_.__name__} failed: {e}")
            raise PersistenceError(f"{func_.__name__} failed") from e

    return wrapper


async def _bump_learner_totals(db: AsyncSession, learner_id: int, **values: Any) -> None:
    """Atomic ``SET x = x + n`` on a learner row, inside the caller's transaction."""
    await db.execute(
        update(Learner).where(Learner.id == learner_id).values(**values)
    )


class _SqlStore:
    """Shared session-maker handling for the SQL stores."""

    def __init__(self, session_maker: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_maker = session_maker

    def _session(self) -> AsyncSession:
        maker = self._session_maker or get_session_maker()
        return maker()


class SqlLearnerStore(_SqlStore):
    """Learner lookups and atomic counter increments."""

    @wrap_store_errors
    async def create(
        self,
        phone_number: str,
        name: str,
        password_hash: str,
        email: Optional[str] = None,
    ) -> Learner:
        async with self._session() as db:
            learner = Learner(
                phone_number=phone_number,
                name=name,
                email=email,
                password_hash=password_hash,
            )
            db.add(learner)
            await db.commit()
            return learner

    @wrap_store_errors
    async def find(self, learner_id: int) -> Optional[Learner]:
        async with self._session() as db:
            return await db.get(Learner, learner_id)

    @wrap_store_errors
    async def find_by_phone(self, phone_number: str) -> Optional[Learner]:
        async with self._session() as db:
            result = await db.execute(
                select(Learner).where(Learner.phone_number == phone_number)
            )
            return result.scalar_one_or_none()

    @wrap_store_errors
    async def increment_calls(self, learner_id: int) -> None:
        await self._increment(learner_id, total_calls=Learner.total_calls + 1)

    @wrap_store_errors
    async def increment_duration(self, learner_id: int, seconds: int) -> None:
        await self._increment(
            learner_id,
            total_call_duration=Learner.total_call_duration + seconds,
        )

    async def _increment(self, learner_id: int, **values: Any) -> None:
        async with self._session() as db:
            async with db.begin():
                await _bump_learner_totals(db, learner_id, **values)


class SqlSessionStore(_SqlStore):
    """Call sessions with append-only turns and mistakes."""

    @wrap_store_errors
    async def create(
        self,
        owner_id: int,
        channel: CallChannel,
        mode: SessionMode,
        start_time: datetime,
    ) -> CallSession:
        """Insert an open session and count the call on its owner."""
        async with self._session() as db:
            async with db.begin():
                record = CallSession(
                    owner_id=owner_id,
                    channel=channel,
                    mode=mode,
                    status=SessionStatus.OPEN,
                    start_time=start_time,
                    turns=[],
                    mistakes=[],
                )
                db.add(record)
                await _bump_learner_totals(db, owner_id, total_calls=Learner.total_calls + 1)
            return record

    @wrap_store_errors
    async def find_by_id(self, session_id: str) -> Optional[CallSession]:
        async with self._session() as db:
            return await db.get(CallSession, session_id)

    @wrap_store_errors
    async def append_exchange(
        self,
        session_id: str,
        turns: Sequence[SessionTurn],
        mistake: Optional[SessionMistake] = None,
    ) -> None:
        """Append turns and an optional mistake in a single transaction.

        Positions are assigned here; the unique (session_id, position)
        constraints turn a racing append into an error instead of a lost
        update.
        """
        async with self._session() as db:
            async with db.begin():
                record = await db.get(CallSession, session_id, with_for_update=True)
                if record is None:
                    raise SessionNotFoundError(session_id)
                if record.status == SessionStatus.CLOSED:
                    raise SessionClosedError(session_id)

                next_position = len(record.turns)
                for offset, turn in enumerate(turns):
                    turn.position = next_position + offset
                    record.turns.append(turn)

                if mistake is not None:
                    mistake.position = len(record.mistakes)
                    record.mistakes.append(mistake)

                record.status = SessionStatus.ACTIVE

    @wrap_store_errors
    async def finalize(
        self,
        session_id: str,
        owner_id: int,
        end_time: datetime,
        duration_seconds: int,
        overall_score: float,
        feedback: str,
    ) -> bool:
        """Write the closing fields once and add the duration to the owner.

        Returns False, changing nothing, if the session was already finalized.
        """
        async with self._session() as db:
            async with db.begin():
                result = await db.execute(
                    update(CallSession)
                    .where(
                        CallSession.id == session_id,
                        CallSession.owner_id == owner_id,
                        CallSession.end_time.is_(None),
                    )
                    .values(
                        end_time=end_time,
                        duration_seconds=duration_seconds,
                        overall_score=overall_score,
                        feedback=feedback,
                        status=SessionStatus.CLOSED,
                    )
                )
                if result.rowcount != 1:
                    return False
                await _bump_learner_totals(
                    db,
                    owner_id,
                    total_call_duration=Learner.total_call_duration + duration_seconds,
                )
            return True

    @wrap_store_errors
    async def list_by_owner(
        self,
        owner_id: int,
        limit: Optional[int] = None,
    ) -> List[CallSession]:
        """Sessions of one learner, newest first."""
        query = (
            select(CallSession)
            .where(CallSession.owner_id == owner_id)
            .order_by(CallSession.start_time.desc())
        )
        if limit is not None:
            query = query.limit(limit)

        async with self._session() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

