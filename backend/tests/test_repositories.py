"""
Test the SQL stores: learner counters and session transactions.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from english_coach.core.enums import CallChannel, SessionMode
from english_coach.core.errors import PersistenceError
from english_coach.db import repositories

START = datetime(2026, 10, 14, 9, 0, 0)


async def fail_learner_update(db, learner_id, **values):
    raise SQLAlchemyError("learner row locked")


async def open_session(session_store, learner):
    return await session_store.create(
        owner_id=learner.id,
        channel=CallChannel.VOICE,
        mode=SessionMode.FREE_CONVERSATION,
        start_time=START,
    )


async def close_session(session_store, record, seconds=120):
    return await session_store.finalize(
        record.id,
        owner_id=record.owner_id,
        end_time=START + timedelta(seconds=seconds),
        duration_seconds=seconds,
        overall_score=100.0,
        feedback="Excellent conversation! Your English is very good.",
    )


@pytest.mark.asyncio
class TestLearnerStore:
    """Atomic counter increments."""

    async def test_increments_add_to_totals(self, learner_store, learner):
        await learner_store.increment_calls(learner.id)
        await learner_store.increment_calls(learner.id)
        await learner_store.increment_duration(learner.id, 45)

        refreshed = await learner_store.find(learner.id)
        assert refreshed.total_calls == 2
        assert refreshed.total_call_duration == 45

    async def test_find_by_phone(self, learner_store, learner):
        found = await learner_store.find_by_phone("+15550100")

        assert found.id == learner.id
        assert await learner_store.find_by_phone("+19999999") is None


@pytest.mark.asyncio
class TestSessionStoreTransactions:
    """Session rows and owner totals commit together."""

    async def test_create_counts_the_call(self, session_store, learner_store, learner):
        await open_session(session_store, learner)

        refreshed = await learner_store.find(learner.id)
        assert refreshed.total_calls == 1

    async def test_failed_call_count_leaves_no_session(
        self, session_store, learner_store, learner, monkeypatch
    ):
        monkeypatch.setattr(repositories, "_bump_learner_totals", fail_learner_update)

        with pytest.raises(PersistenceError):
            await open_session(session_store, learner)

        monkeypatch.undo()
        assert await session_store.list_by_owner(learner.id) == []
        assert (await learner_store.find(learner.id)).total_calls == 0

    async def test_finalize_adds_duration_once(self, session_store, learner_store, learner):
        record = await open_session(session_store, learner)

        assert await close_session(session_store, record) is True
        assert await close_session(session_store, record, seconds=999) is False

        refreshed = await learner_store.find(learner.id)
        assert refreshed.total_call_duration == 120
        stored = await session_store.find_by_id(record.id)
        assert stored.duration_seconds == 120

    async def test_failed_duration_update_keeps_session_open(
        self, session_store, learner_store, learner, monkeypatch
    ):
        record = await open_session(session_store, learner)
        monkeypatch.setattr(repositories, "_bump_learner_totals", fail_learner_update)

        with pytest.raises(PersistenceError):
            await close_session(session_store, record)

        monkeypatch.undo()
        stored = await session_store.find_by_id(record.id)
        assert stored.end_time is None
        assert stored.overall_score is None

        # A retry then closes it and counts the duration.
        assert await close_session(session_store, record) is True
        assert (await learner_store.find(learner.id)).total_call_duration == 120

    async def test_finalize_ignores_foreign_owner(
        self, session_store, learner_store, learner, other_learner
    ):
        record = await open_session(session_store, learner)

        finalized = await session_store.finalize(
            record.id,
            owner_id=other_learner.id,
            end_time=START,
            duration_seconds=10,
            overall_score=100.0,
            feedback="",
        )

        assert finalized is False
        assert (await session_store.find_by_id(record.id)).end_time is None
        assert (await learner_store.find(other_learner.id)).total_call_duration == 0
