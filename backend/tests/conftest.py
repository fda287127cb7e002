"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from langchain_core.messages import AIMessage, BaseMessage

from english_coach.agents.base.llm import AgentConfig
from english_coach.agents.coach.agent import ConversationAgent
from english_coach.db import models  # noqa: F401
from english_coach.db.base import Base, close_all, configure_database
from english_coach.db.repositories import SqlLearnerStore, SqlSessionStore
from english_coach.main import create_app
from english_coach.services.sessions import SessionManager


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingChatModel:
    """Chat model stand-in: replays queued replies and records every call."""

    default_reply = "That's great, keep going!"

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[List[BaseMessage]] = []
        self.configs: List[dict] = []

    def queue(self, *replies: str) -> None:
        self.replies.extend(replies)

    async def ainvoke(self, messages, config=None):
        self.calls.append(list(messages))
        self.configs.append(config or {})
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else self.default_reply
        return AIMessage(
            content=content,
            usage_metadata={"input_tokens": 12, "output_tokens": 8, "total_tokens": 20},
        )


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class MockWebSocket:
    """Mock WebSocket for testing."""

    def __init__(self, fail_on_send: bool = False):
        self.messages = []
        self.accepted = False
        self.closed = False
        self.fail_on_send = fail_on_send

    async def accept(self):
        self.accepted = True

    async def send_json(self, data: dict):
        if self.fail_on_send:
            raise RuntimeError("connection dropped")
        self.messages.append(data)

    async def close(self, code: int = 1000):
        self.closed = True


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(base_url="http://127.0.0.1:1234/v1", model_name="test-model")


@pytest.fixture
def chat_model() -> RecordingChatModel:
    return RecordingChatModel()


@pytest.fixture
def conversation_agent(agent_config: AgentConfig, chat_model: RecordingChatModel) -> ConversationAgent:
    return ConversationAgent(agent_config, llm=chat_model)


@pytest.fixture
async def database():
    """Fresh in-memory database with all tables."""
    engine = configure_database(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await close_all()


@pytest.fixture
def session_store(database) -> SqlSessionStore:
    return SqlSessionStore()


@pytest.fixture
def learner_store(database) -> SqlLearnerStore:
    return SqlLearnerStore()


@pytest.fixture
async def learner(learner_store: SqlLearnerStore):
    return await learner_store.create(
        phone_number="+15550100",
        name="Test Learner",
        password_hash="not-a-real-hash",
    )


@pytest.fixture
async def other_learner(learner_store: SqlLearnerStore):
    return await learner_store.create(
        phone_number="+15550199",
        name="Other Learner",
        password_hash="not-a-real-hash",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 14, 9, 0, 0))


@pytest.fixture
def session_manager(
    session_store: SqlSessionStore,
    conversation_agent: ConversationAgent,
    clock: FakeClock,
) -> SessionManager:
    return SessionManager(session_store, conversation_agent, clock=clock)


@pytest.fixture
async def async_client(database, conversation_agent) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    app = create_app(agent=conversation_agent)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


async def register(client: AsyncClient, phone_number: str, name: str = "Test Learner") -> dict:
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "phone_number": phone_number,
            "name": name,
            "password": "testpass123",
        }
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
async def auth_headers(async_client: AsyncClient) -> dict:
    """Headers with a bearer token for a freshly registered learner."""
    data = await register(async_client, "+15550001")
    return {"Authorization": f"Bearer {data['access_token']}"}


@pytest.fixture
async def other_auth_headers(async_client: AsyncClient) -> dict:
    data = await register(async_client, "+15550002", name="Someone Else")
    return {"Authorization": f"Bearer {data['access_token']}"}


@pytest.fixture
def mock_websocket() -> MockWebSocket:
    """Create a mock WebSocket."""
    return MockWebSocket()
