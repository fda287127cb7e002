"""FastAPI dependencies wiring stores, the agent and the services."""

from fastapi import Depends, Request

from ..agents.coach.agent import ConversationAgent
from ..db.repositories import SqlLearnerStore, SqlSessionStore
from ..services.analytics import AnalyticsService
from ..services.sessions import SessionManager


def get_session_store() -> SqlSessionStore:
    return SqlSessionStore()


def get_learner_store() -> SqlLearnerStore:
    return SqlLearnerStore()


def get_conversation_agent(request: Request) -> ConversationAgent:
    """The agent built for this application in create_app."""
    return request.app.state.conversation_agent


def get_session_manager(
    sessions: SqlSessionStore = Depends(get_session_store),
    agent: ConversationAgent = Depends(get_conversation_agent),
) -> SessionManager:
    return SessionManager(sessions=sessions, agent=agent)


def get_analytics_service(
    sessions: SqlSessionStore = Depends(get_session_store),
) -> AnalyticsService:
    return AnalyticsService(sessions=sessions)
