"""Closed value sets shared by the models, the agent and the API."""

import enum


class SessionMode(str, enum.Enum):
    """Tutoring persona selected when a session starts."""

    FREE_CONVERSATION = "free_conversation"
    GRAMMAR_LESSON = "grammar_lesson"
    PRONUNCIATION = "pronunciation"


class CallChannel(str, enum.Enum):
    """Medium of a call. Informational only."""

    VOICE = "voice"
    TEXT = "text"


class SessionStatus(str, enum.Enum):
    """open -> active -> closed."""

    OPEN = "open"
    ACTIVE = "active"
    CLOSED = "closed"


class Speaker(str, enum.Enum):
    USER = "user"
    AGENT = "agent"
