"""Data passed between the conversation agent and the session manager."""

from dataclasses import dataclass, field
from typing import Any, Dict

from typing_extensions import TypedDict

from .corrections import CorrectionResult


class ContextEntry(TypedDict):
    """One prior turn as seen by the agent."""

    speaker: str  # "user" | "agent"
    text: str


@dataclass(frozen=True)
class AgentReply:
    """The coach's reply to one learner utterance."""

    text: str
    correction: CorrectionResult
    usage: Dict[str, Any] = field(default_factory=dict)
    error: bool = False
