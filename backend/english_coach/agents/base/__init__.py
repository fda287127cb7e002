"""Base infrastructure for all agents."""

from .llm import AgentConfig, get_llm

__all__ = [
    "AgentConfig",
    "get_llm",
]
