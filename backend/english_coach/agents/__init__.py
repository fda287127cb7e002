"""English Coach - conversation agents package.

This package contains:
- base: LLM client factory and message conversion helpers
- coach: the tutoring agent used by call sessions
"""

from .base import AgentConfig, get_llm

__all__ = [
    "AgentConfig",
    "get_llm",
]
