"""LLM client factory for OpenAI-compatible chat endpoints.

The agent receives an immutable AgentConfig at construction instead of
reading process-wide settings on every call.
"""

from pydantic import BaseModel, ConfigDict, Field

from langchain_openai import ChatOpenAI

from ...core.config import Settings


class AgentConfig(BaseModel):
    """Frozen model and context parameters for the conversation agent."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    api_key: str = ""
    model_name: str
    temperature: float = 0.7
    max_tokens: int = 200
    timeout_seconds: float = 30.0
    max_retries: int = 1
    context_window: int = Field(default=8, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AgentConfig":
        return cls(
            base_url=settings.LLM_BASE_URL,
            api_key=settings.LLM_API_KEY,
            model_name=settings.LLM_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
            max_retries=settings.LLM_MAX_RETRIES,
            context_window=settings.CONTEXT_WINDOW_TURNS,
        )


def _resolve_api_key(base_url: str, api_key: str) -> str:
    """Provide a safe API key value for local OpenAI-compatible servers."""
    if api_key:
        return api_key
    base = (base_url or "").lower()
    if "127.0.0.1" in base or "localhost" in base:
        return "lm-studio"
    return ""


def get_llm(config: AgentConfig) -> ChatOpenAI:
    """
    Get a chat model client configured from an AgentConfig.

    Args:
        config: Model endpoint, sampling and timeout parameters

    Returns:
        Configured ChatOpenAI instance

    Example:
        >>> llm = get_llm(AgentConfig.from_settings(get_settings()))
        >>> response = await llm.ainvoke("Hello!")
    """
    return ChatOpenAI(
        base_url=config.base_url,
        api_key=_resolve_api_key(config.base_url, config.api_key),
        model=config.model_name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout_seconds,
        max_retries=config.max_retries,
    )
