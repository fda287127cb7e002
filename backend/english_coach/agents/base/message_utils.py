"""Utilities for converting conversation turns to LangChain messages."""

from typing import Any, Iterable, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ...core.enums import Speaker


def turn_to_message(speaker: Any, text: str) -> BaseMessage:
    """Map a stored turn to a LangChain message; agent turns become AI messages."""
    if Speaker(speaker) == Speaker.AGENT:
        return AIMessage(content=text)
    return HumanMessage(content=text)


def build_chat_messages(
    system_prompt: str,
    context: Iterable[dict],
    user_input: str,
) -> List[BaseMessage]:
    """System instruction, then the given context oldest first, then the new input."""
    return [
        SystemMessage(content=system_prompt),
        *(turn_to_message(entry["speaker"], entry["text"]) for entry in context),
        HumanMessage(content=user_input),
    ]
