"""Conversation agent for English practice sessions.

The agent turns one learner utterance into one coach reply:
1. Picks the persona for the session mode
2. Builds a bounded context (system prompt, recent turns, new input)
3. Calls the chat model once
4. Runs the correction detector over the reply

Model failures never reach the caller. They are logged and replaced by a
fallback reply flagged with ``error=True`` so the session stays usable.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage

from ...core.enums import SessionMode
from ...core.errors import UpstreamError
from ...observability.langsmith import build_trace_config
from ..base.llm import AgentConfig, get_llm
from ..base.message_utils import build_chat_messages
from .corrections import CorrectionDetector, CorrectionResult, PatternCorrectionDetector
from .prompts import FALLBACK_REPLY, persona_for
from .state import AgentReply, ContextEntry

logger = logging.getLogger(__name__)


class ConversationAgent:
    """Replies to learner utterances in the persona of the session mode."""

    def __init__(
        self,
        config: AgentConfig,
        llm: Optional[BaseChatModel] = None,
        detector: Optional[CorrectionDetector] = None,
    ):
        self.config = config
        self._llm = llm
        self.detector = detector or PatternCorrectionDetector()

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm(self.config)
        return self._llm

    def build_context(
        self,
        user_input: str,
        prior_context: Sequence[ContextEntry],
        mode: SessionMode,
    ) -> List[BaseMessage]:
        """Persona prompt, the last ``context_window`` turns oldest first, then the input."""
        persona = persona_for(mode)
        window = self.config.context_window
        recent = list(prior_context)[-window:] if window > 0 else []
        return build_chat_messages(persona.system_prompt, recent, user_input)

    async def respond(
        self,
        user_input: str,
        prior_context: Sequence[ContextEntry],
        mode: SessionMode,
        session_id: Optional[str] = None,
    ) -> AgentReply:
        """
        Produce the coach reply for one learner utterance.

        Args:
            user_input: The learner's new utterance
            prior_context: Earlier turns of the session, oldest first
            mode: Session mode selecting the persona
            session_id: Used as the trace thread id when tracing is on

        Returns:
            AgentReply with reply text, token usage and correction data
        """
        mode = SessionMode(mode)
        messages = self.build_context(user_input, prior_context, mode)
        trace_config = build_trace_config(session_id or "ad-hoc", mode.value)

        try:
            text, usage = await self._invoke(messages, trace_config)
        except UpstreamError as e:
            logger.error(f"Model call failed for session {session_id}: {e}")
            return AgentReply(
                text=FALLBACK_REPLY,
                correction=CorrectionResult(has_correction=False, original=user_input),
                error=True,
            )

        correction = self.detector.detect(text, user_input)
        return AgentReply(text=text, correction=correction, usage=usage)

    async def _invoke(
        self,
        messages: List[BaseMessage],
        trace_config: Dict[str, Any],
    ) -> Tuple[str, Dict[str, Any]]:
        try:
            response = await self.llm.ainvoke(messages, config=trace_config)
        except Exception as e:
            raise UpstreamError(str(e)) from e

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError(f"Malformed model reply: {content!r}")

        usage = getattr(response, "usage_metadata", None)
        if not usage:
            usage = (getattr(response, "response_metadata", None) or {}).get("token_usage") or {}
        return content.strip(), dict(usage)
