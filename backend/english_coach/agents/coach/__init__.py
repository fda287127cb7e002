"""English coach agent - persona prompts, correction detection, replies.

This package provides:
- ConversationAgent: one model call per learner utterance
- PatternCorrectionDetector: template-based correction extraction
- PERSONAS: the persona for each session mode
"""

from .agent import ConversationAgent
from .corrections import (
    CorrectionDetector,
    CorrectionResult,
    PatternCorrectionDetector,
    extract_correction,
)
from .prompts import PERSONAS, Persona, persona_for
from .state import AgentReply, ContextEntry

__all__ = [
    "ConversationAgent",
    "AgentReply",
    "ContextEntry",
    "CorrectionDetector",
    "CorrectionResult",
    "PatternCorrectionDetector",
    "extract_correction",
    "PERSONAS",
    "Persona",
    "persona_for",
]
