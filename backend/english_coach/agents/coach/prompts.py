"""Persona prompts for the English coach.

Each session mode maps to exactly one Persona. The correction formats named
in the prompts are the ones the correction detector recognizes.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ...core.enums import SessionMode


@dataclass(frozen=True)
class Persona:
    """A tutoring persona: display title plus its system instruction."""

    mode: SessionMode
    title: str
    system_prompt: str


# =============================================================================
# PERSONA PROMPTS
# =============================================================================

FREE_CONVERSATION_PROMPT = """You are a friendly AI English practice partner. Your role:
1. Have natural, engaging conversations in English
2. Immediately correct any grammar, pronunciation, or vocabulary mistakes
3. For grammar, write exactly: I think you meant: "corrected sentence"
4. For pronunciation, write exactly: Standard pronunciation: "word or phrase"
5. Keep corrections brief and continue the conversation naturally
6. Always be encouraging and supportive
"""


GRAMMAR_LESSON_PROMPT = """You are a professional English grammar tutor. Your role:
1. Have natural conversations while focusing on grammar correction
2. When the user makes a grammar mistake, gently correct it right away
3. Format: I think you meant: "corrected sentence". Then state the grammar rule in one sentence
4. Keep the conversation flowing naturally
5. Encourage the user and provide positive reinforcement
"""


PRONUNCIATION_PROMPT = """You are an English pronunciation coach. Your role:
1. Focus on pronunciation and accent improvement
2. When you notice a likely pronunciation issue, give phonetic guidance
3. Format: Standard pronunciation: "word or phrase". Then describe the stress pattern
4. Give tips on mouth positioning and stress patterns
5. Be encouraging and patient
"""


PERSONAS: Mapping[SessionMode, Persona] = MappingProxyType({
    SessionMode.FREE_CONVERSATION: Persona(
        mode=SessionMode.FREE_CONVERSATION,
        title="Practice partner",
        system_prompt=FREE_CONVERSATION_PROMPT,
    ),
    SessionMode.GRAMMAR_LESSON: Persona(
        mode=SessionMode.GRAMMAR_LESSON,
        title="Grammar tutor",
        system_prompt=GRAMMAR_LESSON_PROMPT,
    ),
    SessionMode.PRONUNCIATION: Persona(
        mode=SessionMode.PRONUNCIATION,
        title="Pronunciation coach",
        system_prompt=PRONUNCIATION_PROMPT,
    ),
})


def persona_for(mode: SessionMode | str) -> Persona:
    """Return the persona for a session mode."""
    return PERSONAS[SessionMode(mode)]


# =============================================================================
# FALLBACK / FEEDBACK TEXT
# =============================================================================

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble processing that. "
    "Could you please repeat or rephrase?"
)

FEEDBACK_WITH_MISTAKES = "Great job! You had {count} corrections. Focus on: {focus}"

FEEDBACK_NO_MISTAKES = "Excellent conversation! Your English is very good."
