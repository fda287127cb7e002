"""Correction detection over coach replies.

Detection is a surface pattern match: a reply carries a correction when it
follows one of the templates the persona prompts ask the model to use. Any
rephrasing outside those templates goes undetected.
"""

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Protocol, Sequence


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of running a detector over one reply."""

    has_correction: bool
    original: str
    corrected: Optional[str] = None
    explanation: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "original": self.original,
            "corrected": self.corrected,
            "explanation": self.explanation,
        }


class CorrectionDetector(Protocol):
    """Strategy interface for locating a correction in a reply."""

    def detect(self, reply: str, original: str) -> CorrectionResult:
        ...


CORRECTION_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r'I think you meant:\s*"([^"]+)"', re.IGNORECASE),
    re.compile(r'The correct way is:\s*"([^"]+)"', re.IGNORECASE),
    re.compile(r'You should say:\s*"([^"]+)"', re.IGNORECASE),
    re.compile(r'Standard pronunciation:\s*"([^"]+)"', re.IGNORECASE),
)


class PatternCorrectionDetector:
    """First matching pattern wins; its quoted span is the corrected text."""

    def __init__(self, patterns: Sequence[Pattern[str]] = CORRECTION_PATTERNS):
        self.patterns = tuple(patterns)

    def detect(self, reply: str, original: str) -> CorrectionResult:
        for pattern in self.patterns:
            match = pattern.search(reply or "")
            if match:
                return CorrectionResult(
                    has_correction=True,
                    original=original,
                    corrected=match.group(1),
                    explanation=reply,
                )
        return CorrectionResult(has_correction=False, original=original)


_default_detector = PatternCorrectionDetector()


def extract_correction(reply: str, original: str) -> CorrectionResult:
    """Run the default pattern detector."""
    return _default_detector.detect(reply, original)
