"""
leadscore/ai_engine/parser.py — Turns free-form model text into a structured intent.

No network, no state: everything here is unit-testable with plain strings.

  parse_intent_response(text) → ParsedIntent | UnparsedIntent
  estimate_confidence(text)   → float in [0, 1]
"""

import re
from dataclasses import dataclass
from typing import Union

from leadscore.domain import IntentLevel

INTENT_LINE = re.compile(r"Intent:\s*(High|Medium|Low)", re.IGNORECASE)
REASONING_LINE = re.compile(r"Reasoning:\s*(.+)", re.IGNORECASE)
SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Checked in order when there is no explicit "Intent:" line
INTENT_KEYWORD_FAMILIES = [
    (IntentLevel.HIGH, re.compile(r"\b(high|strong|excellent|very likely)\b", re.IGNORECASE)),
    (IntentLevel.MEDIUM, re.compile(r"\b(medium|moderate|some|possible)\b", re.IGNORECASE)),
    (IntentLevel.LOW, re.compile(r"\b(low|weak|poor|unlikely)\b", re.IGNORECASE)),
]

HIGH_CERTAINTY_WORDS = [
    "clearly", "definitely", "obviously", "certainly", "strong", "excellent",
    "perfect", "ideal", "exactly", "precisely",
]
LOW_CERTAINTY_WORDS = [
    "might", "maybe", "possibly", "unclear", "limited", "insufficient",
    "uncertain", "difficult", "hard to determine",
]

BASE_CONFIDENCE = 0.5
CONFIDENCE_STEP = 0.1
MIN_SENTENCE_LENGTH = 10
MAX_RAW_REASONING = 200


@dataclass(frozen=True)
class ParsedIntent:
    level: IntentLevel
    reasoning: str


@dataclass(frozen=True)
class UnparsedIntent:
    reasoning: str
    level: IntentLevel = IntentLevel.LOW


ParseResult = Union[ParsedIntent, UnparsedIntent]


def _extract_level(text: str) -> IntentLevel | None:
    match = INTENT_LINE.search(text)
    if match:
        return IntentLevel(match.group(1).capitalize())

    for level, pattern in INTENT_KEYWORD_FAMILIES:
        if pattern.search(text):
            return level
    return None


def _extract_reasoning(text: str) -> str:
    match = REASONING_LINE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    sentences = [s.strip() for s in SENTENCE_SPLIT.split(text) if len(s.strip()) > MIN_SENTENCE_LENGTH]
    if sentences:
        return sentences[-1]

    return text[:MAX_RAW_REASONING].strip()


def parse_intent_response(text: str) -> ParseResult:
    """
    Extract an intent level and a short reasoning from model output.

    Looks for an explicit ``Intent: <level>`` line first, then for keyword
    families (high → medium → low). Reasoning comes from a ``Reasoning:`` line,
    else the last sentence longer than 10 chars, else the first 200 chars.

    Returns UnparsedIntent (level Low) when no intent signal is present.
    """
    normalized = (text or "").strip()
    level = _extract_level(normalized)
    reasoning = _extract_reasoning(normalized)

    if level is None or not reasoning:
        return UnparsedIntent(reasoning=reasoning or "AI analysis could not be parsed properly")
    return ParsedIntent(level=level, reasoning=reasoning)


def estimate_confidence(text: str) -> float:
    """
    Heuristic hedging score: 0.5, +0.1 for each certainty word present,
    -0.1 for each hedge word present, clamped to [0, 1].
    """
    lowered = (text or "").lower()
    score = BASE_CONFIDENCE
    score += CONFIDENCE_STEP * sum(1 for word in HIGH_CERTAINTY_WORDS if word in lowered)
    score -= CONFIDENCE_STEP * sum(1 for word in LOW_CERTAINTY_WORDS if word in lowered)
    return round(max(0.0, min(1.0, score)), 2)
