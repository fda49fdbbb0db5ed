"""
leadscore/ai_engine/classifier.py — Remote intent classification for prospects.

IntentClassifier wraps a TextGenerator transport with a RetryPolicy:

  classify(prospect, offer)        → IntentAnalysis, raises ClassificationError
                                     once retries are exhausted
  analyze_intent(prospect, offer)  → IntentAnalysis, never raises
  check_connectivity()             → ConnectivityResult, never raises

Unparsable model text is not retried: it yields the local heuristic
fallback for that prospect.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from langchain_core.messages import BaseMessage
from tenacity import RetryError

from leadscore.ai_engine.parser import (
    ParsedIntent,
    estimate_confidence,
    parse_intent_response,
)
from leadscore.ai_engine.prompt_templates import CONNECTIVITY_PROMPT, INTENT_ANALYSIS_PROMPT
from leadscore.ai_engine.retry import RetryPolicy
from leadscore.ai_engine.utils import TextGenerator, truncate_for_context
from leadscore.domain import IntentAnalysis, IntentLevel, OfferContext, ProspectRecord
from leadscore.errors import ClassificationError, EmptyResponseError

logger = logging.getLogger(__name__)

FALLBACK_MARKER = "Fallback heuristic analysis"
FALLBACK_CONFIDENCE = 0.3

FALLBACK_DECISION_MAKER_KEYWORDS = ["ceo", "cto", "vp", "director", "head", "chief", "founder"]


@dataclass(frozen=True)
class ConnectivityResult:
    connected: bool
    response_time_ms: float
    error: Optional[str] = None


def build_intent_messages(prospect: ProspectRecord, offer: OfferContext) -> list[BaseMessage]:
    """Render the intent analysis prompt for one prospect."""
    return INTENT_ANALYSIS_PROMPT.format_messages(
        name=prospect.name,
        role=prospect.role,
        company=prospect.company,
        industry=prospect.industry,
        location=prospect.location,
        professional_summary=truncate_for_context(prospect.professional_summary, max_chars=1000),
        offer_name=offer.name,
        value_propositions=", ".join(offer.value_propositions),
        ideal_use_cases=", ".join(offer.ideal_use_cases),
    )


def heuristic_fallback_analysis(prospect: ProspectRecord, offer: OfferContext) -> IntentAnalysis:
    """
    Cheap local substitute for the remote classifier.

    Decision-maker role and industry/use-case overlap → High; one of the two
    → Medium; neither → Low. Confidence is pinned low to flag degraded quality.
    """
    role = (getattr(prospect, "role", "") or "").lower()
    industry = (getattr(prospect, "industry", "") or "").strip().lower()
    use_cases = [u.strip().lower() for u in getattr(offer, "ideal_use_cases", None) or [] if u and u.strip()]

    is_decision_maker = any(keyword in role for keyword in FALLBACK_DECISION_MAKER_KEYWORDS)
    has_industry_match = bool(industry) and any(
        industry in use_case or use_case in industry for use_case in use_cases
    )

    if is_decision_maker and has_industry_match:
        level = IntentLevel.HIGH
        detail = "decision maker role with relevant industry match."
    elif is_decision_maker or has_industry_match:
        level = IntentLevel.MEDIUM
        detail = "either decision maker role or industry relevance detected."
    else:
        level = IntentLevel.LOW
        detail = "no decision maker role or industry relevance detected."

    return IntentAnalysis(
        intent_level=level,
        reasoning=f"{FALLBACK_MARKER} (AI classification unavailable): {detail}",
        intent_score=level.score,
        confidence=FALLBACK_CONFIDENCE,
        fallback=True,
    )


class IntentClassifier:
    def __init__(self, generator: TextGenerator, retry_policy: Optional[RetryPolicy] = None):
        self._generator = generator
        self.retry_policy = retry_policy or RetryPolicy()

    async def _generate(self, messages: list[BaseMessage]) -> str:
        text = await self._generator.generate(messages)
        if not text or not text.strip():
            raise EmptyResponseError("Empty response from AI service")
        return text

    async def _call_with_retry(self, messages: list[BaseMessage]) -> str:
        try:
            return await self.retry_policy.run(self._generate, messages)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            attempts = self.retry_policy.max_attempts
            logger.error("AI service failed after %d attempts: %s", attempts, last_error)
            raise ClassificationError(
                f"AI service failed after {attempts} attempts: {last_error!r}",
                attempts=attempts,
                last_error=last_error,
            ) from last_error

    async def classify(self, prospect: ProspectRecord, offer: OfferContext) -> IntentAnalysis:
        """
        Classify buying intent with the remote model.

        Raises:
            ClassificationError: the model timed out, errored or returned
                empty text on every attempt.
        """
        logger.info("Analyzing intent for: %s (%s)", prospect.name, prospect.company)

        raw_text = await self._call_with_retry(build_intent_messages(prospect, offer))
        parsed = parse_intent_response(raw_text)

        if not isinstance(parsed, ParsedIntent):
            logger.warning(
                "Unparsable AI response for %s, using fallback: %s",
                prospect.name, raw_text[:200],
            )
            return heuristic_fallback_analysis(prospect, offer)

        analysis = IntentAnalysis(
            intent_level=parsed.level,
            reasoning=parsed.reasoning,
            intent_score=parsed.level.score,
            confidence=estimate_confidence(raw_text),
        )
        logger.info(
            "AI analysis for %s: %s (%d points, confidence=%.2f)",
            prospect.name, analysis.intent_level.value, analysis.intent_score, analysis.confidence,
        )
        return analysis

    async def analyze_intent(self, prospect: ProspectRecord, offer: OfferContext) -> IntentAnalysis:
        """Like classify(), but substitutes the heuristic fallback instead of raising."""
        try:
            return await self.classify(prospect, offer)
        except ClassificationError as e:
            logger.warning("Using fallback analysis for %s: %s", prospect.name, e)
            return heuristic_fallback_analysis(prospect, offer)

    async def check_connectivity(self) -> ConnectivityResult:
        """Send a trivial prompt through the normal retry path and time it."""
        started = time.perf_counter()
        try:
            await self._call_with_retry(CONNECTIVITY_PROMPT.format_messages())
        except ClassificationError as e:
            return ConnectivityResult(
                connected=False,
                response_time_ms=(time.perf_counter() - started) * 1000,
                error=str(e),
            )
        return ConnectivityResult(connected=True, response_time_ms=(time.perf_counter() - started) * 1000)
