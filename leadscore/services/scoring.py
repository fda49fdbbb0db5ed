"""
leadscore/services/scoring.py — Combines rule-based scores and AI intent into ScoredLeads.

ScoringOrchestrator runs one scoring pass:
  1. Rule engine breakdown (always succeeds)
  2. Intent analysis from the classifier, or a rule-derived fallback
  3. Intent reconciliation between the two signals
  4. Batched, order-preserving concurrency over many prospects, with run statistics
"""

import asyncio
import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from leadscore.ai_engine.classifier import FALLBACK_CONFIDENCE, FALLBACK_MARKER
from leadscore.ai_engine.retry import RetryPolicy
from leadscore.config import Settings
from leadscore.domain import (
    IntentAnalysis,
    IntentLevel,
    OfferContext,
    ProspectRecord,
    RuleBreakdown,
    RunState,
    RunStatistics,
    ScoredLead,
    utcnow,
)
from leadscore.errors import ClassificationError
from leadscore.services.rule_engine import (
    INDUSTRY_DIRECT_POINTS,
    ROLE_DECISION_MAKER_POINTS,
    calculate_rule_score,
)

logger = logging.getLogger(__name__)

# Reconciliation thresholds on total_rule_score
WEAK_RULE_EVIDENCE = 10     # High AI verdict below this is pulled to Medium
STRONG_RULE_EVIDENCE = 40   # Low AI verdict at or above this is pulled to Medium


class Classifier(Protocol):
    async def classify(self, prospect: ProspectRecord, offer: OfferContext) -> IntentAnalysis:
        ...


@dataclass(frozen=True)
class ScoringConfig:
    use_ai: bool = True
    ai_timeout_ms: int = 30_000
    continue_on_ai_failure: bool = True
    batch_size: int = 5
    max_retries: int = 3
    retry_base_delay_ms: int = 1_000
    batch_pause_ms: int = 100

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringConfig":
        return cls(
            use_ai=settings.scoring_use_ai,
            ai_timeout_ms=settings.ai_timeout_ms,
            continue_on_ai_failure=settings.continue_on_ai_failure,
            batch_size=settings.scoring_batch_size,
            max_retries=settings.ai_max_retries,
            retry_base_delay_ms=settings.ai_retry_base_delay_ms,
            batch_pause_ms=settings.batch_pause_ms,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_retries,
            base_delay_s=self.retry_base_delay_ms / 1000,
            timeout_s=self.ai_timeout_ms / 1000,
        )


# ── Pure helpers ──────────────────────────────────────────────────────────────

def reconcile_intent(ai_level: IntentLevel, total_rule_score: int) -> IntentLevel:
    """
    Let strong rule evidence pull an extreme AI verdict toward Medium.

    High with total_rule_score < 10 → Medium; Low with total_rule_score >= 40
    → Medium. Medium is never changed, and High/Low never flip directly.
    """
    if ai_level == IntentLevel.HIGH and total_rule_score < WEAK_RULE_EVIDENCE:
        logger.info("Adjusting High AI intent to Medium due to low rule score (%d)", total_rule_score)
        return IntentLevel.MEDIUM
    if ai_level == IntentLevel.LOW and total_rule_score >= STRONG_RULE_EVIDENCE:
        logger.info("Adjusting Low AI intent to Medium due to high rule score (%d)", total_rule_score)
        return IntentLevel.MEDIUM
    return ai_level


def rule_fallback_analysis(breakdown: RuleBreakdown) -> IntentAnalysis:
    """Intent derived from the rule score alone, used when AI is off or failed."""
    total = breakdown.total_rule_score
    if total >= 40:
        level, detail = IntentLevel.HIGH, "strong rule-based indicators suggest high buying intent."
    elif total >= 20:
        level, detail = IntentLevel.MEDIUM, "moderate rule-based indicators suggest medium buying intent."
    else:
        level, detail = IntentLevel.LOW, "limited rule-based indicators suggest low buying intent."

    return IntentAnalysis(
        intent_level=level,
        reasoning=f"{FALLBACK_MARKER} (rule-based): {detail}",
        intent_score=level.score,
        confidence=FALLBACK_CONFIDENCE,
        fallback=True,
    )


def combine_reasoning(breakdown: RuleBreakdown, analysis: IntentAnalysis) -> str:
    """Human-readable rule factors followed by the AI reasoning verbatim."""
    factors = []
    if breakdown.role_score > 0:
        factors.append(
            "decision maker role" if breakdown.role_score == ROLE_DECISION_MAKER_POINTS else "influencer role"
        )
    if breakdown.industry_score > 0:
        factors.append(
            "excellent industry fit" if breakdown.industry_score == INDUSTRY_DIRECT_POINTS else "good industry fit"
        )
    if breakdown.completeness_score > 0:
        factors.append("complete profile data")

    prefix = f"Rule-based factors: {', '.join(factors)}. " if factors else ""
    return f"{prefix}AI analysis: {analysis.reasoning}"


def placeholder_scored_lead(prospect: ProspectRecord, error: BaseException) -> ScoredLead:
    """Zero-score Low result standing in for a lead whose scoring raised."""
    return ScoredLead(
        name=getattr(prospect, "name", ""),
        role=getattr(prospect, "role", ""),
        company=getattr(prospect, "company", ""),
        industry=getattr(prospect, "industry", ""),
        location=getattr(prospect, "location", ""),
        professional_summary=getattr(prospect, "professional_summary", ""),
        uploaded_at=getattr(prospect, "uploaded_at", None),
        intent_level=IntentLevel.LOW,
        total_score=0,
        combined_reasoning=f"Scoring failed: {error}",
        rule_breakdown=RuleBreakdown(),
        intent_analysis=IntentAnalysis(
            intent_level=IntentLevel.LOW,
            reasoning="AI analysis failed",
            intent_score=0,
            confidence=0.0,
            fallback=True,
        ),
    )


# ── Orchestrator ──────────────────────────────────────────────────────────────

class ScoringOrchestrator:
    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        config: Optional[ScoringConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or ScoringConfig()
        if self.config.use_ai and classifier is None:
            raise ValueError("A classifier is required when use_ai is enabled")
        self._classifier = classifier
        self._sleep = sleep
        self._stats = RunStatistics()

    async def _analyze(
        self,
        prospect: ProspectRecord,
        offer: OfferContext,
        breakdown: RuleBreakdown,
        stats: Optional[RunStatistics],
    ) -> IntentAnalysis:
        if not self.config.use_ai:
            logger.debug("AI disabled, using fallback analysis for %s", prospect.name)
            return rule_fallback_analysis(breakdown)

        try:
            analysis = await self._classifier.classify(prospect, offer)
        except ClassificationError as e:
            if stats is not None:
                stats.ai_failures += 1
            if not self.config.continue_on_ai_failure:
                raise
            logger.warning("Using fallback AI analysis for %s: %s", prospect.name, e)
            return rule_fallback_analysis(breakdown)

        if stats is not None:
            stats.ai_successes += 1
        return analysis

    @staticmethod
    def _record(stats: RunStatistics, elapsed_ms: float, lead: Optional[ScoredLead]) -> None:
        if lead is not None:
            stats.successful_scores += 1
            stats.intent_distribution[lead.intent_level.value] += 1
            if lead.intent_analysis.fallback:
                stats.fallback_analyses += 1
        else:
            stats.failed_scores += 1

        processed = stats.successful_scores + stats.failed_scores
        stats.avg_processing_time_ms += (elapsed_ms - stats.avg_processing_time_ms) / processed

    async def _score(
        self,
        prospect: ProspectRecord,
        offer: OfferContext,
        stats: Optional[RunStatistics] = None,
    ) -> ScoredLead:
        started = time.perf_counter()
        logger.info("Scoring lead: %s (%s)", prospect.name, prospect.company)

        breakdown = calculate_rule_score(prospect, offer)
        analysis = await self._analyze(prospect, offer, breakdown, stats)
        final_intent = reconcile_intent(analysis.intent_level, breakdown.total_rule_score)

        # The numeric contribution keeps the pre-reconciliation intent score.
        scored = ScoredLead(
            name=prospect.name,
            role=prospect.role,
            company=prospect.company,
            industry=prospect.industry,
            location=prospect.location,
            professional_summary=prospect.professional_summary,
            uploaded_at=prospect.uploaded_at,
            intent_level=final_intent,
            total_score=breakdown.total_rule_score + analysis.intent_score,
            combined_reasoning=combine_reasoning(breakdown, analysis),
            rule_breakdown=breakdown,
            intent_analysis=analysis,
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        if stats is not None:
            self._record(stats, elapsed_ms, scored)
        logger.info(
            "Lead scored: %s - %s (%d/100) in %.0fms",
            prospect.name, final_intent.value, scored.total_score, elapsed_ms,
        )
        return scored

    async def score_lead(self, prospect: ProspectRecord, offer: OfferContext) -> ScoredLead:
        """
        Score one prospect against the offer.

        A single call is not part of any run, so run statistics are untouched.

        Raises:
            ClassificationError: only when continue_on_ai_failure is False and
                the classifier exhausted its retries.
        """
        return await self._score(prospect, offer)

    async def _score_or_placeholder(
        self,
        prospect: ProspectRecord,
        offer: OfferContext,
        batch_number: int,
        stats: RunStatistics,
        errors: list,
    ) -> ScoredLead:
        started = time.perf_counter()
        try:
            return await self._score(prospect, offer, stats)
        except Exception as e:
            logger.error(
                "Scoring failed for %s in batch %d: %s",
                getattr(prospect, "name", "?"), batch_number, e,
            )
            errors.append((prospect, e))
            self._record(stats, (time.perf_counter() - started) * 1000, None)
            return placeholder_scored_lead(prospect, e)

    async def run_batch(
        self, prospects: Sequence[ProspectRecord], offer: OfferContext,
    ) -> tuple[list[ScoredLead], RunStatistics]:
        """
        Score every prospect, batch_size at a time, preserving input order.

        Leads within a batch run concurrently; a short pause separates batches.
        A lead whose scoring raises is replaced by a zero-score placeholder, so
        the result always has one entry per prospect.

        Each run counts into its own RunStatistics, returned alongside the
        results. Overlapping runs on one orchestrator never share counters.
        """
        stats = RunStatistics(
            state=RunState.RUNNING,
            total_leads=len(prospects),
            started_at=utcnow(),
        )
        self._stats = stats
        size = self.config.batch_size
        batches = [list(prospects[i:i + size]) for i in range(0, len(prospects), size)]
        logger.info("Starting batch scoring for %d leads in %d batches", len(prospects), len(batches))

        results: list[ScoredLead] = []
        errors: list = []
        for number, batch in enumerate(batches, start=1):
            logger.info("Processing batch %d/%d (%d leads)", number, len(batches), len(batch))
            batch_results = await asyncio.gather(
                *(self._score_or_placeholder(p, offer, number, stats, errors) for p in batch)
            )
            results.extend(batch_results)

            if number < len(batches) and self.config.batch_pause_ms:
                await self._sleep(self.config.batch_pause_ms / 1000)

        stats.state = RunState.COMPLETED
        stats.finished_at = utcnow()
        self._stats = stats
        self._log_final_stats(stats, errors)
        return results, copy.deepcopy(stats)

    async def score_leads(self, prospects: Sequence[ProspectRecord], offer: OfferContext) -> list[ScoredLead]:
        """Score every prospect in order; see run_batch for the statistics."""
        results, _ = await self.run_batch(prospects, offer)
        return results

    def _log_final_stats(self, stats: RunStatistics, errors: list) -> None:
        logger.info(
            "Scoring complete: %d leads in %.0fms, success=%d failed=%d "
            "ai_success=%d ai_failures=%d fallbacks=%d avg=%.2fms distribution=%s",
            stats.total_leads, stats.duration_ms, stats.successful_scores, stats.failed_scores,
            stats.ai_successes, stats.ai_failures, stats.fallback_analyses,
            stats.avg_processing_time_ms, stats.intent_distribution,
        )
        for prospect, error in errors:
            logger.warning("  - %s: %s", getattr(prospect, "name", "?"), error)

    def get_stats(self) -> RunStatistics:
        """Snapshot of the statistics for the most recently started or finished run."""
        return copy.deepcopy(self._stats)
