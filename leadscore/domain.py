"""
leadscore/domain.py — Domain types shared by the rule engine, the intent
classifier and the scoring orchestrator.

  OfferContext   → the product/offer leads are scored against
  ProspectRecord → one uploaded lead
  RuleBreakdown  → deterministic 0–50 sub-score
  IntentAnalysis → AI (or fallback) intent classification
  ScoredLead     → combined result for one prospect
  RunStatistics  → counters accumulated over one scoring run
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ────────────────────────────────────────────────────────────────────

class IntentLevel(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def score(self) -> int:
        """Points this level contributes to the total score."""
        return INTENT_SCORES[self]


INTENT_SCORES = {
    IntentLevel.HIGH: 50,
    IntentLevel.MEDIUM: 30,
    IntentLevel.LOW: 10,
}


class RunState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


# ── Inputs ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OfferContext:
    name: str
    value_propositions: list[str]
    ideal_use_cases: list[str]
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ProspectRecord:
    name: str
    role: str
    company: str
    industry: str
    location: str
    professional_summary: str
    uploaded_at: datetime = field(default_factory=utcnow)


PROSPECT_FIELDS = ("name", "role", "company", "industry", "location", "professional_summary")


# ── Outputs ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RuleBreakdown:
    role_score: int = 0
    industry_score: int = 0
    completeness_score: int = 0

    @property
    def total_rule_score(self) -> int:
        return self.role_score + self.industry_score + self.completeness_score


@dataclass(frozen=True)
class IntentAnalysis:
    intent_level: IntentLevel
    reasoning: str
    intent_score: int
    confidence: float
    fallback: bool = False          # True when produced by a local heuristic


@dataclass(frozen=True)
class ScoredLead:
    name: str
    role: str
    company: str
    industry: str
    location: str
    professional_summary: str
    uploaded_at: Optional[datetime]
    intent_level: IntentLevel       # final label, possibly reconciled
    total_score: int                # total_rule_score + intent_analysis.intent_score
    combined_reasoning: str
    rule_breakdown: RuleBreakdown
    intent_analysis: IntentAnalysis
    scored_at: datetime = field(default_factory=utcnow)


@dataclass
class RunStatistics:
    state: RunState = RunState.IDLE
    total_leads: int = 0
    successful_scores: int = 0
    failed_scores: int = 0
    ai_successes: int = 0
    ai_failures: int = 0
    fallback_analyses: int = 0
    avg_processing_time_ms: float = 0.0
    intent_distribution: dict[str, int] = field(
        default_factory=lambda: {level.value: 0 for level in IntentLevel}
    )
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_ms(self) -> float:
        if not self.started_at or not self.finished_at:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds() * 1000

    @property
    def ai_success_rate(self) -> Optional[float]:
        attempted = self.ai_successes + self.ai_failures
        if not attempted:
            return None
        return self.ai_successes / attempted
