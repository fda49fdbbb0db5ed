"""
api/schemas.py — Pydantic request/response models for all API endpoints.

These are the API contract - separate from domain dataclasses and DB ORM
models so we can control exactly what data is exposed over HTTP.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

from leadscore.domain import (
    IntentAnalysis,
    IntentLevel,
    OfferContext,
    RuleBreakdown,
    RunState,
    RunStatistics,
    ScoredLead,
)

ValueProposition = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
UseCase = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


# ── Offer ─────────────────────────────────────────────────────────────────────

class OfferIn(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    value_propositions: list[ValueProposition] = Field(min_length=1, max_length=10)
    ideal_use_cases: list[UseCase] = Field(min_length=1, max_length=10)

    def to_domain(self) -> OfferContext:
        return OfferContext(
            name=self.name,
            value_propositions=list(self.value_propositions),
            ideal_use_cases=list(self.ideal_use_cases),
        )


class OfferOut(BaseModel):
    name: str
    value_propositions: list[str]
    ideal_use_cases: list[str]
    created_at: datetime

    @classmethod
    def from_domain(cls, offer: OfferContext) -> "OfferOut":
        return cls(
            name=offer.name,
            value_propositions=offer.value_propositions,
            ideal_use_cases=offer.ideal_use_cases,
            created_at=offer.created_at,
        )


# ── Leads ─────────────────────────────────────────────────────────────────────

class RowErrorOut(BaseModel):
    row: int
    field: Optional[str] = None
    message: str


class UploadResult(BaseModel):
    total_rows: int
    processed: int
    rejected: int
    errors: list[RowErrorOut] = []
    message: str


class LeadsSummary(BaseModel):
    count: int
    sample_industries: list[str] = []
    sample_roles: list[str] = []
    sample_companies: list[str] = []


# ── Scoring ───────────────────────────────────────────────────────────────────

class RunStatisticsOut(BaseModel):
    state: RunState
    total_leads: int
    successful_scores: int
    failed_scores: int
    ai_successes: int
    ai_failures: int
    fallback_analyses: int
    avg_processing_time_ms: float
    intent_distribution: dict[str, int]
    duration_ms: float
    ai_success_rate: Optional[float] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, stats: RunStatistics) -> "RunStatisticsOut":
        return cls(
            state=stats.state,
            total_leads=stats.total_leads,
            successful_scores=stats.successful_scores,
            failed_scores=stats.failed_scores,
            ai_successes=stats.ai_successes,
            ai_failures=stats.ai_failures,
            fallback_analyses=stats.fallback_analyses,
            avg_processing_time_ms=round(stats.avg_processing_time_ms, 2),
            intent_distribution=dict(stats.intent_distribution),
            duration_ms=round(stats.duration_ms, 2),
            ai_success_rate=stats.ai_success_rate,
            started_at=stats.started_at,
            finished_at=stats.finished_at,
        )


class ScoringResult(BaseModel):
    total_leads: int
    successful_scores: int
    failed_scores: int
    average_score: float
    intent_distribution: dict[str, int]
    ai_success_rate: Optional[float] = None
    statistics: RunStatisticsOut
    message: str


class StorageStatsOut(BaseModel):
    has_offer: bool
    prospect_count: int
    scored_result_count: int


class ScoringStatus(BaseModel):
    ready_to_score: bool
    has_offer: bool
    has_leads: bool
    storage: StorageStatsOut
    last_run: RunStatisticsOut


# ── Results ───────────────────────────────────────────────────────────────────

class RuleBreakdownOut(BaseModel):
    role_score: int
    industry_score: int
    completeness_score: int
    total_rule_score: int

    @classmethod
    def from_domain(cls, breakdown: RuleBreakdown) -> "RuleBreakdownOut":
        return cls(
            role_score=breakdown.role_score,
            industry_score=breakdown.industry_score,
            completeness_score=breakdown.completeness_score,
            total_rule_score=breakdown.total_rule_score,
        )


class IntentAnalysisOut(BaseModel):
    intent_level: IntentLevel
    reasoning: str
    intent_score: int
    confidence: float
    fallback: bool

    @classmethod
    def from_domain(cls, analysis: IntentAnalysis) -> "IntentAnalysisOut":
        return cls(
            intent_level=analysis.intent_level,
            reasoning=analysis.reasoning,
            intent_score=analysis.intent_score,
            confidence=analysis.confidence,
            fallback=analysis.fallback,
        )


class ScoredLeadOut(BaseModel):
    name: str
    role: str
    company: str
    industry: str
    location: str
    professional_summary: str
    intent: IntentLevel
    score: int
    reasoning: str
    rule_breakdown: RuleBreakdownOut
    ai_analysis: IntentAnalysisOut
    uploaded_at: Optional[datetime] = None
    scored_at: datetime

    @classmethod
    def from_domain(cls, lead: ScoredLead) -> "ScoredLeadOut":
        return cls(
            name=lead.name,
            role=lead.role,
            company=lead.company,
            industry=lead.industry,
            location=lead.location,
            professional_summary=lead.professional_summary,
            intent=lead.intent_level,
            score=lead.total_score,
            reasoning=lead.combined_reasoning,
            rule_breakdown=RuleBreakdownOut.from_domain(lead.rule_breakdown),
            ai_analysis=IntentAnalysisOut.from_domain(lead.intent_analysis),
            uploaded_at=lead.uploaded_at,
            scored_at=lead.scored_at,
        )


class ResultsSummary(BaseModel):
    total_results: int
    filtered_results: int
    average_score: float
    intent_distribution: dict[str, int]


class ResultsOut(BaseModel):
    results: list[ScoredLeadOut]
    summary: ResultsSummary


# ── Health ────────────────────────────────────────────────────────────────────

class ComponentHealth(BaseModel):
    status: str
    response_time_ms: Optional[float] = None
    error: Optional[str] = None


class HealthOut(BaseModel):
    status: str                      # healthy | degraded | unhealthy
    service: str = "leadscore"
    timestamp: datetime
    components: dict[str, ComponentHealth]
