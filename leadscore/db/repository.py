"""
leadscore/db/repository.py — All store read/write operations.

Business logic never issues ORM queries directly. Everything goes through
this module, which converts between ORM rows and domain objects.

Invariants kept here:
  - Replacing the offer or the prospects invalidates stored scored results.
  - Scored results are replaced as a whole, never patched.
  - There are never more scored results than prospects.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from leadscore.db.models import Offer, Prospect, ScoredLead as ScoredLeadRow
from leadscore.domain import (
    IntentAnalysis,
    OfferContext,
    ProspectRecord,
    RuleBreakdown,
    ScoredLead,
    utcnow,
)
from leadscore.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageStats:
    has_offer: bool
    prospect_count: int
    scored_result_count: int


# ── Offer ─────────────────────────────────────────────────────────────────────

def save_offer(db: Session, offer: OfferContext) -> OfferContext:
    """Replace the current offer. Previously scored results no longer apply and are dropped."""
    db.execute(delete(Offer))
    db.execute(delete(ScoredLeadRow))
    row = Offer(
        name=offer.name,
        value_propositions=list(offer.value_propositions),
        ideal_use_cases=list(offer.ideal_use_cases),
        created_at=offer.created_at,
    )
    db.add(row)
    db.flush()
    logger.info("Offer stored: %r", offer.name)
    return _offer_from_row(row)


def get_offer(db: Session) -> Optional[OfferContext]:
    row = db.execute(select(Offer).order_by(Offer.id.desc())).scalars().first()
    return _offer_from_row(row) if row else None


def _offer_from_row(row: Offer) -> OfferContext:
    return OfferContext(
        name=row.name,
        value_propositions=list(row.value_propositions),
        ideal_use_cases=list(row.ideal_use_cases),
        created_at=row.created_at,
    )


# ── Prospects ─────────────────────────────────────────────────────────────────

def replace_prospects(db: Session, prospects: Sequence[ProspectRecord]) -> int:
    """Replace all stored prospects, keeping their order. Drops stale scored results."""
    db.execute(delete(ScoredLeadRow))
    db.execute(delete(Prospect))
    db.add_all(
        Prospect(
            position=index,
            name=p.name,
            role=p.role,
            company=p.company,
            industry=p.industry,
            location=p.location,
            professional_summary=p.professional_summary,
            uploaded_at=p.uploaded_at,
        )
        for index, p in enumerate(prospects)
    )
    db.flush()
    logger.info("%d prospects stored", len(prospects))
    return len(prospects)


def get_prospects(db: Session) -> list[ProspectRecord]:
    rows = db.execute(select(Prospect).order_by(Prospect.position)).scalars().all()
    return [
        ProspectRecord(
            name=row.name,
            role=row.role,
            company=row.company,
            industry=row.industry,
            location=row.location,
            professional_summary=row.professional_summary,
            uploaded_at=row.uploaded_at,
        )
        for row in rows
    ]


def count_prospects(db: Session) -> int:
    return db.execute(select(func.count(Prospect.id))).scalar_one()


# ── Scored results ────────────────────────────────────────────────────────────

def replace_scored_leads(db: Session, results: Sequence[ScoredLead]) -> int:
    """
    Atomically replace the stored results of the last scoring run.

    Raises:
        StoreError: if there are more results than stored prospects.
    """
    prospect_count = count_prospects(db)
    if len(results) > prospect_count:
        raise StoreError(
            "Scored results count exceeds available prospects",
            details={"results": len(results), "prospects": prospect_count},
        )

    db.execute(delete(ScoredLeadRow))
    db.add_all(_row_from_scored_lead(index, lead) for index, lead in enumerate(results))
    db.flush()
    logger.info("%d scored results stored", len(results))
    return len(results)


def get_scored_leads(db: Session) -> list[ScoredLead]:
    rows = db.execute(select(ScoredLeadRow).order_by(ScoredLeadRow.position)).scalars().all()
    return [_scored_lead_from_row(row) for row in rows]


def _row_from_scored_lead(position: int, lead: ScoredLead) -> ScoredLeadRow:
    return ScoredLeadRow(
        position=position,
        name=lead.name,
        role=lead.role,
        company=lead.company,
        industry=lead.industry,
        location=lead.location,
        professional_summary=lead.professional_summary,
        uploaded_at=lead.uploaded_at,
        intent_level=lead.intent_level,
        total_score=lead.total_score,
        combined_reasoning=lead.combined_reasoning,
        role_score=lead.rule_breakdown.role_score,
        industry_score=lead.rule_breakdown.industry_score,
        completeness_score=lead.rule_breakdown.completeness_score,
        ai_intent_level=lead.intent_analysis.intent_level,
        ai_intent_score=lead.intent_analysis.intent_score,
        ai_reasoning=lead.intent_analysis.reasoning,
        ai_confidence=lead.intent_analysis.confidence,
        ai_fallback=lead.intent_analysis.fallback,
        scored_at=lead.scored_at or utcnow(),
    )


def _scored_lead_from_row(row: ScoredLeadRow) -> ScoredLead:
    return ScoredLead(
        name=row.name,
        role=row.role,
        company=row.company,
        industry=row.industry,
        location=row.location,
        professional_summary=row.professional_summary,
        uploaded_at=row.uploaded_at,
        intent_level=row.intent_level,
        total_score=row.total_score,
        combined_reasoning=row.combined_reasoning,
        rule_breakdown=RuleBreakdown(
            role_score=row.role_score,
            industry_score=row.industry_score,
            completeness_score=row.completeness_score,
        ),
        intent_analysis=IntentAnalysis(
            intent_level=row.ai_intent_level,
            reasoning=row.ai_reasoning,
            intent_score=row.ai_intent_score,
            confidence=row.ai_confidence,
            fallback=bool(row.ai_fallback),
        ),
        scored_at=row.scored_at,
    )


# ── Housekeeping ──────────────────────────────────────────────────────────────

def get_storage_stats(db: Session) -> StorageStats:
    return StorageStats(
        has_offer=db.execute(select(func.count(Offer.id))).scalar_one() > 0,
        prospect_count=count_prospects(db),
        scored_result_count=db.execute(select(func.count(ScoredLeadRow.id))).scalar_one(),
    )


def clear_all(db: Session) -> None:
    """Reset the store to its initial empty state."""
    db.execute(delete(ScoredLeadRow))
    db.execute(delete(Prospect))
    db.execute(delete(Offer))
    logger.info("All data cleared from store")
