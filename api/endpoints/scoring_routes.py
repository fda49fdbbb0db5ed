"""
api/endpoints/scoring_routes.py — Routes for running scoring and reading results.

POST /score            - Score all uploaded leads against the current offer
GET  /score/status     - Readiness flags, storage stats and last run statistics
GET  /results          - Scored leads, filterable, highest score first
GET  /results/export   - Same results as a CSV download
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from leadscore.db.repository import get_scored_leads, get_storage_stats
from leadscore.db.session import get_db
from leadscore.domain import IntentLevel, ScoredLead
from leadscore.errors import ClassificationError, MissingOfferError, MissingProspectsError, StoreError
from leadscore.export.csv_export import scored_leads_to_csv
from leadscore.services.lead_service import run_scoring
from leadscore.services.scoring import ScoringOrchestrator
from api.dependencies import get_orchestrator
from api.schemas import (
    ResultsOut,
    ResultsSummary,
    RunStatisticsOut,
    ScoredLeadOut,
    ScoringResult,
    ScoringStatus,
    StorageStatsOut,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Helpers ───────────────────────────────────────────────────────────────────

def filter_results(
    leads: list[ScoredLead],
    intent: Optional[IntentLevel] = None,
    min_score: Optional[int] = None,
    max_score: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[ScoredLead]:
    """Apply the query filters, sort by total_score descending, then cut to limit."""
    selected = [
        lead for lead in leads
        if (intent is None or lead.intent_level == intent)
        and (min_score is None or lead.total_score >= min_score)
        and (max_score is None or lead.total_score <= max_score)
    ]
    selected.sort(key=lambda lead: lead.total_score, reverse=True)
    return selected[:limit] if limit is not None else selected


def _average_score(leads: list[ScoredLead]) -> float:
    if not leads:
        return 0.0
    return round(sum(lead.total_score for lead in leads) / len(leads), 2)


def _distribution(leads: list[ScoredLead]) -> dict[str, int]:
    counts = {level.value: 0 for level in IntentLevel}
    for lead in leads:
        counts[lead.intent_level.value] += 1
    return counts


# ── Scoring ───────────────────────────────────────────────────────────────────

@router.post("/score", response_model=ScoringResult, summary="Score all uploaded leads")
async def score_leads(
    db: Session = Depends(get_db),
    orchestrator: ScoringOrchestrator = Depends(get_orchestrator),
):
    """
    Run the rule engine and intent classifier over every uploaded lead.
    Previously stored results are replaced by this run's results.
    """
    try:
        results, stats = await run_scoring(db, orchestrator)
    except (MissingOfferError, MissingProspectsError) as e:
        raise HTTPException(status_code=422, detail={"message": e.message, **e.details})
    except ClassificationError as e:
        logger.error("Scoring aborted by classifier failure: %s", e)
        raise HTTPException(status_code=503, detail={"message": e.message, **e.details})
    except StoreError as e:
        logger.error("Scoring results could not be stored: %s", e)
        raise HTTPException(status_code=500, detail={"message": e.message, **e.details})

    return ScoringResult(
        total_leads=len(results),
        successful_scores=stats.successful_scores,
        failed_scores=stats.failed_scores,
        average_score=_average_score(results),
        intent_distribution=_distribution(results),
        ai_success_rate=stats.ai_success_rate,
        statistics=RunStatisticsOut.from_domain(stats),
        message=f"Successfully scored {len(results)} leads.",
    )


@router.get("/score/status", response_model=ScoringStatus, summary="Scoring readiness")
def scoring_status(
    db: Session = Depends(get_db),
    orchestrator: ScoringOrchestrator = Depends(get_orchestrator),
):
    storage = get_storage_stats(db)
    return ScoringStatus(
        ready_to_score=storage.has_offer and storage.prospect_count > 0,
        has_offer=storage.has_offer,
        has_leads=storage.prospect_count > 0,
        storage=StorageStatsOut(
            has_offer=storage.has_offer,
            prospect_count=storage.prospect_count,
            scored_result_count=storage.scored_result_count,
        ),
        last_run=RunStatisticsOut.from_domain(orchestrator.get_stats()),
    )


# ── Results ───────────────────────────────────────────────────────────────────

@router.get("/results", response_model=ResultsOut, summary="List scored leads")
def list_results(
    intent: Optional[IntentLevel] = Query(default=None, description="Filter by final intent label"),
    min_score: Optional[int] = Query(default=None, ge=0, le=100),
    max_score: Optional[int] = Query(default=None, ge=0, le=100),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Return scored leads sorted by total score, highest first."""
    all_results = get_scored_leads(db)
    selected = filter_results(all_results, intent, min_score, max_score, limit)
    return ResultsOut(
        results=[ScoredLeadOut.from_domain(lead) for lead in selected],
        summary=ResultsSummary(
            total_results=len(all_results),
            filtered_results=len(selected),
            average_score=_average_score(selected),
            intent_distribution=_distribution(selected),
        ),
    )


@router.get("/results/export", summary="Download scored leads as CSV")
def export_results(
    intent: Optional[IntentLevel] = Query(default=None),
    min_score: Optional[int] = Query(default=None, ge=0, le=100),
    max_score: Optional[int] = Query(default=None, ge=0, le=100),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    selected = filter_results(get_scored_leads(db), intent, min_score, max_score, limit)
    filename = f"lead_scores_{date.today().isoformat()}.csv"
    logger.info("Exporting %d scored leads to %s", len(selected), filename)
    return Response(
        content=scored_leads_to_csv(selected),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
