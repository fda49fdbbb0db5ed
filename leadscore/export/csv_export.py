"""
leadscore/export/csv_export.py — Renders scored leads as a CSV document.
"""

import io
from datetime import datetime
from typing import Optional, Sequence

import pandas as pd

from leadscore.domain import ScoredLead

CSV_COLUMNS = [
    "name", "role", "company", "industry", "location",
    "intent", "total_score", "reasoning",
    "rule_total_score", "rule_role_score", "rule_industry_score", "rule_completeness_score",
    "ai_intent", "ai_score", "ai_reasoning", "ai_confidence",
    "uploaded_at", "scored_at",
]

DEFAULT_MAX_REASONING_LENGTH = 200


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to max_length characters, ending in '...' when shortened."""
    if not text or len(text) <= max_length:
        return text or ""
    return text[: max_length - 3] + "..."


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def _row(lead: ScoredLead, max_reasoning_length: int) -> dict:
    return {
        "name": lead.name,
        "role": lead.role,
        "company": lead.company,
        "industry": lead.industry,
        "location": lead.location,
        "intent": lead.intent_level.value,
        "total_score": lead.total_score,
        "reasoning": truncate_text(lead.combined_reasoning, max_reasoning_length),
        "rule_total_score": lead.rule_breakdown.total_rule_score,
        "rule_role_score": lead.rule_breakdown.role_score,
        "rule_industry_score": lead.rule_breakdown.industry_score,
        "rule_completeness_score": lead.rule_breakdown.completeness_score,
        "ai_intent": lead.intent_analysis.intent_level.value,
        "ai_score": lead.intent_analysis.intent_score,
        "ai_reasoning": truncate_text(lead.intent_analysis.reasoning, max_reasoning_length),
        "ai_confidence": f"{lead.intent_analysis.confidence:.2f}",
        "uploaded_at": _iso(lead.uploaded_at),
        "scored_at": _iso(lead.scored_at),
    }


def scored_leads_to_csv(
    leads: Sequence[ScoredLead],
    max_reasoning_length: int = DEFAULT_MAX_REASONING_LENGTH,
) -> str:
    """Return CSV text (header row always present) for the given results."""
    df = pd.DataFrame([_row(lead, max_reasoning_length) for lead in leads], columns=CSV_COLUMNS)
    stream = io.StringIO()
    df.to_csv(stream, index=False)
    return stream.getvalue()
