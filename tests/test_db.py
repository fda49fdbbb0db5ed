"""
tests/test_db.py — Unit tests for the repository and database layer.

Uses an in-memory SQLite database (see the `db` fixture in conftest.py), so
tests run fast and fully in isolation.
"""

import pytest

from leadscore.db.repository import (
    clear_all,
    get_offer,
    get_prospects,
    get_scored_leads,
    get_storage_stats,
    replace_prospects,
    replace_scored_leads,
    save_offer,
)
from leadscore.domain import IntentAnalysis, IntentLevel, OfferContext, RuleBreakdown, ScoredLead
from leadscore.errors import StoreError


def _scored(prospect, score=80, level=IntentLevel.HIGH) -> ScoredLead:
    return ScoredLead(
        name=prospect.name,
        role=prospect.role,
        company=prospect.company,
        industry=prospect.industry,
        location=prospect.location,
        professional_summary=prospect.professional_summary,
        uploaded_at=prospect.uploaded_at,
        intent_level=level,
        total_score=score,
        combined_reasoning="Rule-based factors: decision maker role. AI analysis: fits.",
        rule_breakdown=RuleBreakdown(role_score=20, industry_score=0, completeness_score=10),
        intent_analysis=IntentAnalysis(
            intent_level=level, reasoning="fits", intent_score=level.score, confidence=0.7,
        ),
    )


# ── Offer ─────────────────────────────────────────────────────────────────────

class TestOffer:
    def test_no_offer_initially(self, db):
        assert get_offer(db) is None

    def test_save_and_get(self, db, offer):
        save_offer(db, offer)
        stored = get_offer(db)
        assert stored.name == offer.name
        assert stored.value_propositions == offer.value_propositions
        assert stored.ideal_use_cases == offer.ideal_use_cases

    def test_save_replaces_previous_offer(self, db, offer):
        save_offer(db, offer)
        save_offer(db, OfferContext(name="Second", value_propositions=["v"], ideal_use_cases=["u"]))
        assert get_offer(db).name == "Second"
        assert get_storage_stats(db).has_offer is True

    def test_new_offer_invalidates_scored_results(self, db, offer, make_prospect):
        prospect = make_prospect()
        replace_prospects(db, [prospect])
        replace_scored_leads(db, [_scored(prospect)])

        save_offer(db, offer)

        assert get_scored_leads(db) == []
        assert len(get_prospects(db)) == 1


# ── Prospects ─────────────────────────────────────────────────────────────────

class TestProspects:
    def test_upload_order_is_kept(self, db, make_prospect):
        names = ["Zoe", "Adam", "Mia"]
        replace_prospects(db, [make_prospect(name=n) for n in names])
        assert [p.name for p in get_prospects(db)] == names

    def test_replace_drops_previous_prospects_and_results(self, db, make_prospect):
        first = make_prospect(name="Old")
        replace_prospects(db, [first])
        replace_scored_leads(db, [_scored(first)])

        replace_prospects(db, [make_prospect(name="New")])

        assert [p.name for p in get_prospects(db)] == ["New"]
        assert get_scored_leads(db) == []


# ── Scored results ────────────────────────────────────────────────────────────

class TestScoredLeads:
    def test_round_trip(self, db, make_prospect):
        prospect = make_prospect()
        replace_prospects(db, [prospect])
        replace_scored_leads(db, [_scored(prospect, score=60, level=IntentLevel.MEDIUM)])

        [lead] = get_scored_leads(db)
        assert lead.name == prospect.name
        assert lead.total_score == 60
        assert lead.intent_level == IntentLevel.MEDIUM
        assert lead.rule_breakdown.total_rule_score == 30
        assert lead.intent_analysis.intent_score == 30
        assert lead.intent_analysis.confidence == pytest.approx(0.7)
        assert lead.intent_analysis.fallback is False

    def test_replacement_is_whole(self, db, make_prospect):
        prospects = [make_prospect(name="A"), make_prospect(name="B")]
        replace_prospects(db, prospects)
        replace_scored_leads(db, [_scored(p) for p in prospects])
        replace_scored_leads(db, [_scored(prospects[1], score=10, level=IntentLevel.LOW)])

        assert [(l.name, l.total_score) for l in get_scored_leads(db)] == [("B", 10)]

    def test_more_results_than_prospects_is_rejected(self, db, make_prospect):
        prospect = make_prospect()
        replace_prospects(db, [prospect])
        with pytest.raises(StoreError):
            replace_scored_leads(db, [_scored(prospect), _scored(prospect)])


# ── Housekeeping ──────────────────────────────────────────────────────────────

class TestHousekeeping:
    def test_storage_stats(self, db, offer, make_prospect):
        save_offer(db, offer)
        prospects = [make_prospect(name="A"), make_prospect(name="B")]
        replace_prospects(db, prospects)
        replace_scored_leads(db, [_scored(prospects[0])])

        stats = get_storage_stats(db)
        assert stats.has_offer is True
        assert stats.prospect_count == 2
        assert stats.scored_result_count == 1

    def test_clear_all(self, db, offer, make_prospect):
        save_offer(db, offer)
        replace_prospects(db, [make_prospect()])
        clear_all(db)

        stats = get_storage_stats(db)
        assert (stats.has_offer, stats.prospect_count, stats.scored_result_count) == (False, 0, 0)
