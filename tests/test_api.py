"""
tests/test_api.py — HTTP tests for the FastAPI app.

The DB session, orchestrator and classifier dependencies are overridden so
each test runs against a fresh in-memory store with AI disabled.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_classifier, get_orchestrator
from api.main import app
from leadscore.ai_engine.classifier import IntentClassifier
from leadscore.ai_engine.retry import RetryPolicy
from leadscore.db.session import get_db
from leadscore.services.scoring import ScoringConfig, ScoringOrchestrator

OFFER = {
    "name": "AI Outreach Automation",
    "value_propositions": ["24/7 outreach", "6x more meetings"],
    "ideal_use_cases": ["Technology companies", "B2B SaaS mid-market"],
}

LEADS_CSV = (
    "name,role,company,industry,location,professional_summary\n"
    "Ava Patel,CEO,FlowMetrics,Technology,San Francisco,Founder scaling a B2B analytics platform\n"
    "Ben Ortiz,Software Engineer,FarmCo,Agriculture,Austin,Builds irrigation control software\n"
    "Cara Lee,Marketing Manager,Fintrail,Fintech,Boston,Leads demand generation for a payments startup\n"
)


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    orchestrator = ScoringOrchestrator(config=ScoringConfig(use_ai=False, batch_pause_ms=0))
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_classifier] = lambda: None

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _upload(client, content: str = LEADS_CSV, filename: str = "leads.csv"):
    return client.post("/leads/upload", files={"file": (filename, content.encode(), "text/csv")})


def _prepare(client):
    assert client.post("/offer", json=OFFER).status_code == 201
    assert _upload(client).status_code == 201


# ── Offer ─────────────────────────────────────────────────────────────────────

class TestOfferRoutes:
    def test_get_offer_before_create_is_404(self, client):
        assert client.get("/offer").status_code == 404

    def test_create_and_read_offer(self, client):
        response = client.post("/offer", json=OFFER)
        assert response.status_code == 201
        assert response.json()["name"] == OFFER["name"]
        assert client.get("/offer").json()["ideal_use_cases"] == OFFER["ideal_use_cases"]

    @pytest.mark.parametrize("payload", [
        {**OFFER, "name": ""},
        {**OFFER, "value_propositions": []},
        {**OFFER, "ideal_use_cases": ["x"] * 11},
        {**OFFER, "value_propositions": ["v" * 501]},
    ])
    def test_invalid_offer_is_rejected(self, client, payload):
        assert client.post("/offer", json=payload).status_code == 422


# ── Leads ─────────────────────────────────────────────────────────────────────

class TestLeadRoutes:
    def test_upload_csv(self, client):
        response = _upload(client)
        assert response.status_code == 201
        body = response.json()
        assert body["processed"] == 3
        assert body["rejected"] == 0

        summary = client.get("/leads").json()
        assert summary["count"] == 3
        assert summary["sample_industries"] == ["Technology", "Agriculture", "Fintech"]

    def test_partial_upload_reports_row_errors(self, client):
        content = LEADS_CSV + "Dan Roe,,Acme,Technology,Denver,Summary\n"
        body = _upload(client, content).json()
        assert body["processed"] == 3
        assert body["rejected"] == 1
        assert body["errors"][0]["row"] == 5

    def test_wrong_extension_is_rejected(self, client):
        assert _upload(client, filename="leads.xlsx").status_code == 400

    def test_missing_columns_are_rejected(self, client):
        response = _upload(client, "name,role\nAva,CEO\n")
        assert response.status_code == 400
        assert "missing_columns" in response.json()["detail"]

    def test_no_valid_rows_is_rejected(self, client):
        response = _upload(client, "name,role,company,industry,location,professional_summary\n,,,,,x\n")
        assert response.status_code == 400


# ── Scoring ───────────────────────────────────────────────────────────────────

class TestScoringRoutes:
    def test_score_without_offer_is_422(self, client):
        _upload(client)
        assert client.post("/score").status_code == 422

    def test_score_without_leads_is_422(self, client):
        client.post("/offer", json=OFFER)
        assert client.post("/score").status_code == 422

    def test_score_and_read_results(self, client):
        _prepare(client)

        response = client.post("/score")
        assert response.status_code == 200
        body = response.json()
        assert body["total_leads"] == 3
        assert body["successful_scores"] == 3
        assert body["ai_success_rate"] is None
        assert sum(body["intent_distribution"].values()) == 3
        assert body["statistics"]["state"] == "completed"

        results = client.get("/results").json()
        scores = [r["score"] for r in results["results"]]
        assert scores == sorted(scores, reverse=True)
        assert results["results"][0]["name"] == "Ava Patel"
        assert results["results"][0]["score"] == 100
        assert results["results"][0]["intent"] == "High"
        assert results["summary"]["total_results"] == 3

    def test_results_filters_and_limit(self, client):
        _prepare(client)
        client.post("/score")

        high = client.get("/results", params={"intent": "High"}).json()
        assert [r["name"] for r in high["results"]] == ["Ava Patel"]

        top = client.get("/results", params={"limit": 1}).json()
        assert [r["name"] for r in top["results"]] == ["Ava Patel"]
        assert top["summary"]["filtered_results"] == 1

        low_scores = client.get("/results", params={"max_score": 50}).json()
        assert all(r["score"] <= 50 for r in low_scores["results"])

    def test_status_reports_readiness(self, client):
        assert client.get("/score/status").json()["ready_to_score"] is False
        _prepare(client)
        status = client.get("/score/status").json()
        assert status["ready_to_score"] is True
        assert status["storage"]["prospect_count"] == 3

    def test_export_csv(self, client):
        _prepare(client)
        client.post("/score")

        response = client.get("/results/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "lead_scores_" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("name,role,company")
        assert len(lines) == 4

    def test_export_without_results_is_header_only(self, client):
        lines = client.get("/results/export").text.strip().splitlines()
        assert len(lines) == 1

    def test_new_offer_clears_results(self, client):
        _prepare(client)
        client.post("/score")
        client.post("/offer", json=OFFER)
        assert client.get("/results").json()["results"] == []


# ── Health ────────────────────────────────────────────────────────────────────

class TestHealthRoutes:
    def test_liveness(self, client):
        assert client.get("/health/live").json()["status"] == "alive"

    def test_degraded_without_classifier(self, client):
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["components"]["store"]["status"] == "connected"
        assert body["components"]["ai_service"]["status"] == "not_configured"

    def test_healthy_with_reachable_classifier(self, client, make_generator):
        classifier = IntentClassifier(make_generator(default="OK"), retry_policy=RetryPolicy(max_attempts=1))
        app.dependency_overrides[get_classifier] = lambda: classifier
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["components"]["ai_service"]["status"] == "connected"
