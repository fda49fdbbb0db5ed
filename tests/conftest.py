"""
tests/conftest.py — Shared pytest configuration and fixtures.

Sets environment defaults BEFORE any leadscore module is imported, so that
settings never point at a real API key or a real database during tests.
"""

import asyncio
import os

import pytest

# ── Set env vars before any leadscore module is imported ─────────────────────
# This runs at collection time, before tests execute.
os.environ.setdefault("OPENROUTER_API_KEY", "")
os.environ.setdefault("OPENROUTER_MODEL", "test-model")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCORING_USE_AI", "false")
os.environ.setdefault("BATCH_PAUSE_MS", "0")
os.environ.setdefault("AI_RETRY_BASE_DELAY_MS", "0")

from sqlalchemy.orm import sessionmaker

from leadscore.db.models import Base
from leadscore.db.session import build_engine
from leadscore.domain import OfferContext, ProspectRecord

HIGH_INTENT_RESPONSE = "Intent: High\nReasoning: strong fit"


# ── Fakes ─────────────────────────────────────────────────────────────────────

class FakeGenerator:
    """
    Stand-in for the remote model transport.

    Queued responses are consumed in call order; an Exception in the queue is
    raised instead of returned, and a callable is called with the prompt text.
    Once the queue is empty, `default` is used.
    """

    def __init__(self, responses=None, default=HIGH_INTENT_RESPONSE, delay=0.0):
        self.responses = list(responses or [])
        self.default = default
        self.delay = delay
        self.calls: list[str] = []

    async def generate(self, messages) -> str:
        prompt = "\n".join(str(m.content) for m in messages)
        self.calls.append(prompt)

        delay = self.delay(prompt) if callable(self.delay) else self.delay
        if delay:
            await asyncio.sleep(delay)

        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, BaseException):
            raise response
        return response(prompt) if callable(response) else response


class RecordingSleep:
    """Fake clock: records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(float(seconds))


# ── Domain fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def offer() -> OfferContext:
    return OfferContext(
        name="AI Outreach Automation",
        value_propositions=["24/7 outreach", "6x more meetings"],
        ideal_use_cases=["Technology companies", "B2B SaaS mid-market"],
    )


@pytest.fixture
def make_prospect():
    def _make(**overrides) -> ProspectRecord:
        fields = {
            "name": "Ava Patel",
            "role": "CEO",
            "company": "FlowMetrics",
            "industry": "Technology",
            "location": "San Francisco",
            "professional_summary": "Founder scaling a B2B analytics platform.",
        }
        fields.update(overrides)
        return ProspectRecord(**fields)

    return _make


@pytest.fixture
def make_generator():
    return FakeGenerator


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# ── In-memory DB fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def engine():
    """A fresh in-memory SQLite engine with all tables created."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()
