"""
leadscore/db/models.py — SQLAlchemy ORM models for the lead scoring store.

Tables:
  - Offer      → the single current product/offer context
  - Prospect   → an uploaded lead, kept in upload order
  - ScoredLead → the result of the last scoring run for one prospect
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase

from leadscore.domain import IntentLevel


# ── Base ─────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Models ───────────────────────────────────────────────────────────────────

class Offer(Base):
    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    value_propositions = Column(JSON, nullable=False)     # list[str]
    ideal_use_cases = Column(JSON, nullable=False)        # list[str]
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Offer id={self.id} name={self.name!r}>"


class Prospect(Base):
    __tablename__ = "prospects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, nullable=False)            # 0-based upload order
    name = Column(String(100), nullable=False)
    role = Column(String(100), nullable=False)
    company = Column(String(100), nullable=False)
    industry = Column(String(100), nullable=False)
    location = Column(String(100), nullable=False)
    professional_summary = Column(Text, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Prospect id={self.id} name={self.name!r} company={self.company!r}>"


class ScoredLead(Base):
    __tablename__ = "scored_leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, nullable=False)            # same order as the scored prospects

    # Prospect snapshot
    name = Column(String(100), nullable=False)
    role = Column(String(100), nullable=False)
    company = Column(String(100), nullable=False)
    industry = Column(String(100), nullable=False)
    location = Column(String(100), nullable=False)
    professional_summary = Column(Text, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=True)

    # Combined result
    intent_level = Column(Enum(IntentLevel), nullable=False)
    total_score = Column(Integer, nullable=False)         # 0 – 100
    combined_reasoning = Column(Text, nullable=False)

    # Rule breakdown
    role_score = Column(Integer, nullable=False)
    industry_score = Column(Integer, nullable=False)
    completeness_score = Column(Integer, nullable=False)

    # Intent analysis (pre-reconciliation)
    ai_intent_level = Column(Enum(IntentLevel), nullable=False)
    ai_intent_score = Column(Integer, nullable=False)
    ai_reasoning = Column(Text, nullable=False)
    ai_confidence = Column(Float, nullable=False)
    ai_fallback = Column(Boolean, nullable=False, default=False)

    scored_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<ScoredLead id={self.id} name={self.name!r} score={self.total_score}>"
