"""
api/main.py — FastAPI application entry point.

Run with:
    uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadscore.config import settings
from leadscore.db.models import Base
from leadscore.db.session import engine
from api.endpoints.health_routes import router as health_router
from api.endpoints.lead_routes import router as lead_router
from api.endpoints.offer_routes import router as offer_router
from api.endpoints.scoring_routes import router as scoring_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown logic."""
    Base.metadata.create_all(bind=engine)
    logger.info("Store tables ready (%s).", engine.url.render_as_string(hide_password=True))
    yield
    logger.info("Application shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Lead Score Service",
    description=(
        "Scores uploaded sales prospects against a product offer by combining "
        "deterministic rules with an AI buying-intent classification."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(offer_router, prefix="/offer", tags=["Offer"])
app.include_router(lead_router, prefix="/leads", tags=["Leads"])
app.include_router(scoring_router, tags=["Scoring"])
app.include_router(health_router, prefix="/health", tags=["System"])


@app.get("/", tags=["System"])
def root():
    return {
        "message": "Lead Score Service is running.",
        "docs": "/docs",
        "ai_enabled": settings.scoring_use_ai and bool(settings.openrouter_api_key),
    }
