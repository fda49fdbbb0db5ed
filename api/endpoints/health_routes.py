"""
api/endpoints/health_routes.py — Service health checks.

GET /health       - Classifier connectivity and store status
GET /health/live  - Liveness probe
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from leadscore.ai_engine.classifier import IntentClassifier
from leadscore.db.session import get_db
from leadscore.domain import utcnow
from api.dependencies import get_classifier
from api.schemas import ComponentHealth, HealthOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=HealthOut, summary="Service health")
async def health_check(
    db: Session = Depends(get_db),
    classifier: Optional[IntentClassifier] = Depends(get_classifier),
):
    """
    healthy:   store reachable and classifier connected
    degraded:  store reachable, classifier unconfigured or unreachable
    unhealthy: store unreachable
    """
    try:
        db.execute(text("SELECT 1"))
        store = ComponentHealth(status="connected")
    except Exception as e:
        logger.error("Store health check failed: %s", e)
        store = ComponentHealth(status="disconnected", error=str(e))

    if classifier is None:
        ai = ComponentHealth(status="not_configured")
    else:
        result = await classifier.check_connectivity()
        ai = ComponentHealth(
            status="connected" if result.connected else "disconnected",
            response_time_ms=round(result.response_time_ms, 2),
            error=result.error,
        )

    if store.status != "connected":
        status = "unhealthy"
    elif ai.status != "connected":
        status = "degraded"
    else:
        status = "healthy"

    return HealthOut(status=status, timestamp=utcnow(), components={"store": store, "ai_service": ai})


@router.get("/live", summary="Liveness probe")
def liveness():
    return {"status": "alive", "timestamp": utcnow().isoformat()}
