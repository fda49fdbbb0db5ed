"""
api/dependencies.py — Shared FastAPI dependencies.

The orchestrator is a process-wide singleton so /score/status can report the
statistics of the last run. Tests replace both providers through
app.dependency_overrides.
"""

import logging
from functools import lru_cache
from typing import Optional

from leadscore.ai_engine.classifier import IntentClassifier
from leadscore.errors import ClassifierNotConfiguredError
from leadscore.services.lead_service import build_classifier, build_orchestrator
from leadscore.services.scoring import ScoringOrchestrator

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_orchestrator() -> ScoringOrchestrator:
    return build_orchestrator()


@lru_cache(maxsize=1)
def get_classifier() -> Optional[IntentClassifier]:
    """The remote classifier used by health checks, or None when not configured."""
    try:
        return build_classifier()
    except ClassifierNotConfiguredError as e:
        logger.warning("Health checks will report the classifier as unconfigured: %s", e)
        return None
