"""
leadscore/services/lead_service.py — Business logic orchestrating the full
store → scoring → store pipeline.

This is the "glue" layer that coordinates:
  - Building the orchestrator and its classifier from settings
  - Loading the current offer and prospects from the store
  - Running the scoring orchestrator over them
  - Replacing the stored results with the new run
"""

import dataclasses
import logging
from typing import Optional

from sqlalchemy.orm import Session

from leadscore.ai_engine.classifier import IntentClassifier
from leadscore.ai_engine.utils import ChatModelGenerator, TextGenerator, build_openrouter_llm
from leadscore.config import settings
from leadscore.db.repository import get_offer, get_prospects, replace_scored_leads
from leadscore.domain import RunStatistics, ScoredLead
from leadscore.errors import (
    ClassifierNotConfiguredError,
    MissingOfferError,
    MissingProspectsError,
)
from leadscore.services.scoring import ScoringConfig, ScoringOrchestrator

logger = logging.getLogger(__name__)


def build_classifier(
    config: Optional[ScoringConfig] = None,
    generator: Optional[TextGenerator] = None,
) -> IntentClassifier:
    """
    Build the remote intent classifier.

    Raises:
        ClassifierNotConfiguredError: no generator given and no API key configured.
    """
    config = config or ScoringConfig.from_settings(settings)
    if generator is None:
        generator = ChatModelGenerator(build_openrouter_llm(timeout_s=config.ai_timeout_ms / 1000))
    return IntentClassifier(generator, retry_policy=config.retry_policy())


def build_orchestrator(
    config: Optional[ScoringConfig] = None,
    generator: Optional[TextGenerator] = None,
) -> ScoringOrchestrator:
    """
    Build a ScoringOrchestrator from settings.

    When AI is enabled but no API key is configured, the orchestrator falls
    back to rule-based intent for every lead instead of failing.
    """
    config = config or ScoringConfig.from_settings(settings)
    if not config.use_ai:
        return ScoringOrchestrator(config=config)

    try:
        classifier = build_classifier(config, generator)
    except ClassifierNotConfiguredError as e:
        logger.warning("%s Scoring will use rule-based fallback analysis.", e)
        return ScoringOrchestrator(config=dataclasses.replace(config, use_ai=False))

    return ScoringOrchestrator(classifier=classifier, config=config)


async def run_scoring(
    db: Session,
    orchestrator: ScoringOrchestrator,
) -> tuple[list[ScoredLead], RunStatistics]:
    """
    Score every stored prospect against the stored offer and persist the results.

    Returns:
        (results in upload order, statistics of the run)

    Raises:
        MissingOfferError:     no offer has been submitted.
        MissingProspectsError: no prospects have been uploaded.
    """
    offer = get_offer(db)
    if offer is None:
        raise MissingOfferError(
            "No offer found. Please create an offer first.",
            details={"missing": "offer"},
        )

    prospects = get_prospects(db)
    if not prospects:
        raise MissingProspectsError(
            "No leads found. Please upload leads first.",
            details={"missing": "leads"},
        )

    logger.info("Scoring %d leads against offer %r", len(prospects), offer.name)
    results, stats = await orchestrator.run_batch(prospects, offer)
    replace_scored_leads(db, results)

    logger.info(
        "Scoring run stored: %d results, distribution=%s",
        len(results), stats.intent_distribution,
    )
    return results, stats
