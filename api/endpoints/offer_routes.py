"""
api/endpoints/offer_routes.py — Routes for the product/offer context.

POST /offer  - Create or replace the offer leads are scored against
GET  /offer  - Return the current offer
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from leadscore.db.repository import get_offer, save_offer
from leadscore.db.session import get_db
from api.schemas import OfferIn, OfferOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=OfferOut, status_code=201, summary="Create or replace the offer")
def create_offer(payload: OfferIn, db: Session = Depends(get_db)):
    """
    Store the offer context. Any previously scored results are discarded,
    since they were computed against the old offer.
    """
    offer = save_offer(db, payload.to_domain())
    logger.info(
        "Offer created via API: %r (%d value propositions, %d use cases)",
        offer.name, len(offer.value_propositions), len(offer.ideal_use_cases),
    )
    return OfferOut.from_domain(offer)


@router.get("", response_model=OfferOut, summary="Get the current offer")
def read_offer(db: Session = Depends(get_db)):
    offer = get_offer(db)
    if offer is None:
        raise HTTPException(status_code=404, detail="No offer found. Please create an offer first.")
    return OfferOut.from_domain(offer)
