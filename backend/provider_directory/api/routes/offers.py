from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from provider_directory.api.dependencies import get_offer_service
from provider_directory.core.database import get_db
from provider_directory.schemas import OfferEnvelope, OffersResponse
from provider_directory.services.offer_service import OfferService

router = APIRouter(prefix="/offers", tags=["offers"])


@router.get("", response_model=OffersResponse)
def list_offers(
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    return {"offers": offers.list_offers(db, category, subcategory, search)}


@router.get("/{offer_id}", response_model=OfferEnvelope)
def get_offer(
    offer_id: str,
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    return {"offer": offers.get_by_id(db, offer_id)}
