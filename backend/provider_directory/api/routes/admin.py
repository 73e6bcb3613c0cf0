from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from provider_directory.api.dependencies import (
    get_offer_service,
    get_provider_service,
    get_storage,
    get_user_service,
    require_admin,
)
from provider_directory.api.forms import read_payload, stored_uploads, validate_payload
from provider_directory.core.database import get_db
from provider_directory.schemas import (
    AdminsResponse,
    CountResponse,
    FeaturedUpdate,
    MessageResponse,
    OfferEnvelope,
    OfferInput,
    OffersResponse,
    ProviderEnvelope,
    ProviderInput,
    ProvidersResponse,
)
from provider_directory.services.offer_service import OfferService
from provider_directory.services.provider_service import ProviderService
from provider_directory.services.user_service import UserService
from provider_directory.storage.local_storage import LocalStorage

# Every route here requires an administrator token
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# Users
# -----------------------------

@router.get("/users/count", response_model=CountResponse)
def count_users(
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
):
    return {"count": users.count_users(db)}


@router.get("/admins", response_model=AdminsResponse)
def list_admins(
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
):
    return {"admins": users.list_admins(db)}


# Providers
# -----------------------------

@router.get("/providers", response_model=ProvidersResponse)
def list_all_providers(
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    return {"providers": providers.list_providers(db)}


@router.post("/providers", response_model=ProviderEnvelope, status_code=status.HTTP_201_CREATED)
async def create_provider(
    request: Request,
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Create a provider for the user named by userId, or with no owner"""
    fields, files = await read_payload(request, "images")
    data = validate_payload(ProviderInput, fields)

    async with stored_uploads(storage, files) as paths:
        provider = await run_in_threadpool(
            providers.create, db, data, owner_id=data.user_id, uploaded_paths=paths)
    return {"message": "Provider created successfully", "provider": provider}


@router.put("/providers/{provider_id}", response_model=ProviderEnvelope)
async def update_provider(
    provider_id: str,
    request: Request,
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
    storage: LocalStorage = Depends(get_storage),
):
    fields, files = await read_payload(request, "images")
    data = validate_payload(ProviderInput, fields)

    async with stored_uploads(storage, files) as paths:
        provider = await run_in_threadpool(
            providers.update, db, provider_id, data, uploaded_paths=paths)
    return {"message": "Provider updated successfully", "provider": provider}


@router.delete("/providers/{provider_id}", response_model=MessageResponse)
def delete_provider(
    provider_id: str,
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    providers.delete(db, provider_id)
    return {"message": "Provider deleted successfully"}


@router.put("/providers/{provider_id}/featured", response_model=MessageResponse)
def set_featured(
    provider_id: str,
    featured: FeaturedUpdate,
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    providers.set_featured(db, provider_id, featured.is_featured)
    return {"message": "Featured status updated successfully"}


# Offers
# -----------------------------

@router.get("/offers", response_model=OffersResponse)
def list_all_offers(
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    return {"offers": offers.list_offers(db)}


@router.post("/offers", response_model=OfferEnvelope, status_code=status.HTTP_201_CREATED)
def create_offer(
    offer_data: OfferInput,
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    offer = offers.create(db, offer_data)
    return {"message": "Offer created successfully", "offer": offer}


@router.put("/offers/{offer_id}", response_model=OfferEnvelope)
def update_offer(
    offer_id: str,
    offer_data: OfferInput,
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    offer = offers.update(db, offer_id, offer_data)
    return {"message": "Offer updated successfully", "offer": offer}


@router.delete("/offers/{offer_id}", response_model=MessageResponse)
def delete_offer(
    offer_id: str,
    db: Session = Depends(get_db),
    offers: OfferService = Depends(get_offer_service),
):
    offers.delete(db, offer_id)
    return {"message": "Offer deleted successfully"}
