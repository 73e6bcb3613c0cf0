from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from provider_directory.api.dependencies import (
    get_current_claims,
    get_provider_service,
    get_storage,
    require_listing_owner_or_admin,
)
from provider_directory.api.forms import read_payload, stored_uploads, validate_payload
from provider_directory.core.database import get_db
from provider_directory.core.security import TokenClaims
from provider_directory.schemas import MessageResponse, ProviderEnvelope, ProviderInput, ProvidersResponse
from provider_directory.services.provider_service import ProviderService
from provider_directory.storage.local_storage import LocalStorage

router = APIRouter(tags=["providers"])


@router.get("/providers", response_model=ProvidersResponse)
def list_providers(
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches name or description, case-insensitive"),
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    """List providers, optionally filtered"""
    return {"providers": providers.list_providers(db, category, subcategory, search)}


@router.get("/featured-providers", response_model=ProvidersResponse)
def list_featured_providers(
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    return {"providers": providers.list_featured(db)}


@router.get("/user-providers", response_model=ProvidersResponse)
def list_user_providers(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    """List the caller's own providers"""
    return {"providers": providers.list_by_owner(db, claims.id)}


@router.get("/providers/{provider_id}", response_model=ProviderEnvelope)
def get_provider(
    provider_id: str,
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    return {"provider": providers.get_by_id(db, provider_id)}


@router.post("/providers", response_model=ProviderEnvelope, status_code=status.HTTP_201_CREATED)
async def create_provider(
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Create a provider owned by the caller (multipart with images[], or JSON)"""
    fields, files = await read_payload(request, "images")
    data = validate_payload(ProviderInput, fields)

    async with stored_uploads(storage, files) as paths:
        provider = await run_in_threadpool(
            providers.create, db, data, owner_id=claims.id, uploaded_paths=paths)
    return {"message": "Provider created successfully", "provider": provider}


@router.put("/providers/{provider_id}", response_model=ProviderEnvelope)
async def update_provider(
    provider_id: str,
    request: Request,
    claims: TokenClaims = Depends(require_listing_owner_or_admin),
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Update a provider; owners and admins only"""
    fields, files = await read_payload(request, "images")
    data = validate_payload(ProviderInput, fields)

    async with stored_uploads(storage, files) as paths:
        provider = await run_in_threadpool(
            providers.update, db, provider_id, data, uploaded_paths=paths)
    return {"message": "Provider updated successfully", "provider": provider}


@router.delete("/providers/{provider_id}", response_model=MessageResponse)
def delete_provider(
    provider_id: str,
    claims: TokenClaims = Depends(require_listing_owner_or_admin),
    db: Session = Depends(get_db),
    providers: ProviderService = Depends(get_provider_service),
):
    """Delete a provider and its offers; owners and admins only"""
    providers.delete(db, provider_id)
    return {"message": "Provider deleted successfully"}
