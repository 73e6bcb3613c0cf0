from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from provider_directory.api.dependencies import get_current_claims, get_storage, get_user_service
from provider_directory.api.forms import stored_uploads, validate_payload
from provider_directory.core.database import get_db
from provider_directory.core.security import TokenClaims
from provider_directory.schemas import ProfileUpdate, UserEnvelope
from provider_directory.services.user_service import UserService
from provider_directory.storage.local_storage import LocalStorage

router = APIRouter(prefix="/user", tags=["users"])


@router.get("", response_model=UserEnvelope)
def get_current_user_info(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
):
    """Get current user information"""
    return {"user": users.get_by_id(db, claims.id)}


@router.put("", response_model=UserEnvelope)
async def update_current_user(
    claims: TokenClaims = Depends(get_current_claims),
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Update name, email and phone; an uploaded avatar replaces the old one"""
    profile = validate_payload(ProfileUpdate, {"name": name, "email": email, "phone": phone})
    files = [avatar] if avatar is not None and avatar.filename else []

    async with stored_uploads(storage, files) as paths:
        user = await run_in_threadpool(
            users.update_profile,
            db,
            claims.id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            avatar_path=paths[0] if paths else None,
        )
    return {"user": user}
