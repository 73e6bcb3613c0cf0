"""
Authorization gate and service lookups.

Three policies, applied per route with Depends:
- get_current_claims: a valid bearer token is required (AuthenticatedUser)
- require_admin: authenticated and role "admin"
- require_listing_owner_or_admin: admin, or the owner of the listing in the path
Public routes simply use none of them.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from provider_directory.core.database import get_db
from provider_directory.core.errors import Forbidden, NotFound
from provider_directory.core.security import TokenClaims, TokenIssuer
from provider_directory.models.provider import Provider
from provider_directory.services.offer_service import OfferService
from provider_directory.services.provider_service import PROVIDER_NOT_FOUND_MESSAGE, ProviderService
from provider_directory.services.user_service import UserService
from provider_directory.storage.local_storage import LocalStorage

# OAuth2 password bearer scheme - extracts token from Authorization header
# auto_error=False: a missing token is answered by the issuer with our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/login", auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_storage(request: Request) -> LocalStorage:
    return request.app.state.storage


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_provider_service(request: Request) -> ProviderService:
    return request.app.state.provider_service


def get_offer_service(request: Request) -> OfferService:
    return request.app.state.offer_service


async def get_current_claims(
    token: Optional[str] = Depends(oauth2_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """
    Verify the bearer token and return its claims.

    Stateless: the database is not consulted. Missing, expired, malformed and
    mis-signed tokens all end in the same 401.
    """
    return token_issuer.verify(token)


async def require_admin(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
    if not claims.is_admin:
        raise Forbidden("Forbidden: Admin access required")
    return claims


def require_listing_owner_or_admin(
    provider_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
) -> TokenClaims:
    """
    Admins pass without a lookup (the store reports a missing listing).
    Everyone else must own the listing named by the `provider_id` path parameter.
    """
    if claims.is_admin:
        return claims
    owner = db.query(Provider.owner_id).filter(Provider.id == provider_id).first()
    if owner is None:
        raise NotFound(PROVIDER_NOT_FOUND_MESSAGE)
    if owner.owner_id != claims.id:
        raise Forbidden("Forbidden: You can only manage your own providers")
    return claims
