from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from provider_directory.api.dependencies import get_token_issuer, get_user_service
from provider_directory.core.database import get_db
from provider_directory.core.security import TokenIssuer
from provider_directory.schemas import AuthResponse, LoginRequest, SignupRequest
from provider_directory.services.user_service import UserService

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Login and get access token"""
    # Unknown email and wrong password produce the same 401
    user = users.authenticate(db, credentials.email, credentials.password)
    return {"token": token_issuer.issue(user), "user": user}


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    user_data: SignupRequest,
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Register a new user and log them in"""
    user = users.create_account(
        db,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        phone=user_data.phone,
        avatar_url=user_data.avatar,
    )
    return {"token": token_issuer.issue(user), "user": user}
