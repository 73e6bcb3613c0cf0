from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from provider_directory.core.config import Settings
from provider_directory.core.errors import Unauthorized


class PasswordHasher:
    """bcrypt hashing through passlib; the salt is generated per password."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        # Verified against unknown emails so login does the same work either way
        self._dummy_hash = self.context.hash("not-a-real-password")

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against a hash using constant-time comparison"""
        if not hashed_password:
            self.context.verify(plain_password, self._dummy_hash)
            return False
        return self.context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return self.context.hash(password)


class TokenClaims(BaseModel):
    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenIssuer:
    """Issues and verifies signed, time-limited access tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def create_access_token(self, data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token with expiration"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or self.expires)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Optional[dict[str, Any]]:
        """Decode and verify a JWT token; None if invalid, expired or tampered with"""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def issue(self, user) -> str:
        # Role is a str enum on the model; store the plain value
        role = getattr(user.role, "value", user.role)
        return self.create_access_token({"sub": user.id, "email": user.email, "role": role})

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise Unauthorized("Unauthorized: No token provided")
        payload = self.decode_access_token(token)
        if payload is None:
            raise Unauthorized()
        try:
            return TokenClaims(id=payload.get("sub"), email=payload.get("email"), role=payload.get("role"))
        except ValidationError:
            # Signed by us but missing claims
            raise Unauthorized()
