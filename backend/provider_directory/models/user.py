import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from provider_directory.core.database import Base


class RoleEnum(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """
    User model representing application users.

    Passwords are stored as bcrypt hashes (never plaintext) and are never
    part of any response schema.
    """
    __tablename__ = "users"

    id = Column(String(255), primary_key=True, default=lambda: f"user-{uuid.uuid4().hex}")
    name = Column(String(255), nullable=False)
    # Stored lower-cased; unique and indexed for login lookups
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    # No endpoint changes the role after creation
    role = Column(String(20), nullable=False, default=RoleEnum.USER.value)
    avatar = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
