import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from provider_directory.core.errors import DuplicateEmail, InvalidCredentials, NotFound
from provider_directory.core.security import PasswordHasher
from provider_directory.models.user import RoleEnum, User
from provider_directory.services.upload_references import upload_reference_service
from provider_directory.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class UserService:
    """Credential store: accounts, logins and profiles."""

    def __init__(self, passwords: PasswordHasher, storage: LocalStorage):
        self.passwords = passwords
        self.storage = storage

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def create_account(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        avatar_url: Optional[str] = None,
        role: RoleEnum = RoleEnum.USER,
    ) -> User:
        """Register a new account. Signup always creates plain users."""
        email = email.strip().lower()
        # Explicit check gives a clear error; the unique constraint catches races
        if self.get_by_email(db, email):
            raise DuplicateEmail()

        user = User(
            name=name,
            email=email,
            password=self.passwords.get_password_hash(password),
            role=role.value,
            phone=phone,
            avatar=avatar_url,
        )
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateEmail()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(user)
        logger.info(f"Created {user.role} account {user.id}")
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        user = self.get_by_email(db, email)
        # Same error and same hashing work whether or not the email exists
        verified = self.passwords.verify_password(password, user.password if user else None)
        if user is None or not verified:
            raise InvalidCredentials()
        return user

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound("User not found")
        return user

    def update_profile(
        self,
        db: Session,
        user_id: str,
        name: str,
        email: str,
        phone: Optional[str] = None,
        avatar_path: Optional[str] = None,
    ) -> User:
        """
        Overwrite name, email and phone; replace the avatar only when a new
        upload was supplied. The previous avatar file is removed best-effort.
        """
        user = self.get_by_id(db, user_id)
        email = email.strip().lower()

        if email != user.email and self.get_by_email(db, email):
            raise DuplicateEmail()

        old_avatar = user.avatar
        user.name = name
        user.email = email
        user.phone = phone
        if avatar_path:
            user.avatar = avatar_path

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateEmail()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(user)

        if avatar_path and old_avatar and old_avatar != avatar_path:
            upload_reference_service.discard_unreferenced([old_avatar], db, self.storage)

        logger.info(f"Updated profile {user.id}")
        return user

    @staticmethod
    def count_users(db: Session) -> int:
        return db.query(User).count()

    @staticmethod
    def list_admins(db: Session) -> list[User]:
        return db.query(User).filter(User.role == RoleEnum.ADMIN.value).order_by(User.created_at).all()

    def ensure_admin(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> User:
        """Bootstrap an administrator; does nothing if the email is taken."""
        existing = self.get_by_email(db, email)
        if existing:
            return existing
        return self.create_account(db, name, email, password, phone=phone, role=RoleEnum.ADMIN)
