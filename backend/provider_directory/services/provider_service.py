import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql import func

from provider_directory.core.errors import InvalidInput, InvalidReference, NotFound
from provider_directory.core.taxonomy import is_known_pair
from provider_directory.models.fields import ImageList, OpeningHours
from provider_directory.models.provider import Provider
from provider_directory.models.user import User
from provider_directory.schemas import ProviderInput
from provider_directory.services.upload_references import upload_reference_service
from provider_directory.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)

PROVIDER_NOT_FOUND_MESSAGE = "Provider not found"

# Plain columns copied from the input schema on create and update
_SCALAR_FIELDS = (
    "name", "username", "city", "zip_code", "location", "phone", "email",
    "website", "description", "category", "subcategory", "address",
)


def contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` anywhere, with wildcards in it escaped"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def apply_catalog_filters(query: Query, model, category: Optional[str], subcategory: Optional[str],
                          search: Optional[str]) -> Query:
    """Exact category/subcategory, case-insensitive search on name or description"""
    if category:
        query = query.filter(model.category == category)
    if subcategory:
        query = query.filter(model.subcategory == subcategory)
    if search:
        pattern = contains_pattern(search)
        query = query.filter(or_(
            model.name.ilike(pattern, escape="\\"),
            model.description.ilike(pattern, escape="\\"),
        ))
    return query


class ProviderService:
    """Listing store: CRUD and search over providers."""

    def __init__(self, storage: LocalStorage, enforce_taxonomy: bool = False):
        self.storage = storage
        self.enforce_taxonomy = enforce_taxonomy

    @staticmethod
    def _commit(db: Session) -> None:
        try:
            db.commit()
        except SQLAlchemyError:
            # Keep the session usable and let the route boundary report it
            db.rollback()
            raise

    def list_providers(
        self,
        db: Session,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Provider]:
        query = apply_catalog_filters(db.query(Provider), Provider, category, subcategory, search)
        return query.order_by(Provider.created_at.desc(), Provider.id).all()

    @staticmethod
    def list_featured(db: Session) -> list[Provider]:
        return (
            db.query(Provider)
            .filter(Provider.is_featured.is_(True))
            .order_by(Provider.created_at.desc(), Provider.id)
            .all()
        )

    @staticmethod
    def list_by_owner(db: Session, owner_id: str) -> list[Provider]:
        return (
            db.query(Provider)
            .filter(Provider.owner_id == owner_id)
            .order_by(Provider.created_at.desc(), Provider.id)
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, provider_id: str) -> Provider:
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
        if provider is None:
            raise NotFound(PROVIDER_NOT_FOUND_MESSAGE)
        return provider

    @staticmethod
    def exists(db: Session, provider_id: str) -> bool:
        return db.query(Provider.id).filter(Provider.id == provider_id).first() is not None

    def _check_taxonomy(self, data: ProviderInput) -> None:
        if self.enforce_taxonomy and not is_known_pair(data.category, data.subcategory):
            raise InvalidInput(f"Unknown category/subcategory: {data.category} / {data.subcategory}")

    def create(
        self,
        db: Session,
        data: ProviderInput,
        owner_id: Optional[str] = None,
        uploaded_paths: Optional[list[str]] = None,
    ) -> Provider:
        """
        Create a listing. Images are existingImages followed by the new
        uploads, in that order. New listings are never featured.
        """
        images = ImageList.parse(data.existing_images) if data.existing_images is not None else ImageList()
        images = images.extend(uploaded_paths or [])
        hours = OpeningHours.parse(data.opening_hours) if data.opening_hours is not None else OpeningHours()
        self._check_taxonomy(data)

        if owner_id and db.query(User.id).filter(User.id == owner_id).first() is None:
            raise InvalidReference("Invalid userId")
        if data.id and self.exists(db, data.id):
            raise InvalidInput("Provider id already exists")

        values = {field: getattr(data, field) for field in _SCALAR_FIELDS}
        if data.id:
            values["id"] = data.id
        provider = Provider(
            owner_id=owner_id,
            images_json=images.encode(),
            opening_hours_json=hours.encode(),
            is_featured=False,
            **values,
        )
        db.add(provider)
        try:
            self._commit(db)
        except IntegrityError:
            raise InvalidInput("Provider id already exists")
        db.refresh(provider)
        logger.info(f"Created provider {provider.id} for owner {owner_id}")
        return provider

    def update(
        self,
        db: Session,
        provider_id: str,
        data: ProviderInput,
        uploaded_paths: Optional[list[str]] = None,
    ) -> Provider:
        """
        Replace a listing's fields. existingImages, when given, replaces the
        stored image list; uploads are appended either way. openingHours, when
        given, replaces the stored map wholesale.
        """
        provider = self.get_by_id(db, provider_id)

        # Stored values are read tolerantly; only the caller's input can fail
        current_images = provider.image_list
        images = ImageList.parse(data.existing_images) if data.existing_images is not None else current_images
        images = images.extend(uploaded_paths or [])
        if data.opening_hours is not None:
            hours = OpeningHours.parse(data.opening_hours)
        else:
            hours = OpeningHours.decode(provider.opening_hours_json, record_id=provider.id)
        self._check_taxonomy(data)

        for field in _SCALAR_FIELDS:
            setattr(provider, field, getattr(data, field))
        provider.images_json = images.encode()
        provider.opening_hours_json = hours.encode()
        provider.updated_at = func.now()
        self._commit(db)
        db.refresh(provider)

        removed = set(current_images.paths) - set(images.paths)
        if removed:
            upload_reference_service.discard_unreferenced(removed, db, self.storage)

        logger.info(f"Updated provider {provider.id}")
        return provider

    def set_featured(self, db: Session, provider_id: str, featured: bool) -> Provider:
        provider = self.get_by_id(db, provider_id)
        provider.is_featured = featured
        provider.updated_at = func.now()
        self._commit(db)
        db.refresh(provider)
        logger.info(f"Provider {provider.id} featured={featured}")
        return provider

    def delete(self, db: Session, provider_id: str) -> None:
        """
        Delete a listing together with its offers (one transaction), then
        remove uploads that only the deleted records referenced.
        """
        provider = self.get_by_id(db, provider_id)
        paths = list(provider.images) + [offer.image for offer in provider.offers if offer.image]
        offer_count = len(provider.offers)

        db.delete(provider)
        self._commit(db)

        upload_reference_service.discard_unreferenced(paths, db, self.storage)
        logger.info(f"Deleted provider {provider_id} and {offer_count} offer(s)")
