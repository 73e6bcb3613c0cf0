import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from provider_directory.core.errors import InvalidInput, InvalidReference, NotFound
from provider_directory.models.offer import Offer
from provider_directory.schemas import OfferInput
from provider_directory.services.provider_service import ProviderService, apply_catalog_filters
from provider_directory.services.upload_references import upload_reference_service
from provider_directory.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)

OFFER_NOT_FOUND_MESSAGE = "Offer not found"

_OFFER_FIELDS = (
    "provider_id", "name", "description", "price", "original_price",
    "discounted_price", "duration", "category", "subcategory", "image",
)


class OfferService:
    """Offer store. Every write is checked against the listing store first."""

    def __init__(self, providers: ProviderService, storage: LocalStorage):
        self.providers = providers
        self.storage = storage

    @staticmethod
    def _commit(db: Session) -> None:
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    def _require_listing(self, db: Session, data: OfferInput) -> None:
        if not self.providers.exists(db, data.provider_id):
            raise InvalidReference()

    @staticmethod
    def list_offers(
        db: Session,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Offer]:
        query = apply_catalog_filters(db.query(Offer), Offer, category, subcategory, search)
        return query.order_by(Offer.created_at.desc(), Offer.id).all()

    @staticmethod
    def get_by_id(db: Session, offer_id: str) -> Offer:
        offer = db.query(Offer).filter(Offer.id == offer_id).first()
        if offer is None:
            raise NotFound(OFFER_NOT_FOUND_MESSAGE)
        return offer

    def create(self, db: Session, data: OfferInput) -> Offer:
        self._require_listing(db, data)
        if data.id and db.query(Offer.id).filter(Offer.id == data.id).first():
            raise InvalidInput("Offer id already exists")

        values = {field: getattr(data, field) for field in _OFFER_FIELDS}
        if data.id:
            values["id"] = data.id
        offer = Offer(**values)
        db.add(offer)
        try:
            self._commit(db)
        except IntegrityError:
            raise InvalidInput("Offer id already exists")
        db.refresh(offer)
        logger.info(f"Created offer {offer.id} for provider {offer.provider_id}")
        return offer

    def update(self, db: Session, offer_id: str, data: OfferInput) -> Offer:
        # The reference is checked before anything else, including the offer lookup
        self._require_listing(db, data)
        offer = self.get_by_id(db, offer_id)
        old_image = offer.image

        for field in _OFFER_FIELDS:
            setattr(offer, field, getattr(data, field))
        self._commit(db)
        db.refresh(offer)

        if old_image and old_image != offer.image:
            upload_reference_service.discard_unreferenced([old_image], db, self.storage)
        logger.info(f"Updated offer {offer.id}")
        return offer

    def delete(self, db: Session, offer_id: str) -> None:
        offer = self.get_by_id(db, offer_id)
        image = offer.image
        db.delete(offer)
        self._commit(db)

        if image:
            upload_reference_service.discard_unreferenced([image], db, self.storage)
        logger.info(f"Deleted offer {offer_id}")
