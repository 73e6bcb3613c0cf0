import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from provider_directory.models.offer import Offer
from provider_directory.models.provider import Provider
from provider_directory.models.user import User
from provider_directory.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)


class UploadReferenceService:
    """Service for deciding whether an uploaded file is still in use"""

    @staticmethod
    def get_listing_images(db: Session) -> set[str]:
        """
        Every image path used by any listing.
        Listing images live in JSON text, so every listing is decoded once.
        """
        images = set()
        for provider in db.query(Provider).all():
            images.update(provider.images)
        return images

    @staticmethod
    def is_upload_referenced(public_path: str, db: Session, listing_images: Optional[set[str]] = None) -> bool:
        """Check if any user avatar, offer image or listing image points at the path"""
        if db.query(User.id).filter(User.avatar == public_path).first():
            return True
        if db.query(Offer.id).filter(Offer.image == public_path).first():
            return True
        if listing_images is None:
            listing_images = UploadReferenceService.get_listing_images(db)
        return public_path in listing_images

    @staticmethod
    def discard_unreferenced(paths: Iterable[str], db: Session, storage: LocalStorage) -> list[str]:
        """
        Delete uploads that nothing references any more.
        Call after the change that dropped the references has been committed.
        """
        candidates = {path for path in paths if storage.is_upload(path)}
        if not candidates:
            return []

        listing_images = UploadReferenceService.get_listing_images(db)
        deleted = []
        for path in candidates:
            if UploadReferenceService.is_upload_referenced(path, db, listing_images):
                continue
            if storage.delete_file(path):
                deleted.append(path)
        if deleted:
            logger.info(f"Cleaned up {len(deleted)} unreferenced upload(s)")
        return deleted


upload_reference_service = UploadReferenceService()
