import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship, synonym
from sqlalchemy.sql import func

from provider_directory.core.database import Base
from provider_directory.models.fields import ImageList, OpeningHours


class Provider(Base):
    """
    A listing in the directory.

    images and opening_hours are JSON text columns; the `images` and
    `opening_hours` properties always return well-formed values, whatever
    bytes are stored.
    """
    __tablename__ = "providers"

    id = Column(String(255), primary_key=True, default=lambda: f"provider-{uuid.uuid4().hex}")
    # Nullable: admin-created listings may have no owner
    owner_id = Column("user_id", String(255), ForeignKey("users.id", ondelete="SET NULL"),
                      nullable=True, index=True)
    user_id = synonym("owner_id")
    name = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=True)
    # Map link or raw address fragment
    location = Column(String(1000), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    images_json = Column("images", Text, nullable=True)
    opening_hours_json = Column("opening_hours", Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)
    subcategory = Column(String(255), nullable=False, index=True)
    address = Column(String(1000), nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", backref="providers")
    # Offers go with their listing
    offers = relationship("Offer", back_populates="provider", cascade="all, delete-orphan")

    @property
    def image_list(self) -> ImageList:
        return ImageList.decode(self.images_json, record_id=self.id)

    @property
    def images(self) -> list[str]:
        return self.image_list.paths

    @property
    def opening_hours(self) -> dict:
        return OpeningHours.decode(self.opening_hours_json, record_id=self.id).days
