import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship, synonym
from sqlalchemy.sql import func

from provider_directory.core.database import Base


class Offer(Base):
    """A time-bound discount attached to exactly one listing."""
    __tablename__ = "offers"

    id = Column(String(255), primary_key=True, default=lambda: f"offer-{uuid.uuid4().hex}")
    provider_id = Column(String(255), ForeignKey("providers.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    listing_id = synonym("provider_id")
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Independent amounts; the discount percentage is computed by the client
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    original_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    discounted_price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    category = Column(String(50), nullable=False, index=True)
    subcategory = Column(String(255), nullable=False, index=True)
    image = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    provider = relationship("Provider", back_populates="offers")
