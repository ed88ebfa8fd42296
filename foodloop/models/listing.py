"""
Food listing model - a donor's surplus food offer
"""
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum
from foodloop.database import Base
from foodloop.utils.helpers import utcnow


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    CLAIMED = "claimed"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Listing(Base):
    __tablename__ = "food_listings"

    id = Column(Integer, primary_key=True, index=True)
    donor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    food_type = Column(String(255), nullable=False)
    quantity = Column(String(100), nullable=False)  # free text, e.g. "50 servings"
    description = Column(Text, nullable=True)
    food_category = Column(String(50), nullable=True)
    image_url = Column(Text, nullable=True)

    # Pickup point
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(Text, nullable=False)
    contact = Column(String(20), nullable=False)

    expiry_time = Column(DateTime, nullable=False, index=True)
    status = Column(
        SQLEnum(ListingStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ListingStatus.AVAILABLE,
        index=True,
    )

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    donor = relationship("User", lazy="joined")
    claims = relationship("Claim", back_populates="listing", cascade="all, delete-orphan")
    notifications = relationship("Notification", cascade="all, delete-orphan")
