"""
Claim model - a receiver/volunteer's commitment to pick up a listing
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum
from foodloop.database import Base
from foodloop.utils.helpers import utcnow


class ClaimStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Claim(Base):
    __tablename__ = "claims"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_claims_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(Integer, ForeignKey("food_listings.id", ondelete="CASCADE"), nullable=False, index=True)
    claimer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(
        SQLEnum(ClaimStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ClaimStatus.IN_PROGRESS,
        index=True,
    )
    notes = Column(Text, nullable=True)

    # Completion details
    proof_url = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)  # 1-5
    feedback = Column(Text, nullable=True)

    claimed_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    listing = relationship("Listing", back_populates="claims")
    claimer = relationship("User")
