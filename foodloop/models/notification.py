"""
In-app notification model
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from foodloop.database import Base
from foodloop.utils.helpers import utcnow


class NotificationType:
    NEW_LISTING = "new_listing"
    CLAIM = "claim"
    CLAIM_CANCELLED = "claim_cancelled"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    read = Column(Boolean, default=False, index=True)
    related_listing_id = Column(Integer, ForeignKey("food_listings.id", ondelete="CASCADE"), nullable=True)

    created_at = Column(DateTime, default=utcnow)
