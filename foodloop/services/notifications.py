"""
Notification fan-out and inbox
"""
import logging
from typing import List

from sqlalchemy import select, insert
from sqlalchemy.ext.asyncio import AsyncSession

from foodloop.config import get_settings
from foodloop.errors import NotFound
from foodloop.models.listing import Listing
from foodloop.models.notification import Notification, NotificationType
from foodloop.models.user import User, UserRole
from foodloop.utils.geo import bounding_box, bbox_clause, within_radius

logger = logging.getLogger(__name__)
settings = get_settings()


async def find_nearby_recipients(db: AsyncSession, latitude: float, longitude: float,
                                 radius_km: float) -> List[int]:
    """Ids of receivers and volunteers within radius_km of a point"""
    box = bounding_box(latitude, longitude, radius_km)
    result = await db.execute(
        select(User.id, User.latitude, User.longitude).where(
            User.role.in_([UserRole.RECEIVER, UserRole.VOLUNTEER]),
            User.latitude.isnot(None),
            User.longitude.isnot(None),
            *bbox_clause(User.latitude, User.longitude, box),
        )
    )
    return [
        row.id for row in result
        if within_radius(latitude, longitude, row.latitude, row.longitude, radius_km)
    ]


async def notify_nearby(db: AsyncSession, listing: Listing) -> int:
    """Tell nearby receivers and volunteers about a new listing.

    Best effort: called after the listing is committed, and a failure here is
    logged and rolled back without reaching the caller. Returns the number of
    notifications written.
    """
    try:
        recipients = await find_nearby_recipients(
            db, listing.latitude, listing.longitude, settings.NOTIFY_RADIUS_KM
        )
        if not recipients:
            return 0

        message = f"{listing.food_type} - {listing.quantity} available near you"
        await db.execute(
            insert(Notification),
            [
                {
                    "user_id": user_id,
                    "title": "New Food Available!",
                    "message": message,
                    "type": NotificationType.NEW_LISTING,
                    "related_listing_id": listing.id,
                }
                for user_id in recipients
            ],
        )
        await db.commit()
        logger.info(f"Listing {listing.id}: notified {len(recipients)} nearby users")
        return len(recipients)
    except Exception:
        logger.warning(f"Listing {listing.id}: nearby notification fan-out failed", exc_info=True)
        await db.rollback()
        return 0


async def list_for_user(db: AsyncSession, user_id: int, unread_only: bool = False) -> List[Notification]:
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    if unread_only:
        query = query.where(Notification.read == False)  # noqa: E712
    result = await db.execute(query)
    return list(result.scalars().all())


async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFound("Notification not found")

    notification.read = True
    await db.commit()
    await db.refresh(notification)
    return notification
