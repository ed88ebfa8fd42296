"""
Listing store - queries and owner-only mutations of food listings
"""
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodloop.config import get_settings
from foodloop.errors import Conflict, Forbidden, NotFound, RetriableConflict
from foodloop.models.listing import Listing, ListingStatus
from foodloop.models.user import User
from foodloop.services.analytics import increment_daily
from foodloop.services.notifications import notify_nearby
from foodloop.utils.geo import bounding_box, bbox_clause, within_radius
from foodloop.utils.helpers import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

# Fields a donor may change after posting
UPDATABLE_FIELDS = ("status", "food_type", "quantity", "description")

# Status moves a donor may make directly; claims drive every other move
DONOR_TRANSITIONS = {
    ListingStatus.AVAILABLE: {ListingStatus.CANCELLED, ListingStatus.EXPIRED},
}


async def list_listings(
    db: AsyncSession,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius_km: Optional[float] = None,
    status: ListingStatus = ListingStatus.AVAILABLE,
    donor_id: Optional[int] = None,
) -> List[Listing]:
    """Unexpired listings in a given status, newest first.

    With both latitude and longitude set, only listings within radius_km
    (inclusive) of that point are returned.
    """
    query = (
        select(Listing)
        .where(Listing.status == status, Listing.expiry_time > utcnow())
        .order_by(Listing.created_at.desc(), Listing.id.desc())
    )
    if donor_id is not None:
        query = query.where(Listing.donor_id == donor_id)

    near = latitude is not None and longitude is not None
    if near:
        if radius_km is None:
            radius_km = settings.DEFAULT_SEARCH_RADIUS_KM
        box = bounding_box(latitude, longitude, radius_km)
        query = query.where(*bbox_clause(Listing.latitude, Listing.longitude, box))

    result = await db.execute(query.execution_options(populate_existing=True))
    listings = result.unique().scalars().all()
    if near:
        listings = [
            l for l in listings
            if within_radius(latitude, longitude, l.latitude, l.longitude, radius_km)
        ]
    return list(listings)


async def get_listing(db: AsyncSession, listing_id: int) -> Listing:
    # Claim transitions update rows behind the identity map
    result = await db.execute(
        select(Listing).where(Listing.id == listing_id).execution_options(populate_existing=True)
    )
    listing = result.unique().scalar_one_or_none()
    if not listing:
        raise NotFound("Listing not found")
    return listing


async def create_listing(db: AsyncSession, donor: User, data: dict) -> Listing:
    """Post a new listing, then fan out nearby notifications"""
    data = dict(data)
    expiry_hours = data.pop("expiry_hours", None) or settings.DEFAULT_EXPIRY_HOURS

    listing = Listing(
        donor_id=donor.id,
        **data,
        expiry_time=utcnow() + timedelta(hours=expiry_hours),
        status=ListingStatus.AVAILABLE,
    )
    db.add(listing)
    await db.flush()
    await increment_daily(db, total_listings=1)
    await db.commit()
    logger.info(f"Donor {donor.id} posted listing {listing.id} ({listing.food_type})")

    listing_id = listing.id
    await notify_nearby(db, listing)
    return await get_listing(db, listing_id)


async def update_listing(db: AsyncSession, listing_id: int, user: User, changes: dict) -> Listing:
    """Owner-only partial update.

    A donor may only withdraw (or expire) a listing that is still available.
    Any other status change raises Conflict: claimed listings reopen through
    claim cancellation, and completed, expired or cancelled listings are final.
    """
    listing = await get_listing(db, listing_id)
    if listing.donor_id != user.id:
        raise Forbidden()

    values = {
        key: value for key, value in changes.items()
        if key in UPDATABLE_FIELDS and value is not None
    }
    current = listing.status
    if "status" in values:
        target = ListingStatus(values.pop("status"))
        if target != current:
            if target not in DONOR_TRANSITIONS.get(current, set()):
                raise Conflict(f"Cannot change a {current.value} listing to {target.value}")
            values["status"] = target

    if not values:
        return listing

    result = await db.execute(
        update(Listing)
        .where(Listing.id == listing_id, Listing.status == current)
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Claimed or expired since we read it
        await db.rollback()
        raise RetriableConflict()

    await db.commit()
    return await get_listing(db, listing_id)


async def delete_listing(db: AsyncSession, listing_id: int, user: User) -> None:
    """Delete a listing the caller owns, cascading to its claims and notifications"""
    result = await db.execute(
        select(Listing).where(Listing.id == listing_id, Listing.donor_id == user.id)
    )
    listing = result.unique().scalar_one_or_none()
    if not listing:
        raise NotFound("Listing not found or unauthorized")

    await db.delete(listing)
    await db.commit()
    logger.info(f"Donor {user.id} deleted listing {listing_id}")


async def expire_overdue(db: AsyncSession) -> int:
    """Mark available listings past their expiry as expired; returns how many"""
    result = await db.execute(
        update(Listing)
        .where(Listing.status == ListingStatus.AVAILABLE, Listing.expiry_time <= utcnow())
        .values(status=ListingStatus.EXPIRED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    if result.rowcount:
        logger.info(f"Expired {result.rowcount} overdue listings")
    return result.rowcount
