"""
Claim engine - the transactional heart of the listing lifecycle.

Every operation here mutates several tables as one unit: all writes commit
together or the session is rolled back and nothing is left behind.

Mutual exclusion between claimers comes from conditional updates
(``UPDATE ... WHERE status = 'available'``) rather than a read followed by a
write. The update takes the listing's row lock, so the store must provide at
least READ COMMITTED with row locking (PostgreSQL's default) or a single
writer (SQLite). Zero affected rows means somebody else won.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from foodloop.config import get_settings
from foodloop.errors import FoodLoopError, ListingUnavailable, NotFound, RetriableConflict
from foodloop.models.claim import Claim, ClaimStatus
from foodloop.models.listing import Listing, ListingStatus
from foodloop.models.notification import Notification, NotificationType
from foodloop.services.analytics import increment_daily, record_completion
from foodloop.utils.db_compat import is_retriable_error, set_transaction_timeout
from foodloop.utils.helpers import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()


class _Transaction:
    """Commit on success; roll back and translate store races on failure"""

    def __init__(self, db: AsyncSession, operation: str):
        self.db = db
        self.operation = operation

    async def __aenter__(self):
        await set_transaction_timeout(self.db, settings.TRANSACTION_TIMEOUT_SECONDS)
        return self.db

    async def __aexit__(self, exc_type, exc, tb):
        if exc is None:
            await self.db.commit()
            return False

        await self.db.rollback()
        if isinstance(exc, FoodLoopError):
            return False
        if isinstance(exc, DBAPIError) and is_retriable_error(exc):
            logger.info(f"{self.operation}: lost a concurrent update ({exc.orig})")
            raise RetriableConflict() from exc
        logger.error(f"{self.operation} failed, rolled back: {exc}")
        return False


def _donor_notification(listing: Listing, title: str, message: str, type_: str) -> Notification:
    return Notification(
        user_id=listing.donor_id,
        title=title,
        message=message,
        type=type_,
        related_listing_id=listing.id,
    )


async def _load_listing(db: AsyncSession, listing_id: int) -> Listing:
    result = await db.execute(
        select(Listing).where(Listing.id == listing_id).execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


async def create_claim(db: AsyncSession, listing_id: int, claimer_id: int,
                       notes: Optional[str] = None) -> Claim:
    """Claim an available listing for claimer_id.

    Raises ListingUnavailable when the listing is missing or not available.
    """
    async with _Transaction(db, f"Claim of listing {listing_id}"):
        result = await db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.status == ListingStatus.AVAILABLE)
            .values(status=ListingStatus.CLAIMED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ListingUnavailable()

        listing = await _load_listing(db, listing_id)
        claim = Claim(
            listing_id=listing_id,
            claimer_id=claimer_id,
            notes=notes,
            status=ClaimStatus.IN_PROGRESS,
            claimed_at=utcnow(),
        )
        db.add(claim)
        db.add(_donor_notification(
            listing,
            "Food Claimed!",
            f"Your {listing.food_type} has been claimed",
            NotificationType.CLAIM,
        ))
        await increment_daily(db, total_claims=1)
        await db.flush()

    logger.info(f"User {claimer_id} claimed listing {listing_id} (claim {claim.id})")
    return claim


async def _claim_transition(db: AsyncSession, claim_id: int, claimer_id: int,
                            new_status: ClaimStatus, **values) -> Claim:
    """Move an in-progress claim owned by claimer_id to new_status, or raise NotFound"""
    result = await db.execute(
        update(Claim)
        .where(
            Claim.id == claim_id,
            Claim.claimer_id == claimer_id,
            Claim.status == ClaimStatus.IN_PROGRESS,
        )
        .values(status=new_status, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound("Claim not found")

    claim_result = await db.execute(
        select(Claim).where(Claim.id == claim_id).execution_options(populate_existing=True)
    )
    return claim_result.scalar_one()


async def complete_claim(db: AsyncSession, claim_id: int, claimer_id: int,
                         proof_url: Optional[str] = None, rating: Optional[int] = None,
                         feedback: Optional[str] = None) -> Claim:
    """Mark an in-progress claim completed and count the meal as saved.

    Only the claimer can complete, and only once: a second call finds no
    in-progress claim and raises NotFound without touching analytics.
    """
    async with _Transaction(db, f"Completion of claim {claim_id}"):
        claim = await _claim_transition(
            db, claim_id, claimer_id, ClaimStatus.COMPLETED,
            completed_at=utcnow(),
            proof_url=proof_url,
            rating=rating,
            feedback=feedback,
        )
        await db.execute(
            update(Listing)
            .where(Listing.id == claim.listing_id)
            .values(status=ListingStatus.COMPLETED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await record_completion(db)

    logger.info(f"User {claimer_id} completed claim {claim_id}")
    return claim


async def cancel_claim(db: AsyncSession, claim_id: int, claimer_id: int) -> Claim:
    """Withdraw an in-progress claim and put the listing back on offer"""
    async with _Transaction(db, f"Cancellation of claim {claim_id}"):
        claim = await _claim_transition(
            db, claim_id, claimer_id, ClaimStatus.CANCELLED,
            cancelled_at=utcnow(),
        )
        await db.execute(
            update(Listing)
            .where(Listing.id == claim.listing_id, Listing.status == ListingStatus.CLAIMED)
            .values(status=ListingStatus.AVAILABLE, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        listing = await _load_listing(db, claim.listing_id)
        db.add(_donor_notification(
            listing,
            "Claim Cancelled",
            f"The claim on your {listing.food_type} was cancelled; it is available again",
            NotificationType.CLAIM_CANCELLED,
        ))

    logger.info(f"User {claimer_id} cancelled claim {claim_id}")
    return claim


async def list_claims_for_user(db: AsyncSession, claimer_id: int) -> List[Claim]:
    """Claims made by a user with their listings (and donors) loaded, newest first"""
    result = await db.execute(
        select(Claim)
        .where(Claim.claimer_id == claimer_id)
        .options(selectinload(Claim.listing))
        .order_by(Claim.claimed_at.desc(), Claim.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
