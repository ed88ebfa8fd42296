"""
Impact analytics - daily rollups and all-time totals
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from foodloop.config import get_settings
from foodloop.models.analytics import DailyAnalytics
from foodloop.models.claim import Claim
from foodloop.models.listing import Listing, ListingStatus
from foodloop.utils.db_compat import upsert
from foodloop.utils.helpers import utc_today

settings = get_settings()

COUNTERS = ("total_listings", "total_claims", "total_completed", "meals_saved", "co2_reduced")


async def increment_daily(db: AsyncSession, day: Optional[date] = None, **deltas) -> None:
    """Add deltas to the rollup row for day (today by default), creating it if missing.

    Runs inside the caller's transaction; the caller commits.
    """
    unknown = set(deltas) - set(COUNTERS)
    if unknown:
        raise ValueError(f"Unknown analytics counters: {sorted(unknown)}")

    values = {"date": day or utc_today(), **deltas}
    stmt = upsert(db, DailyAnalytics.__table__, values, "date", deltas)
    await db.execute(stmt)


async def record_completion(db: AsyncSession) -> None:
    await increment_daily(
        db,
        total_completed=1,
        meals_saved=1,
        co2_reduced=settings.CO2_PER_MEAL_KG,
    )


async def get_totals(db: AsyncSession) -> dict:
    """All-time impact numbers for the dashboard"""
    completed_result = await db.execute(
        select(func.count(Listing.id)).where(Listing.status == ListingStatus.COMPLETED)
    )
    completed = completed_result.scalar() or 0

    partners_result = await db.execute(select(func.count(distinct(Listing.donor_id))))
    claims_result = await db.execute(select(func.count(Claim.id)))
    co2_result = await db.execute(select(func.coalesce(func.sum(DailyAnalytics.co2_reduced), 0.0)))

    return {
        "total_meals_saved": completed,
        "total_completed": completed,
        "active_partners": partners_result.scalar() or 0,
        "total_claims": claims_result.scalar() or 0,
        "co2_reduced": round(float(co2_result.scalar() or 0), 2),
    }


async def get_daily(db: AsyncSession, limit: Optional[int] = None) -> List[DailyAnalytics]:
    result = await db.execute(
        select(DailyAnalytics)
        .order_by(DailyAnalytics.date.desc())
        .limit(limit or settings.DAILY_ANALYTICS_LIMIT)
    )
    return list(result.scalars().all())
