"""
Claim engine tests - atomicity, races and analytics rollups at the service layer.
"""
import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from foodloop.database import Base
from foodloop.errors import Conflict, ListingUnavailable, NotFound
from foodloop.models import (
    Claim, ClaimStatus, DailyAnalytics, Listing, ListingStatus, Notification, User, UserRole,
)
from foodloop.services import claim_engine
from foodloop.services import listings as listing_service
from conftest import make_listing


async def count(db, model, *where):
    result = await db.execute(select(func.count()).select_from(model).where(*where))
    return result.scalar()


async def daily_row(db):
    result = await db.execute(select(DailyAnalytics).execution_options(populate_existing=True))
    return result.scalar_one()


async def reload(db, model, pk):
    result = await db.execute(
        select(model).where(model.id == pk).execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


# ===================== CREATE =====================


class TestCreateClaim:

    async def test_creates_claim_and_notifies_donor(self, db_session, listing, seed_data):
        claim = await claim_engine.create_claim(db_session, listing.id, seed_data["receiver"].id, "ring the bell")

        assert claim.status == ClaimStatus.IN_PROGRESS
        assert claim.claimed_at is not None
        assert (await reload(db_session, Listing, listing.id)).status == ListingStatus.CLAIMED
        assert await count(db_session, Notification, Notification.user_id == seed_data["donor"].id,
                           Notification.type == "claim") == 1

    @pytest.mark.parametrize("status", [
        ListingStatus.CLAIMED, ListingStatus.COMPLETED, ListingStatus.EXPIRED, ListingStatus.CANCELLED,
    ])
    async def test_rejects_non_available_listing(self, db_session, seed_data, status):
        l = make_listing(seed_data["donor"], status=status)
        db_session.add(l)
        await db_session.commit()
        listing_id = l.id

        with pytest.raises(ListingUnavailable):
            await claim_engine.create_claim(db_session, listing_id, seed_data["receiver"].id)

        assert await count(db_session, Claim) == 0
        assert await count(db_session, Notification) == 0
        assert (await reload(db_session, Listing, listing_id)).status == status

    async def test_rolls_back_when_notification_fails(self, db_session, listing, seed_data, monkeypatch):
        def broken_notification(*args, **kwargs):
            raise RuntimeError("notifications table on fire")

        monkeypatch.setattr(claim_engine, "_donor_notification", broken_notification)
        listing_id = listing.id

        with pytest.raises(RuntimeError):
            await claim_engine.create_claim(db_session, listing_id, seed_data["receiver"].id)

        assert (await reload(db_session, Listing, listing_id)).status == ListingStatus.AVAILABLE
        assert await count(db_session, Claim) == 0
        assert await count(db_session, DailyAnalytics) == 0

    async def test_counts_claims_in_daily_rollup(self, db_session, listing, seed_data):
        await claim_engine.create_claim(db_session, listing.id, seed_data["receiver"].id)

        daily = await daily_row(db_session)
        assert daily.total_claims == 1
        assert daily.total_completed == 0


# ===================== COMPLETE =====================


class TestCompleteClaim:

    async def test_completion_rollup(self, db_session, seed_data):
        donor = seed_data["donor"]
        first, second = make_listing(donor), make_listing(donor)
        db_session.add_all([first, second])
        await db_session.commit()

        receiver_id = seed_data["receiver"].id
        c1 = await claim_engine.create_claim(db_session, first.id, receiver_id)
        await claim_engine.complete_claim(db_session, c1.id, receiver_id)

        daily = await daily_row(db_session)
        assert (daily.total_completed, daily.meals_saved) == (1, 1)
        assert daily.co2_reduced == pytest.approx(0.42)

        c2 = await claim_engine.create_claim(db_session, second.id, receiver_id)
        await claim_engine.complete_claim(db_session, c2.id, receiver_id, rating=4)

        daily = await daily_row(db_session)
        assert (daily.total_completed, daily.meals_saved) == (2, 2)
        assert daily.co2_reduced == pytest.approx(0.84)

    async def test_completed_listing_reads_back_completed(self, db_session, listing, seed_data):
        receiver_id, listing_id = seed_data["receiver"].id, listing.id
        claim = await claim_engine.create_claim(db_session, listing_id, receiver_id)
        await claim_engine.complete_claim(db_session, claim.id, receiver_id)

        assert (await listing_service.get_listing(db_session, listing_id)).status == ListingStatus.COMPLETED
        completed = await listing_service.list_listings(db_session, status=ListingStatus.COMPLETED)
        assert [l.status for l in completed] == [ListingStatus.COMPLETED]
        claims = await claim_engine.list_claims_for_user(db_session, receiver_id)
        assert claims[0].listing.status == ListingStatus.COMPLETED

    async def test_completion_without_prior_rollup_row(self, db_session, listing, seed_data):
        receiver_id = seed_data["receiver"].id
        claim = await claim_engine.create_claim(db_session, listing.id, receiver_id)
        await db_session.execute(DailyAnalytics.__table__.delete())
        await db_session.commit()

        await claim_engine.complete_claim(db_session, claim.id, receiver_id)

        daily = await daily_row(db_session)
        assert daily.total_completed == 1
        assert daily.meals_saved == 1
        assert daily.co2_reduced == pytest.approx(0.42)
        assert daily.total_claims == 0

    async def test_only_claimer_can_complete(self, db_session, listing, seed_data):
        listing_id = listing.id
        claim = await claim_engine.create_claim(db_session, listing_id, seed_data["receiver"].id)
        claim_id = claim.id

        with pytest.raises(NotFound):
            await claim_engine.complete_claim(db_session, claim_id, seed_data["volunteer"].id, rating=1)

        assert (await reload(db_session, Claim, claim_id)).status == ClaimStatus.IN_PROGRESS
        assert (await reload(db_session, Listing, listing_id)).status == ListingStatus.CLAIMED

    async def test_second_completion_is_rejected(self, db_session, listing, seed_data):
        receiver_id = seed_data["receiver"].id
        claim = await claim_engine.create_claim(db_session, listing.id, receiver_id)
        await claim_engine.complete_claim(db_session, claim.id, receiver_id)

        with pytest.raises(NotFound):
            await claim_engine.complete_claim(db_session, claim.id, receiver_id)

        daily = await daily_row(db_session)
        assert daily.meals_saved == 1

    async def test_cancelled_claim_cannot_complete(self, db_session, listing, seed_data):
        receiver_id, listing_id = seed_data["receiver"].id, listing.id
        claim = await claim_engine.create_claim(db_session, listing_id, receiver_id)
        await claim_engine.cancel_claim(db_session, claim.id, receiver_id)

        with pytest.raises(NotFound):
            await claim_engine.complete_claim(db_session, claim.id, receiver_id)
        assert (await reload(db_session, Listing, listing_id)).status == ListingStatus.AVAILABLE


# ===================== RACES =====================


@pytest_asyncio.fixture()
async def file_engine(tmp_path):
    """File-backed SQLite so two sessions hold separate connections"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


async def test_concurrent_claims_have_one_winner(file_engine):
    factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as setup:
        donor = User(name="Donor", email="d@example.com", phone="+911111111111", role=UserRole.DONOR,
                     latitude=12.97, longitude=77.59, address="MG Road")
        alice = User(name="Alice", email="a@example.com", phone="+912222222222", role=UserRole.RECEIVER,
                     latitude=12.97, longitude=77.59, address="MG Road")
        bob = User(name="Bob", email="b@example.com", phone="+913333333333", role=UserRole.VOLUNTEER,
                   latitude=12.97, longitude=77.59, address="MG Road")
        setup.add_all([donor, alice, bob])
        await setup.flush()
        l = make_listing(donor)
        setup.add(l)
        await setup.commit()
        listing_id, claimer_ids = l.id, (alice.id, bob.id)

    async def attempt(claimer_id):
        async with factory() as session:
            return await claim_engine.create_claim(session, listing_id, claimer_id)

    results = await asyncio.gather(*(attempt(cid) for cid in claimer_ids), return_exceptions=True)

    winners = [r for r in results if isinstance(r, Claim)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], Conflict)

    async with factory() as check:
        assert await count(check, Claim, Claim.listing_id == listing_id) == 1
        assert (await reload(check, Listing, listing_id)).status == ListingStatus.CLAIMED
        assert await count(check, Notification, Notification.type == "claim") == 1


# ===================== CANCEL =====================


async def test_cancel_returns_listing_to_available(db_session, listing, seed_data):
    receiver_id = seed_data["receiver"].id
    claim = await claim_engine.create_claim(db_session, listing.id, receiver_id)

    cancelled = await claim_engine.cancel_claim(db_session, claim.id, receiver_id)

    assert cancelled.status == ClaimStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert (await reload(db_session, Listing, listing.id)).status == ListingStatus.AVAILABLE
    with pytest.raises(NotFound):
        await claim_engine.cancel_claim(db_session, claim.id, receiver_id)


async def test_list_claims_for_user(db_session, listing, seed_data):
    receiver_id = seed_data["receiver"].id
    await claim_engine.create_claim(db_session, listing.id, receiver_id)

    claims = await claim_engine.list_claims_for_user(db_session, receiver_id)
    assert len(claims) == 1
    assert claims[0].listing.food_type == "Vegetable Biryani"
    assert claims[0].listing.donor.name == "Taj Restaurant"
    assert await claim_engine.list_claims_for_user(db_session, seed_data["volunteer"].id) == []
