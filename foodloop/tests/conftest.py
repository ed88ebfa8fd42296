"""
Test fixtures - in-memory SQLite database, fake identity provider, HTTP client
"""
import pytest_asyncio
from datetime import timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from foodloop.database import Base, get_db
from foodloop.errors import AuthenticationInvalid
from foodloop.main import app
from foodloop.models import User, UserRole, Listing, ListingStatus
from foodloop.services.identity import IdentityVerifier, get_identity_verifier
from foodloop.utils.helpers import utcnow

# Bangalore, MG Road
DONOR_LOCATION = (12.9716, 77.5946)


class FakeIdentityVerifier(IdentityVerifier):
    """Maps opaque tokens straight to emails"""

    def __init__(self, tokens=None):
        self.tokens = dict(tokens or {})

    async def verify(self, token: str) -> str:
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthenticationInvalid()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_listing(donor: User, **overrides) -> Listing:
    values = dict(
        donor_id=donor.id,
        food_type="Vegetable Biryani",
        quantity="20 servings",
        description="Lunch buffet surplus",
        latitude=donor.latitude,
        longitude=donor.longitude,
        address=donor.address,
        contact=donor.phone,
        expiry_time=utcnow() + timedelta(hours=2),
        status=ListingStatus.AVAILABLE,
    )
    values.update(overrides)
    return Listing(**values)


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline users: a donor, nearby receiver and volunteer, a far receiver, a second donor"""
    donor = User(
        name="Taj Restaurant", email="taj@restaurant.com", phone="+919876543210",
        role=UserRole.DONOR, organization="Taj Restaurant",
        latitude=DONOR_LOCATION[0], longitude=DONOR_LOCATION[1], address="MG Road, Bangalore",
    )
    receiver = User(
        name="Feeding India NGO", email="contact@feedingindia.org", phone="+919876543211",
        role=UserRole.RECEIVER, organization="Feeding India",
        latitude=12.9352, longitude=77.6245, address="Indiranagar, Bangalore",
    )
    volunteer = User(
        name="John Volunteer", email="john@volunteer.com", phone="+919876543212",
        role=UserRole.VOLUNTEER,
        latitude=12.9698, longitude=77.5987, address="Koramangala, Bangalore",
    )
    far_receiver = User(
        name="Mysore Food Bank", email="help@mysorefood.org", phone="+919876543214",
        role=UserRole.RECEIVER,
        latitude=12.2958, longitude=76.6394, address="Mysore",
    )
    other_donor = User(
        name="Mehta Residence", email="mehta@home.com", phone="+919876543213",
        role=UserRole.DONOR,
        latitude=12.9352, longitude=77.6245, address="Indiranagar, Bangalore",
    )

    users = [donor, receiver, volunteer, far_receiver, other_donor]
    db_session.add_all(users)
    await db_session.commit()
    for u in users:
        await db_session.refresh(u)

    return {
        "donor": donor,
        "receiver": receiver,
        "volunteer": volunteer,
        "far_receiver": far_receiver,
        "other_donor": other_donor,
    }


@pytest_asyncio.fixture()
async def verifier(seed_data):
    return FakeIdentityVerifier({
        "donor-token": seed_data["donor"].email,
        "receiver-token": seed_data["receiver"].email,
        "volunteer-token": seed_data["volunteer"].email,
        "other-donor-token": seed_data["other_donor"].email,
        "newcomer-token": "newcomer@example.com",
    })


@pytest_asyncio.fixture()
async def client(db_session, verifier):
    """httpx AsyncClient bound to the FastAPI app; authenticate per request with auth(token)"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_verifier] = lambda: verifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def listing(db_session, seed_data):
    """An available listing posted by the donor"""
    l = make_listing(seed_data["donor"])
    db_session.add(l)
    await db_session.commit()
    await db_session.refresh(l)
    return l
