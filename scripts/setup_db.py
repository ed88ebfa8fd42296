"""
Database setup script - create tables and seed demo data
"""
import asyncio
from datetime import timedelta

from foodloop.database import engine, Base, AsyncSessionLocal
from foodloop.models import User, UserRole, Listing, ListingStatus
from foodloop.utils.helpers import utcnow

DEMO_USERS = [
    ("Taj Restaurant", "taj@restaurant.com", "+919876543210", UserRole.DONOR, "Taj Restaurant",
     12.9716, 77.5946, "MG Road, Bangalore"),
    ("Feeding India NGO", "contact@feedingindia.org", "+919876543211", UserRole.RECEIVER, "Feeding India",
     12.9352, 77.6245, "Indiranagar, Bangalore"),
    ("John Volunteer", "john@volunteer.com", "+919876543212", UserRole.VOLUNTEER, None,
     12.9698, 77.5987, "Koramangala, Bangalore"),
    ("Mehta Residence", "mehta@home.com", "+919876543213", UserRole.DONOR, None,
     12.9352, 77.6245, "Indiranagar, Bangalore"),
]

DEMO_LISTINGS = [
    # (donor email, food_type, quantity, description, hours to expiry)
    ("taj@restaurant.com", "Mixed Vegetarian Meals", "50 servings",
     "Surplus from lunch buffet - biryani, dal, vegetables", 2),
    ("taj@restaurant.com", "Paneer Dishes", "30 servings",
     "Fresh paneer butter masala and paneer tikka", 3),
    ("mehta@home.com", "Home-cooked Food", "10 servings",
     "Party leftovers - paneer dishes, rotis, rice", 4),
]


async def setup_database():
    """Create tables and seed initial data"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        users = {}
        for name, email, phone, role, org, lat, lng, address in DEMO_USERS:
            user = User(
                name=name, email=email, phone=phone, role=role, organization=org,
                latitude=lat, longitude=lng, address=address, verified=True,
            )
            session.add(user)
            users[email] = user
        await session.flush()

        now = utcnow()
        for email, food_type, quantity, description, hours in DEMO_LISTINGS:
            donor = users[email]
            session.add(Listing(
                donor_id=donor.id,
                food_type=food_type,
                quantity=quantity,
                description=description,
                latitude=donor.latitude,
                longitude=donor.longitude,
                address=donor.address,
                contact=donor.phone,
                expiry_time=now + timedelta(hours=hours),
                status=ListingStatus.AVAILABLE,
                food_category="vegetarian",
            ))

        await session.commit()
        print("Seed data created")

    await engine.dispose()

    print("\nDatabase setup complete!")
    print("\nDemo accounts (sign in through the identity provider with these emails):")
    for name, email, _, role, *_ in DEMO_USERS:
        print(f"  {email:<28} {role.value}")


if __name__ == "__main__":
    asyncio.run(setup_database())
