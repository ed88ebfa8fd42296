"""
User directory - maps verified identity-provider emails to FoodLoop users
"""
import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foodloop.config import get_settings
from foodloop.errors import ValidationFailed
from foodloop.models.user import User, UserRole, IDENTITY_MANAGED_PASSWORD
from foodloop.utils.validators import validate_registration

logger = logging.getLogger(__name__)
settings = get_settings()

DUPLICATE_MESSAGES = {
    "phone": "This phone number is already registered",
    "email": "This email is already registered",
}


class UserProfile(BaseModel):
    """Registration fields sent on first sync; ignored for existing users"""
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    organization: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def _duplicate_field(error: IntegrityError) -> Optional[str]:
    """Which unique column a failed insert collided on.

    SQLite names the column ("users.phone"); PostgreSQL names the index
    ("ix_users_phone") and the key ("Key (phone)=(...)"). The offending
    value appears in the message too.
    """
    message = str(error.orig).lower()
    for field in ("phone", "email"):
        markers = (f"failed: users.{field}", f'"ix_users_{field}"', f"key ({field})=")
        if any(marker in message for marker in markers):
            return field
    return None


async def sync_user(db: AsyncSession, email: str, profile: Optional[UserProfile] = None) -> User:
    """Return the user for a verified email, creating it from profile on first sight"""
    existing = await get_user_by_email(db, email)
    if existing:
        return existing

    profile = profile or UserProfile()
    errors = validate_registration(profile.name, profile.phone, profile.role)
    if errors:
        raise ValidationFailed(errors)

    phone = profile.phone.strip()
    result = await db.execute(select(User.id).where(User.phone == phone))
    if result.scalar_one_or_none() is not None:
        raise ValidationFailed({"phone": DUPLICATE_MESSAGES["phone"]})

    user = User(
        name=profile.name.strip(),
        email=email,
        phone=phone,
        password_hash=IDENTITY_MANAGED_PASSWORD,
        role=UserRole(profile.role),
        organization=profile.organization or None,
        address=profile.address or "",
        latitude=profile.latitude if profile.latitude is not None else settings.DEFAULT_LATITUDE,
        longitude=profile.longitude if profile.longitude is not None else settings.DEFAULT_LONGITUDE,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        field = _duplicate_field(e)
        if field is None:
            raise
        # Lost a race with a concurrent registration
        raise ValidationFailed({field: DUPLICATE_MESSAGES[field]})

    await db.refresh(user)
    logger.info(f"Registered {user.role.value} user {user.id} ({email})")
    return user
