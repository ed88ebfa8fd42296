"""
User model - donors, receivers and volunteers
"""
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, Enum as SQLEnum
from enum import Enum
from foodloop.database import Base
from foodloop.utils.helpers import utcnow

# Password hash marker for accounts whose credentials live in the identity provider
IDENTITY_MANAGED_PASSWORD = "firebase_managed"


class UserRole(str, Enum):
    DONOR = "donor"
    RECEIVER = "receiver"
    VOLUNTEER = "volunteer"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False, default=IDENTITY_MANAGED_PASSWORD)
    role = Column(
        SQLEnum(UserRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    organization = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(Text, nullable=True)
    verified = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
