"""
Authentication API - identity-provider token exchange and user sync
"""
from fastapi import APIRouter, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from foodloop.database import get_db
from foodloop.errors import AuthenticationRequired, NotRegistered
from foodloop.models.user import User, UserRole
from foodloop.services.identity import IdentityVerifier, get_identity_verifier
from foodloop.services.users import UserProfile, get_user_by_email, sync_user

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


# --- Pydantic Schemas ---

class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: UserRole
    organization: Optional[str]
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    verified: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SyncRequest(UserProfile):
    # Older clients send the token in the body instead of the Authorization header
    token: Optional[str] = None


class SyncResponse(BaseModel):
    user: UserResponse


# --- Dependencies ---

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a registered FoodLoop user"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired()

    email = await verifier.verify(credentials.credentials)
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotRegistered()
    return user


# --- Endpoints ---

@router.post("/sync", response_model=SyncResponse)
async def sync(
    data: SyncRequest,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    db: AsyncSession = Depends(get_db),
):
    """Verify identity, then return the stored user or register a new one"""
    token = credentials.credentials if credentials else data.token
    if not token:
        raise AuthenticationRequired()

    email = await verifier.verify(token)
    profile = UserProfile(**data.model_dump(exclude={"token"}))
    user = await sync_user(db, email, profile)
    return SyncResponse(user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
