"""
Food listings API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from foodloop.database import get_db
from foodloop.models.listing import Listing, ListingStatus
from foodloop.models.user import User
from foodloop.api.auth import get_current_user
from foodloop.services import listings as listing_service
from foodloop.utils.helpers import minutes_until

router = APIRouter()


# --- Pydantic Schemas ---

class ListingResponse(BaseModel):
    id: int
    donor_id: int
    food_type: str
    quantity: str
    description: Optional[str]
    food_category: Optional[str]
    image_url: Optional[str]
    latitude: float
    longitude: float
    address: str
    contact: str
    expiry_time: datetime
    status: ListingStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    time_remaining_minutes: int = 0
    donor_name: Optional[str] = None
    donor_organization: Optional[str] = None
    donor_phone: Optional[str] = None
    donor_email: Optional[str] = None


class ListingCreate(BaseModel):
    food_type: str = Field(min_length=1, max_length=255)
    quantity: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: str = Field(min_length=1)
    contact: str = Field(min_length=1, max_length=20)
    expiry_hours: Optional[float] = Field(default=None, gt=0)
    food_category: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = None


class ListingUpdate(BaseModel):
    status: Optional[ListingStatus] = None
    food_type: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class ListingEnvelope(BaseModel):
    listing: ListingResponse


class ListingsEnvelope(BaseModel):
    listings: List[ListingResponse]


# --- Helper ---

def _build_listing_response(l: Listing, include_email: bool = False) -> ListingResponse:
    donor = l.donor
    return ListingResponse(
        id=l.id,
        donor_id=l.donor_id,
        food_type=l.food_type,
        quantity=l.quantity,
        description=l.description,
        food_category=l.food_category,
        image_url=l.image_url,
        latitude=l.latitude,
        longitude=l.longitude,
        address=l.address,
        contact=l.contact,
        expiry_time=l.expiry_time,
        status=l.status,
        created_at=l.created_at,
        updated_at=l.updated_at,
        time_remaining_minutes=minutes_until(l.expiry_time),
        donor_name=donor.name if donor else None,
        donor_organization=donor.organization if donor else None,
        donor_phone=donor.phone if donor else None,
        donor_email=donor.email if donor and include_email else None,
    )


# --- Endpoints ---

@router.get("/", response_model=ListingsEnvelope)
async def list_listings(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0),
    status: ListingStatus = ListingStatus.AVAILABLE,
    donor_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Unexpired listings, newest first; latitude+longitude+radius (km) narrows to nearby ones"""
    listings = await listing_service.list_listings(
        db,
        latitude=latitude,
        longitude=longitude,
        radius_km=radius,
        status=status,
        donor_id=donor_id,
    )
    return ListingsEnvelope(listings=[_build_listing_response(l) for l in listings])


@router.get("/{listing_id}", response_model=ListingEnvelope)
async def get_listing(listing_id: int, db: AsyncSession = Depends(get_db)):
    listing = await listing_service.get_listing(db, listing_id)
    return ListingEnvelope(listing=_build_listing_response(listing, include_email=True))


@router.post("/", response_model=ListingEnvelope, status_code=201)
async def create_listing(
    data: ListingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    listing = await listing_service.create_listing(db, current_user, data.model_dump())
    return ListingEnvelope(listing=_build_listing_response(listing))


@router.put("/{listing_id}", response_model=ListingEnvelope)
async def update_listing(
    listing_id: int,
    data: ListingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Partial update by the listing's donor"""
    listing = await listing_service.update_listing(
        db, listing_id, current_user, data.model_dump(exclude_none=True)
    )
    return ListingEnvelope(listing=_build_listing_response(listing))


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await listing_service.delete_listing(db, listing_id, current_user)
    return {"message": "Listing deleted successfully"}
