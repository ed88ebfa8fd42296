"""
Claims API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from foodloop.database import get_db
from foodloop.models.claim import Claim, ClaimStatus
from foodloop.models.user import User
from foodloop.api.auth import get_current_user
from foodloop.services import claim_engine

router = APIRouter()


# --- Pydantic Schemas ---

class ClaimResponse(BaseModel):
    id: int
    listing_id: int
    claimer_id: int
    status: ClaimStatus
    notes: Optional[str]
    proof_url: Optional[str]
    rating: Optional[int]
    feedback: Optional[str]
    claimed_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True


class MyClaimResponse(ClaimResponse):
    food_type: Optional[str] = None
    quantity: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    donor_name: Optional[str] = None
    donor_phone: Optional[str] = None


class ClaimCreate(BaseModel):
    listing_id: int
    notes: Optional[str] = None


class ClaimComplete(BaseModel):
    proof_url: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    feedback: Optional[str] = None


class ClaimEnvelope(BaseModel):
    claim: ClaimResponse


class MyClaimsEnvelope(BaseModel):
    claims: List[MyClaimResponse]


# --- Helper ---

def _build_my_claim_response(c: Claim) -> MyClaimResponse:
    listing = c.listing
    donor = listing.donor if listing else None
    return MyClaimResponse(
        **ClaimResponse.model_validate(c).model_dump(),
        food_type=listing.food_type if listing else None,
        quantity=listing.quantity if listing else None,
        description=listing.description if listing else None,
        address=listing.address if listing else None,
        contact=listing.contact if listing else None,
        latitude=listing.latitude if listing else None,
        longitude=listing.longitude if listing else None,
        donor_name=donor.name if donor else None,
        donor_phone=donor.phone if donor else None,
    )


# --- Endpoints ---

@router.post("/", response_model=ClaimEnvelope, status_code=201)
async def create_claim(
    data: ClaimCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Claim an available listing"""
    claim = await claim_engine.create_claim(db, data.listing_id, current_user.id, data.notes)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.get("/my-claims", response_model=MyClaimsEnvelope)
async def my_claims(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    claims = await claim_engine.list_claims_for_user(db, current_user.id)
    return MyClaimsEnvelope(claims=[_build_my_claim_response(c) for c in claims])


@router.put("/{claim_id}/complete", response_model=ClaimEnvelope)
async def complete_claim(
    claim_id: int,
    data: Optional[ClaimComplete] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark your own in-progress claim as picked up"""
    data = data or ClaimComplete()
    claim = await claim_engine.complete_claim(
        db, claim_id, current_user.id,
        proof_url=data.proof_url,
        rating=data.rating,
        feedback=data.feedback,
    )
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))


@router.put("/{claim_id}/cancel", response_model=ClaimEnvelope)
async def cancel_claim(
    claim_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    claim = await claim_engine.cancel_claim(db, claim_id, current_user.id)
    return ClaimEnvelope(claim=ClaimResponse.model_validate(claim))
