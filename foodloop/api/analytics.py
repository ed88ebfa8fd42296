"""
Analytics API - impact totals and daily rollups
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from datetime import date as dt_date
from pydantic import BaseModel

from foodloop.database import get_db
from foodloop.services import analytics as analytics_service

router = APIRouter()


class TotalsResponse(BaseModel):
    total_meals_saved: int
    total_completed: int
    active_partners: int
    total_claims: int
    co2_reduced: float


class DailyAnalyticsResponse(BaseModel):
    date: dt_date
    total_listings: int
    total_claims: int
    total_completed: int
    meals_saved: int
    co2_reduced: float

    class Config:
        from_attributes = True


class DailyEnvelope(BaseModel):
    daily_analytics: List[DailyAnalyticsResponse]


@router.get("/", response_model=TotalsResponse)
async def get_analytics(db: AsyncSession = Depends(get_db)):
    return TotalsResponse(**await analytics_service.get_totals(db))


@router.get("/daily", response_model=DailyEnvelope)
async def get_daily_analytics(db: AsyncSession = Depends(get_db)):
    """Most recent 30 daily rollups, newest first"""
    rows = await analytics_service.get_daily(db)
    return DailyEnvelope(daily_analytics=[
        DailyAnalyticsResponse(
            date=r.date,
            total_listings=r.total_listings,
            total_claims=r.total_claims,
            total_completed=r.total_completed,
            meals_saved=r.meals_saved,
            co2_reduced=round(r.co2_reduced or 0.0, 2),
        )
        for r in rows
    ])
