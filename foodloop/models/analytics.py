"""
Daily impact rollup - one row per date, incremented as events happen
"""
from sqlalchemy import Column, Integer, Float, Date, DateTime
from foodloop.database import Base
from foodloop.utils.helpers import utcnow


class DailyAnalytics(Base):
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False, index=True)
    total_listings = Column(Integer, nullable=False, default=0)
    total_claims = Column(Integer, nullable=False, default=0)
    total_completed = Column(Integer, nullable=False, default=0)
    meals_saved = Column(Integer, nullable=False, default=0)
    co2_reduced = Column(Float, nullable=False, default=0.0)  # kg

    created_at = Column(DateTime, default=utcnow)
