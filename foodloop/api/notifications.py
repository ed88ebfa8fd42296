"""
Notification inbox API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from foodloop.database import get_db
from foodloop.models.user import User
from foodloop.api.auth import get_current_user
from foodloop.services import notifications as notification_service

router = APIRouter()


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    read: bool
    related_listing_id: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class NotificationsEnvelope(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int


@router.get("/", response_model=NotificationsEnvelope)
async def list_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notifications = await notification_service.list_for_user(db, current_user.id, unread_only)
    return NotificationsEnvelope(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=sum(1 for n in notifications if not n.read),
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = await notification_service.mark_read(db, notification_id, current_user.id)
    return NotificationResponse.model_validate(notification)
