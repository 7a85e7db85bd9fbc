from fastapi import APIRouter, Depends, Query
from typing import Dict, List, Optional
from uuid import UUID
from planner.schemas import NotificationOut
from planner.db.session import get_session
from planner.db.models import NotificationType, User
from planner.services.notification_service import NotificationService
from planner.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(session: AsyncSession = Depends(get_session)) -> NotificationService:
    return NotificationService(session)


@router.get("", response_model=List[NotificationOut])
async def list_notifications(
    read: Optional[bool] = Query(None, description="Only read (true) or unread (false) notifications"),
    type: Optional[List[NotificationType]] = Query(None, description="Filter by source type, repeatable"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """The caller's notifications, newest first."""
    return await notification_service.list_for_user(user.id, read=read, types=type, limit=limit, offset=offset)


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_notification_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return await notification_service.mark_read(user.id, notification_id)


@router.post("/read-all", response_model=Dict[str, int])
async def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return {"updated": await notification_service.mark_all_read(user.id)}
