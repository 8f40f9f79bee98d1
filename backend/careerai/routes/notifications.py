"""Notification routes."""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy import select, desc, or_
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.database import get_db
from careerai.dependencies import get_current_user_id
from careerai.exceptions import NotFoundError
from careerai.models.notification import Notification
from careerai.schemas.notification import NotificationResponse, LowSkillSweepRequest, LowSkillSweepResponse
from careerai.services.skill_notifier import run_low_skill_notification_sweep

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
admin_router = APIRouter(prefix="/api/admin/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_my_notifications(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Notifications targeted at the user plus broadcasts, newest first."""
    result = await db.execute(
        select(Notification)
        .where(or_(Notification.target_all.is_(True), Notification.user_id == user_id))
        .order_by(desc(Notification.id))
    )
    return result.scalars().all()


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Mark one of the user's own notifications as read. Broadcasts are not marked."""
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.target_all or notification.user_id != user_id:
        raise NotFoundError("Notification", notification_id)

    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


@admin_router.post("/low-skill-sweep", response_model=LowSkillSweepResponse)
async def low_skill_sweep(
    body: Optional[LowSkillSweepRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Run the low skill-score sweep now, outside the daily schedule."""
    return await run_low_skill_notification_sweep(db, body.threshold if body else None)
