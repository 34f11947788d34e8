from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import User
from respawn.db.session import get_db
from respawn.schemas.notifications import (
    CooldownResponse,
    TriggerNotificationRequest,
    TriggerNotificationResponse,
)
from respawn.services.notifications import NotificationService
from respawn.utils.auth.dependencies import get_current_user
from respawn.utils.deps import get_notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/trigger", response_model=TriggerNotificationResponse)
async def trigger_notification(
    data: TriggerNotificationRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    result = await notifications.trigger(db, user.id, data.target_user_id)
    return TriggerNotificationResponse(
        next_available_at=result.next_available_at,
        history_recorded=result.history_recorded,
        dispatch_status=result.dispatch.status.value,
        dispatch_error=result.dispatch.error,
    )


@router.get("/cooldown/{friend_user_id}", response_model=CooldownResponse)
async def check_cooldown(
    friend_user_id: str = Path(..., description="Friend the caller wants to trigger"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    status = await notifications.check_cooldown(db, user.id, friend_user_id)
    return CooldownResponse(on_cooldown=status.on_cooldown, available_at=status.available_at)
