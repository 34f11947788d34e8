from datetime import datetime

from pydantic import BaseModel


class TriggerNotificationRequest(BaseModel):
    target_user_id: str


class TriggerNotificationResponse(BaseModel):
    success: bool = True
    next_available_at: datetime
    history_recorded: bool
    dispatch_status: str
    dispatch_error: str | None = None


class CooldownResponse(BaseModel):
    on_cooldown: bool
    available_at: datetime | None = None
