from datetime import datetime

from pydantic import BaseModel, Field


class FriendOut(BaseModel):
    user_id: str
    username: str
    is_muted: bool
    is_muted_by: bool
    cooldown_minutes: int
    my_cooldown_minutes: int
    cooldown_remaining: int
    can_trigger: bool

    class Config:
        from_attributes = True


class FriendListResponse(BaseModel):
    friends: list[FriendOut]


class PendingRequestOut(BaseModel):
    request_id: str
    user_id: str
    username: str
    requested_at: datetime

    class Config:
        from_attributes = True


class PendingListResponse(BaseModel):
    requests: list[PendingRequestOut]


class SearchUsersRequest(BaseModel):
    username: str


class UserMatchOut(BaseModel):
    user_id: str
    username: str

    class Config:
        from_attributes = True


class SearchUsersResponse(BaseModel):
    users: list[UserMatchOut]


class SendFriendRequestBody(BaseModel):
    target_user_id: str


class SendFriendRequestResponse(BaseModel):
    request_id: str


class RespondRequestBody(BaseModel):
    request_id: str


class MuteFriendRequest(BaseModel):
    friend_user_id: str
    muted: bool


class MuteAllRequest(BaseModel):
    muted_all: bool


class UpdateCooldownRequest(BaseModel):
    friend_user_id: str
    cooldown_minutes: int = Field(..., ge=1, le=1440)


class SuccessResponse(BaseModel):
    success: bool = True
