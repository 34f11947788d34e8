from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import User
from respawn.db.session import get_db
from respawn.schemas.friends import (
    FriendListResponse,
    FriendOut,
    MuteAllRequest,
    MuteFriendRequest,
    PendingListResponse,
    PendingRequestOut,
    RespondRequestBody,
    SearchUsersRequest,
    SearchUsersResponse,
    SendFriendRequestBody,
    SendFriendRequestResponse,
    SuccessResponse,
    UpdateCooldownRequest,
    UserMatchOut,
)
from respawn.services.friends import FriendService
from respawn.utils.auth.dependencies import get_current_user
from respawn.utils.deps import get_friend_service

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=FriendListResponse)
async def list_friends(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    items = await friends.list_friends(db, user.id)
    return FriendListResponse(friends=[FriendOut.model_validate(f) for f in items])


@router.get("/pending", response_model=PendingListResponse)
async def pending_requests(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    items = await friends.pending_requests(db, user.id)
    return PendingListResponse(requests=[PendingRequestOut.model_validate(r) for r in items])


@router.post("/search", response_model=SearchUsersResponse)
async def search_users(
    data: SearchUsersRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    items = await friends.search_users(db, user.id, data.username)
    return SearchUsersResponse(users=[UserMatchOut.model_validate(u) for u in items])


@router.post("/request", response_model=SendFriendRequestResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    data: SendFriendRequestBody,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    request = await friends.send_request(db, user.id, data.target_user_id)
    return SendFriendRequestResponse(request_id=request.id)


@router.post("/accept", response_model=SuccessResponse)
async def accept_friend_request(
    data: RespondRequestBody,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.accept(db, user.id, data.request_id)
    return SuccessResponse()


@router.post("/reject", response_model=SuccessResponse)
async def reject_friend_request(
    data: RespondRequestBody,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.reject(db, user.id, data.request_id)
    return SuccessResponse()


@router.delete("/{friend_user_id}", response_model=SuccessResponse)
async def remove_friend(
    friend_user_id: str = Path(..., description="ID of the friend to remove"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.remove(db, user.id, friend_user_id)
    return SuccessResponse()


@router.post("/mute", response_model=SuccessResponse)
async def mute_friend(
    data: MuteFriendRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.set_mute(db, user.id, data.friend_user_id, data.muted)
    return SuccessResponse()


@router.post("/mute-all", response_model=SuccessResponse)
async def mute_all(
    data: MuteAllRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.mute_all(db, user.id, data.muted_all)
    return SuccessResponse()


@router.post("/cooldown", response_model=SuccessResponse)
async def update_cooldown(
    data: UpdateCooldownRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    friends: FriendService = Depends(get_friend_service),
):
    await friends.set_cooldown(db, user.id, data.friend_user_id, data.cooldown_minutes)
    return SuccessResponse()
