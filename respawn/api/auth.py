import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.core.config import Settings
from respawn.db.models import User
from respawn.db.session import get_db
from respawn.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PushSubscriptionRequest,
    RegisterRequest,
    VapidPublicKeyResponse,
)
from respawn.schemas.friends import SuccessResponse
from respawn.services.auth import AuthService
from respawn.utils.auth.dependencies import get_current_user, get_session_token
from respawn.utils.deps import get_auth_service, get_settings

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.register(db, data.username, data.password)
    return AuthResponse(user_id=result.user_id, username=result.username, token=result.token)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.login(db, data.username, data.password)
    return AuthResponse(user_id=result.user_id, username=result.username, token=result.token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    token: str = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(token)
    return SuccessResponse()


@router.post("/refresh", response_model=SuccessResponse)
async def refresh(
    token: str = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
):
    auth.refresh(token)
    return SuccessResponse()


@router.post("/push-subscription", response_model=SuccessResponse)
async def update_push_subscription(
    data: PushSubscriptionRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.update_push_subscription(db, user.id, data.model_dump(exclude_none=True))
    return SuccessResponse()


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
async def vapid_public_key(settings: Settings = Depends(get_settings)):
    """Application server key the browser needs to create a push subscription."""
    return VapidPublicKeyResponse(public_key=settings.VAPID_PUBLIC_KEY)
