from fastapi import Request

from respawn.core.config import Settings
from respawn.services.auth import AuthService
from respawn.services.friends import FriendService
from respawn.services.notifications import NotificationService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_friend_service(request: Request) -> FriendService:
    return request.app.state.friend_service


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
