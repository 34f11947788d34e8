import logging
import re
from dataclasses import dataclass

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.core.config import Settings, settings as default_settings
from respawn.core.errors import (
    InvalidCredentials,
    InvalidPassword,
    InvalidSession,
    InvalidUsername,
    UsernameTaken,
    UserNotFound,
    ValidationError,
)
from respawn.services import users
from respawn.utils.auth.token_store import SessionTokenStore

log = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,16}$")
MIN_PASSWORD_LENGTH = 6


@dataclass
class AuthResult:
    user_id: str
    username: str
    token: str


def validate_username(username: str) -> None:
    if not USERNAME_RE.match(username):
        raise InvalidUsername()


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidPassword()


class AuthService:

    def __init__(self, token_store: SessionTokenStore, settings: Settings = default_settings):
        self.token_store = token_store
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.BCRYPT_ROUNDS,
        )

    async def register(self, db: AsyncSession, username: str, password: str) -> AuthResult:
        validate_username(username)
        validate_password(password)

        if await users.get_user_by_username(db, username) is not None:
            raise UsernameTaken()

        try:
            user = await users.create_user(db, username, self.pwd_context.hash(password))
        except IntegrityError:
            raise UsernameTaken()

        log.info("Registered user %s (%s)", user.id, username)
        return AuthResult(user_id=user.id, username=user.username, token=self.token_store.issue(user.id))

    async def login(self, db: AsyncSession, username: str, password: str) -> AuthResult:
        user = await users.get_user_by_username(db, username)
        if user is None or not self.pwd_context.verify(password, user.password_hash):
            raise InvalidCredentials()
        return AuthResult(user_id=user.id, username=user.username, token=self.token_store.issue(user.id))

    def logout(self, token: str) -> None:
        self.token_store.revoke(token)

    def refresh(self, token: str) -> None:
        if not self.token_store.refresh(token):
            raise InvalidSession()

    async def update_push_subscription(self, db: AsyncSession, user_id: str, subscription: dict) -> None:
        if not subscription or not subscription.get("endpoint"):
            raise ValidationError("Push subscription endpoint cannot be empty")
        if not await users.set_push_subscription(db, user_id, subscription):
            raise UserNotFound(details={"user_id": user_id})
