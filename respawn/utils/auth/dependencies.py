from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import User
from respawn.db.session import get_db
from respawn.services import users
from respawn.utils.auth.token_store import SessionTokenStore

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def get_token_store(request: Request) -> SessionTokenStore:
    return request.app.state.token_store


async def get_session_token(token: str | None = Depends(oauth2_scheme)) -> str:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


async def get_current_user(
    token: str = Depends(get_session_token),
    token_store: SessionTokenStore = Depends(get_token_store),
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = token_store.validate(token)
    if user_id is None:
        raise credentials_exception

    user = await users.get_user(db, user_id)
    if user is None:
        raise credentials_exception

    return user
