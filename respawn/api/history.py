from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from respawn.db.models import User
from respawn.db.session import get_db
from respawn.schemas.history import HistoryOut, HistoryResponse
from respawn.services import history
from respawn.utils.auth.dependencies import get_current_user

router = APIRouter(prefix="/history", tags=["history"])


@router.get("/{friend_user_id}", response_model=HistoryResponse)
async def get_history(
    friend_user_id: str = Path(..., description="Friend whose shared history to list"),
    page: int = Query(1, ge=1),
    limit: int = Query(history.DEFAULT_PAGE_SIZE, ge=1, le=history.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    items, total = await history.list_between(db, user.id, friend_user_id, page, limit)
    return HistoryResponse(history=[HistoryOut.model_validate(h) for h in items], total=total)
