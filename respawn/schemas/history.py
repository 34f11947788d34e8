from datetime import datetime

from pydantic import BaseModel


class HistoryOut(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    sender_username: str
    triggered_at: datetime

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    history: list[HistoryOut]
    total: int
