from pydantic import BaseModel
from datetime import datetime

from .user import UserSummaryOut

class TicketLogOut(BaseModel):
    id: int
    ticket_id: int
    user_id: int
    action: str
    from_value: str | None
    to_value: str | None
    note: str | None
    user: UserSummaryOut | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
