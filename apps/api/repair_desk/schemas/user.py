from pydantic import BaseModel

from ..models.user import UserRole


class UserSummaryOut(BaseModel):
    id: int
    name: str | None = None
    email: str | None = None
    role: UserRole | None = None
    department: str | None = None

    class Config:
        from_attributes = True
