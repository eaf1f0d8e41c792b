from pydantic import BaseModel
from datetime import datetime

class AttachmentOut(BaseModel):
    id: int
    ticket_id: int
    filename: str
    file_url: str
    file_size: int
    mime_type: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True
