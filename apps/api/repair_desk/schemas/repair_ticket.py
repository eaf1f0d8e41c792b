from pydantic import BaseModel, Field
from datetime import datetime

from ..models.repair_ticket import RepairTicketStatus, UrgencyLevel
from .attachment import AttachmentOut
from .ticket_log import TicketLogOut
from .user import UserSummaryOut


class RepairTicketCreateIn(BaseModel):
    reporter_name: str = Field(min_length=1, max_length=100)
    reporter_department: str | None = Field(default=None, max_length=100)
    reporter_phone: str | None = Field(default=None, max_length=32)
    reporter_line_id: str | None = Field(default=None, max_length=64)
    problem_category: str = Field(min_length=1, max_length=64)
    problem_title: str = Field(min_length=1, max_length=200)
    problem_description: str | None = None
    location: str = Field(min_length=1, max_length=200)
    urgency: UrgencyLevel | None = None
    notes: str | None = None
    scheduled_at: datetime | None = None


class RepairTicketUpdateIn(BaseModel):
    status: RepairTicketStatus | None = None
    notes: str | None = None
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None
    problem_title: str | None = Field(default=None, max_length=200)
    problem_description: str | None = None
    location: str | None = Field(default=None, max_length=200)
    urgency: UrgencyLevel | None = None
    assignee_ids: list[int] | None = None


class AssigneeOut(BaseModel):
    user_id: int
    user: UserSummaryOut | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RepairTicketOut(BaseModel):
    id: int
    ticket_code: str
    reporter_name: str
    reporter_department: str | None = None
    reporter_phone: str | None = None
    reporter_line_id: str | None = None
    problem_category: str
    problem_title: str
    problem_description: str | None = None
    location: str
    urgency: UrgencyLevel
    status: RepairTicketStatus
    user_id: int
    notes: str | None = None
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: UserSummaryOut | None = None
    assignees: list[AssigneeOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class RepairTicketDetailOut(RepairTicketOut):
    attachments: list[AttachmentOut] = Field(default_factory=list)
    logs: list[TicketLogOut] = Field(default_factory=list)


class ScheduleItemOut(BaseModel):
    id: int
    ticket_code: str
    problem_title: str
    problem_description: str | None = None
    status: RepairTicketStatus
    urgency: UrgencyLevel
    scheduled_at: datetime | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    location: str
    reporter_name: str

    class Config:
        from_attributes = True


class RepairStatisticsOut(BaseModel):
    total: int
    pending: int
    in_progress: int
    waiting_parts: int
    completed: int
    cancelled: int
