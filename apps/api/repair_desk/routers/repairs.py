from datetime import datetime

import anyio
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.current_user import get_current_user, require_admin
from ..core.errors import ForbiddenError
from ..core.storage import get_storage
from ..db import get_session
from ..models.repair_ticket import RepairTicket, RepairTicketStatus, UrgencyLevel
from ..models.user import User
from ..schemas.repair_ticket import (
    RepairStatisticsOut,
    RepairTicketCreateIn,
    RepairTicketDetailOut,
    RepairTicketOut,
    RepairTicketUpdateIn,
    ScheduleItemOut,
)
from ..services import repair_service
from ..services.repair_service import MAX_FILE_SIZE, IncomingFile

router = APIRouter(prefix="/repairs", tags=["repairs"])


def assert_ticket_access(user: User, ticket: RepairTicket) -> None:
    if user.is_admin:
        return
    if ticket.user_id != user.id:
        raise ForbiddenError("Forbidden")


@router.post("", response_model=RepairTicketDetailOut)
async def create_repair(
    reporter_name: str = Form(...),
    problem_category: str = Form(...),
    problem_title: str = Form(...),
    location: str = Form(...),
    reporter_department: str | None = Form(default=None),
    reporter_phone: str | None = Form(default=None),
    reporter_line_id: str | None = Form(default=None),
    problem_description: str | None = Form(default=None),
    urgency: UrgencyLevel | None = Form(default=None),
    notes: str | None = Form(default=None),
    scheduled_at: datetime | None = Form(default=None),
    files: list[UploadFile] | None = File(default=None),
    session: Session = Depends(get_session),
    storage=Depends(get_storage),
    user: User = Depends(get_current_user),
):
    try:
        payload = RepairTicketCreateIn(
            reporter_name=reporter_name,
            reporter_department=reporter_department,
            reporter_phone=reporter_phone,
            reporter_line_id=reporter_line_id,
            problem_category=problem_category,
            problem_title=problem_title,
            problem_description=problem_description,
            location=location,
            urgency=urgency,
            notes=notes,
            scheduled_at=scheduled_at,
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    incoming: list[IncomingFile] = []
    for f in files or []:
        if f.size is not None:
            repair_service.validate_size(f.size)
        # one byte past the limit is enough for validate_upload to reject it
        data = await f.read(MAX_FILE_SIZE + 1)
        incoming.append(
            IncomingFile(
                filename=f.filename or "upload.bin",
                content_type=f.content_type or "application/octet-stream",
                data=data,
            )
        )

    # storage(boto3)/DB 호출은 sync => thread
    return await anyio.to_thread.run_sync(
        lambda: repair_service.create_ticket(session, storage, user.id, payload, incoming)
    )


@router.get("", response_model=list[RepairTicketOut])
def list_repairs(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    status: RepairTicketStatus | None = Query(default=None),
    urgency: UrgencyLevel | None = Query(default=None),
    assigned_to: int | None = Query(default=None),
    user_id: int | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=1000),
):
    return repair_service.find_all(
        session,
        user_id=user.id,
        is_admin=user.is_admin,
        status=status,
        urgency=urgency,
        assigned_to=assigned_to,
        owner_id=user_id,
        limit=limit,
    )


@router.get("/my", response_model=list[RepairTicketDetailOut])
def my_repairs(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return repair_service.get_user_tickets(session, user.id)


@router.get("/statistics", response_model=RepairStatisticsOut)
def repair_statistics(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return repair_service.get_statistics(session)


@router.get("/schedule", response_model=list[ScheduleItemOut])
def repair_schedule(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return repair_service.get_schedule(session)


@router.get("/code/{ticket_code}", response_model=RepairTicketDetailOut)
def get_repair_by_code(
    ticket_code: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    ticket = repair_service.find_by_code(session, ticket_code)
    assert_ticket_access(user, ticket)
    return ticket


@router.get("/{ticket_id}", response_model=RepairTicketDetailOut)
def get_repair(
    ticket_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    ticket = repair_service.find_one(session, ticket_id)
    assert_ticket_access(user, ticket)
    return ticket


@router.patch("/{ticket_id}", response_model=RepairTicketOut)
def update_repair(
    ticket_id: int,
    payload: RepairTicketUpdateIn,
    session: Session = Depends(get_session),
    user: User = Depends(require_admin),
):
    return repair_service.update_ticket(session, ticket_id, payload, user.id)


@router.delete("/{ticket_id}", response_model=RepairTicketOut)
def cancel_repair(
    ticket_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(require_admin),
):
    return repair_service.remove_ticket(session, ticket_id, user.id)
