from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import time
from typing import Iterable, Protocol

from sqlalchemy import select, func, delete, insert, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..core.db_errors import is_foreign_key_violation, is_unique_violation
from ..core.errors import BadRequestError, NotFoundError
from ..core.storage import StoredFile
from ..core.storage_keys import sanitize_filename
from ..models.attachment import Attachment
from ..models.line_oa_link import LineOALink
from ..models.repair_ticket import RepairTicket, RepairTicketAssignee, RepairTicketStatus, UrgencyLevel
from ..models.ticket_log import RepairTicketLog
from ..models.user import User
from ..schemas.repair_ticket import RepairTicketCreateIn, RepairTicketUpdateIn

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
UPLOAD_FOLDER = "repairs"
TICKET_CODE_ATTEMPTS = 5

INVALID_REFERENCE_MESSAGE = "ข้อมูลอ้างอิงไม่ถูกต้อง (เช่น ผู้รับผิดชอบไม่มีอยู่ในระบบ)"

# Columns that reject NULL even when the client sends it explicitly.
NON_NULLABLE_UPDATE_FIELDS = ("status", "urgency", "problem_title", "location")
PLAIN_UPDATE_FIELDS = ("status", "notes", "problem_title", "problem_description", "location", "urgency")

STATISTICS_KEYS = {
    RepairTicketStatus.PENDING: "pending",
    RepairTicketStatus.IN_PROGRESS: "in_progress",
    RepairTicketStatus.WAITING_PARTS: "waiting_parts",
    RepairTicketStatus.COMPLETED: "completed",
    RepairTicketStatus.CANCELLED: "cancelled",
}


class FileStorage(Protocol):
    def upload_file(self, *, data: bytes, filename: str, folder: str) -> StoredFile: ...


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_size(size: int) -> None:
    if size > MAX_FILE_SIZE:
        logger.warning("Rejected file exceeding size limit: %s bytes", size)
        raise BadRequestError("File size exceeds 5MB limit")


def validate_upload(file: IncomingFile) -> None:
    if file.content_type not in ALLOWED_MIME_TYPES:
        logger.warning("Rejected file with invalid MIME type: %s", file.content_type)
        raise BadRequestError(f"Invalid file type: {file.content_type}. Only images are allowed.")
    validate_size(file.size)


def generate_ticket_code(session: Session) -> str:
    stamp = int(time.time() * 1000)
    while True:
        code = f"REP-{stamp}"
        exists = session.scalar(select(RepairTicket.id).where(RepairTicket.ticket_code == code))
        if not exists:
            return code
        stamp += 1


def upload_attachments(storage: FileStorage, files: Iterable[IncomingFile]) -> list[dict]:
    """Upload already validated files and return their attachment columns.

    A failed upload is logged and skipped.
    """
    uploaded: list[dict] = []
    for file in files:
        safe_name = sanitize_filename(file.filename)
        try:
            stored = storage.upload_file(data=file.data, filename=safe_name, folder=UPLOAD_FOLDER)
        except Exception:
            logger.exception("Failed to upload file %s", file.filename)
            continue
        uploaded.append(
            {
                "filename": safe_name,
                "file_url": stored.url,
                "file_size": file.size,
                "mime_type": file.content_type,
            }
        )
    return uploaded


def _detail_options():
    return (
        selectinload(RepairTicket.user),
        selectinload(RepairTicket.assignees).selectinload(RepairTicketAssignee.user),
        selectinload(RepairTicket.attachments),
        selectinload(RepairTicket.logs).selectinload(RepairTicketLog.user),
    )


def _list_options():
    # 목록 화면: attachments/logs 제외
    return (
        selectinload(RepairTicket.user),
        selectinload(RepairTicket.assignees).selectinload(RepairTicketAssignee.user),
    )


def _reload_with_people(session: Session, ticket_id: int) -> RepairTicket:
    stmt = (
        select(RepairTicket)
        .where(RepairTicket.id == ticket_id)
        .options(*_list_options())
        .execution_options(populate_existing=True)
    )
    return session.scalar(stmt)


def _new_ticket(
    session: Session,
    owner_id: int,
    payload: RepairTicketCreateIn,
    uploaded: list[dict],
    file_count: int,
) -> RepairTicket:
    return RepairTicket(
        ticket_code=generate_ticket_code(session),
        reporter_name=payload.reporter_name,
        reporter_department=payload.reporter_department or None,
        reporter_phone=payload.reporter_phone or None,
        reporter_line_id=payload.reporter_line_id or None,
        problem_category=payload.problem_category,
        problem_title=payload.problem_title,
        problem_description=payload.problem_description or None,
        location=payload.location,
        urgency=payload.urgency or UrgencyLevel.NORMAL,
        status=RepairTicketStatus.PENDING,
        user_id=owner_id,
        notes=payload.notes or None,
        scheduled_at=payload.scheduled_at or datetime.now(timezone.utc),
        attachments=[Attachment(**row) for row in uploaded],
        logs=[
            RepairTicketLog(
                user_id=owner_id,
                action="created",
                from_value=None,
                to_value=RepairTicketStatus.PENDING.value,
                note=f"attachments: {len(uploaded)}/{file_count}" if file_count else None,
            )
        ],
    )


def create_ticket(
    session: Session,
    storage: FileStorage,
    owner_id: int,
    payload: RepairTicketCreateIn,
    files: Iterable[IncomingFile] | None = None,
) -> RepairTicket:
    files = list(files or [])
    # Validate everything first so a bad file never leaves orphaned uploads behind.
    for file in files:
        validate_upload(file)

    uploaded = upload_attachments(storage, files)

    # ticket_code is only checked, not reserved: a concurrent create can take it first
    for attempt in range(1, TICKET_CODE_ATTEMPTS + 1):
        ticket = _new_ticket(session, owner_id, payload, uploaded, len(files))
        session.add(ticket)
        try:
            session.commit()
            break
        except IntegrityError as exc:
            session.rollback()
            if attempt == TICKET_CODE_ATTEMPTS or not is_unique_violation(exc, "ticket_code"):
                raise
            logger.warning("Ticket code %s already taken, retrying (%s)", ticket.ticket_code, attempt)

    logger.info("Repair ticket created: code=%s attachments=%s", ticket.ticket_code, len(uploaded))
    return find_one(session, ticket.id)


def find_one(session: Session, ticket_id: int) -> RepairTicket:
    stmt = (
        select(RepairTicket)
        .where(RepairTicket.id == ticket_id)
        .options(*_detail_options())
        .execution_options(populate_existing=True)
    )
    ticket = session.scalar(stmt)
    if not ticket:
        raise NotFoundError(f"Repair ticket #{ticket_id} not found")
    return ticket


def find_by_code(session: Session, ticket_code: str) -> RepairTicket:
    stmt = (
        select(RepairTicket)
        .where(RepairTicket.ticket_code == ticket_code)
        .options(*_detail_options())
        .execution_options(populate_existing=True)
    )
    ticket = session.scalar(stmt)
    if not ticket:
        raise NotFoundError(f"Ticket {ticket_code} not found")
    return ticket


def _replace_assignees(session: Session, ticket_id: int, assignee_ids: list[int]) -> tuple[list[int], list[int]]:
    """Delete every assignee row of the ticket, then insert the given list."""
    old_ids = sorted(
        session.scalars(
            select(RepairTicketAssignee.user_id).where(RepairTicketAssignee.ticket_id == ticket_id)
        ).all()
    )
    new_ids = list(dict.fromkeys(assignee_ids))
    session.execute(delete(RepairTicketAssignee).where(RepairTicketAssignee.ticket_id == ticket_id))
    if new_ids:
        session.execute(
            insert(RepairTicketAssignee),
            [{"ticket_id": ticket_id, "user_id": user_id} for user_id in new_ids],
        )
    return old_ids, sorted(new_ids)


def update_ticket(
    session: Session,
    ticket_id: int,
    payload: RepairTicketUpdateIn,
    actor_id: int,
) -> RepairTicket:
    ticket = session.get(RepairTicket, ticket_id)
    if not ticket:
        raise NotFoundError(f"Repair ticket #{ticket_id} not found")

    fields = set(payload.model_fields_set)
    for name in NON_NULLABLE_UPDATE_FIELDS:
        if name in fields and getattr(payload, name) is None:
            raise BadRequestError(f"{name} cannot be null")

    old_status = ticket.status
    for name in PLAIN_UPDATE_FIELDS:
        if name in fields:
            setattr(ticket, name, getattr(payload, name))
    # 날짜는 값이 있을 때만 반영
    if payload.scheduled_at:
        ticket.scheduled_at = payload.scheduled_at
    if payload.completed_at:
        ticket.completed_at = payload.completed_at

    logs: list[RepairTicketLog] = []
    if "status" in fields and ticket.status != old_status:
        logs.append(
            RepairTicketLog(
                ticket_id=ticket_id,
                user_id=actor_id,
                action="status_changed",
                from_value=old_status.value,
                to_value=ticket.status.value,
            )
        )

    try:
        if "assignee_ids" in fields:
            old_ids, new_ids = _replace_assignees(session, ticket_id, payload.assignee_ids or [])
            if old_ids != new_ids:
                logs.append(
                    RepairTicketLog(
                        ticket_id=ticket_id,
                        user_id=actor_id,
                        action="assignees_changed",
                        from_value=",".join(str(i) for i in old_ids) or None,
                        to_value=",".join(str(i) for i in new_ids) or None,
                    )
                )
        session.add_all(logs)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if is_foreign_key_violation(exc):
            raise BadRequestError(INVALID_REFERENCE_MESSAGE) from exc
        raise

    return _reload_with_people(session, ticket_id)


def remove_ticket(session: Session, ticket_id: int, actor_id: int) -> RepairTicket:
    ticket = session.get(RepairTicket, ticket_id)
    if not ticket:
        raise NotFoundError(f"Repair ticket #{ticket_id} not found")

    old_status = ticket.status
    ticket.status = RepairTicketStatus.CANCELLED
    ticket.cancelled_at = datetime.now(timezone.utc)
    session.add(
        RepairTicketLog(
            ticket_id=ticket_id,
            user_id=actor_id,
            action="cancelled",
            from_value=old_status.value,
            to_value=RepairTicketStatus.CANCELLED.value,
        )
    )
    session.commit()

    return _reload_with_people(session, ticket_id)


def get_statistics(session: Session) -> dict[str, int]:
    stmt = select(RepairTicket.status, func.count(RepairTicket.id)).group_by(RepairTicket.status)
    counts = {status: count for status, count in session.execute(stmt).all()}
    result = {"total": sum(counts.values())}
    for status, key in STATISTICS_KEYS.items():
        result[key] = counts.get(status, 0)
    return result


def get_schedule(session: Session) -> list[dict]:
    stmt = select(
        RepairTicket.id,
        RepairTicket.ticket_code,
        RepairTicket.problem_title,
        RepairTicket.problem_description,
        RepairTicket.status,
        RepairTicket.urgency,
        RepairTicket.scheduled_at,
        RepairTicket.created_at,
        RepairTicket.completed_at,
        RepairTicket.location,
        RepairTicket.reporter_name,
    ).order_by(RepairTicket.scheduled_at.asc(), RepairTicket.id.asc())
    return [dict(row) for row in session.execute(stmt).mappings().all()]


def find_all(
    session: Session,
    *,
    user_id: int | None,
    is_admin: bool,
    status: RepairTicketStatus | None = None,
    urgency: UrgencyLevel | None = None,
    assigned_to: int | None = None,
    owner_id: int | None = None,
    limit: int | None = None,
) -> list[RepairTicket]:
    stmt = select(RepairTicket).options(*_list_options())

    # USER는 본인 티켓만 (owner 필터 무시)
    if not is_admin:
        stmt = stmt.where(RepairTicket.user_id == user_id)
    elif owner_id is not None:
        stmt = stmt.where(RepairTicket.user_id == owner_id)

    if status is not None:
        stmt = stmt.where(RepairTicket.status == status)
    if urgency is not None:
        stmt = stmt.where(RepairTicket.urgency == urgency)
    if assigned_to is not None:
        stmt = stmt.join(RepairTicketAssignee, RepairTicketAssignee.ticket_id == RepairTicket.id).where(
            RepairTicketAssignee.user_id == assigned_to
        )

    stmt = stmt.order_by(desc(RepairTicket.created_at), desc(RepairTicket.id))
    if limit:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt).all())


def get_user_tickets(session: Session, user_id: int) -> list[RepairTicket]:
    stmt = (
        select(RepairTicket)
        .where(RepairTicket.user_id == user_id)
        .options(*_detail_options())
        .order_by(desc(RepairTicket.created_at), desc(RepairTicket.id))
    )
    return list(session.scalars(stmt).all())


def find_user_by_line_id(session: Session, line_user_id: str) -> User | None:
    stmt = (
        select(LineOALink)
        .where(LineOALink.line_user_id == line_user_id)
        .options(selectinload(LineOALink.user))
        .limit(1)
    )
    link = session.scalar(stmt)
    return link.user if link else None
