import enum

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Integer, DateTime, Enum, ForeignKey, func
from .user import Base, User


class RepairTicketStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_PARTS = "WAITING_PARTS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class UrgencyLevel(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class RepairTicket(Base):
    __tablename__ = "repair_tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    ticket_code: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    # 신고자 연락처는 접수 시점 값 그대로 보관
    reporter_name: Mapped[str] = mapped_column(String(100))
    reporter_department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reporter_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reporter_line_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    problem_category: Mapped[str] = mapped_column(String(64))
    problem_title: Mapped[str] = mapped_column(String(200))
    problem_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(200))

    urgency: Mapped[UrgencyLevel] = mapped_column(
        Enum(UrgencyLevel, native_enum=False, length=16), default=UrgencyLevel.NORMAL
    )
    status: Mapped[RepairTicketStatus] = mapped_column(
        Enum(RepairTicketStatus, native_enum=False, length=32), default=RepairTicketStatus.PENDING, index=True
    )

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    scheduled_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user: Mapped[User] = relationship()
    assignees: Mapped[list["RepairTicketAssignee"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan", passive_deletes=True
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        back_populates="ticket", cascade="all, delete-orphan", passive_deletes=True
    )
    logs: Mapped[list["RepairTicketLog"]] = relationship(
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [RepairTicketLog.created_at.desc(), RepairTicketLog.id.desc()],
    )


class RepairTicketAssignee(Base):
    __tablename__ = "repair_ticket_assignees"

    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("repair_tickets.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    ticket: Mapped[RepairTicket] = relationship(back_populates="assignees")
    user: Mapped[User] = relationship()


from .attachment import Attachment  # noqa: E402,F401
from .ticket_log import RepairTicketLog  # noqa: E402,F401
