from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey, func, Text
from .user import Base, User

class RepairTicketLog(Base):
    __tablename__ = "repair_ticket_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("repair_tickets.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id")
    )

    # 예: "created", "status_changed", "assignees_changed", "cancelled"
    action: Mapped[str] = mapped_column(String(32), default="status_changed")

    from_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    to_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    ticket: Mapped["RepairTicket"] = relationship(back_populates="logs")
    user: Mapped[User] = relationship()
