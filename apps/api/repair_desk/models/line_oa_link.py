import enum

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Enum, ForeignKey, func
from .user import Base, User


class LineLinkStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"


class LineOALink(Base):
    __tablename__ = "line_oa_links"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    line_user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    status: Mapped[LineLinkStatus] = mapped_column(
        Enum(LineLinkStatus, native_enum=False, length=16), default=LineLinkStatus.PENDING
    )

    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user: Mapped[User] = relationship(back_populates="line_oa_link")
