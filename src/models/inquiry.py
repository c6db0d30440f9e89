"""Inquiry table model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, utcnow

INQUIRY_MESSAGE_MAX_LENGTH = 2000


class Inquiry(Base):
    """Message sent by a prospective tenant to a listing owner."""

    __tablename__ = "inquiries"
    __table_args__ = (
        Index("idx_inquiries_listing", "listing_id"),
        Index("idx_inquiries_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False
    )
    from_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    message: Mapped[str] = mapped_column(
        String(INQUIRY_MESSAGE_MAX_LENGTH), nullable=False
    )
    owner_seen: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
