"""SQLAlchemy ORM model for the system_logs table."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from activity_log.models.base import Base

if TYPE_CHECKING:
    from activity_log.models.user import User

LEVEL_MAX_LENGTH = 255
CATEGORY_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 255
USER_AGENT_MAX_LENGTH = 255
IP_ADDRESS_MAX_LENGTH = 45


class SystemLog(Base):
    """Append-only activity record written by the activity logger.

    Attributes:
        id: Auto-incrementing bigint primary key.
        level: One of debug, info, warning, error.
        category: Classification tag (user, translation, performance, system).
        message: Human-readable description.
        context: Arbitrary JSON payload supplied by the caller.
        user_agent: User-Agent header of the triggering request, if any.
        ip_address: Client address of the triggering request, if any.
        user_id: Acting user, NULL when not attributable.
        created_at: Timestamp of persistence.
        updated_at: Kept for schema parity; equals created_at.
        user: Relationship to the acting user.
    """

    __tablename__ = "system_logs"
    __table_args__ = (
        Index("idx_system_logs_level_created_at", "level", "created_at"),
        Index("idx_system_logs_category_created_at", "category", "created_at"),
        Index("idx_system_logs_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    level: Mapped[str] = mapped_column(String(LEVEL_MAX_LENGTH), nullable=False)
    category: Mapped[str] = mapped_column(String(CATEGORY_MAX_LENGTH), nullable=False)
    message: Mapped[str] = mapped_column(String(MESSAGE_MAX_LENGTH), nullable=False)
    context: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    user_agent: Mapped[str | None] = mapped_column(
        String(USER_AGENT_MAX_LENGTH), nullable=True
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(IP_ADDRESS_MAX_LENGTH), nullable=True
    )
    user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )

    user: Mapped[User | None] = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<SystemLog(id={self.id}, level='{self.level}', "
            f"category='{self.category}')>"
        )
