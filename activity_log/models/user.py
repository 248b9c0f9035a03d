"""SQLAlchemy ORM model for the users table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, String, func
from sqlalchemy.orm import Mapped, mapped_column

from activity_log.models.base import Base


class User(Base):
    """Application user, referenced by system log rows.

    Only the columns the activity log needs are mapped here; accounts are
    managed elsewhere.

    Attributes:
        id: Auto-incrementing bigint primary key.
        name: Display name.
        email: Unique login e-mail.
        created_at: Timestamp of record creation.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
