"""SQLAlchemy ORM models for tunegate."""

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Hey future me - key/value on purpose! Provider tokens live as three separate rows
# (access, refresh, expires_at) so a refresh that doesn't rotate the refresh token
# only rewrites two of them. Setup completion is just "does admin_setup_complete exist".
class SettingModel(Base):
    """Process-owned settings: provider tokens, password hash, setup flag."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class GuestSessionModel(Base):
    """Guest bearer session.

    Live iff expires_at > now. Rows are removed on logout or by the
    expiry sweep after each login.
    """

    __tablename__ = "guest_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    expires_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    last_used_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_guest_sessions_token", "session_token"),
        Index("idx_guest_sessions_expires", "expires_at"),
    )
