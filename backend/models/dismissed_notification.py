"""Dismissed notification persistence model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func, text
from sqlmodel import Field, SQLModel


class DismissedNotification(SQLModel, table=True):
    """Per-user dismissal record with an optional expiry."""

    __tablename__ = "dismissed_notifications"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "notification_id",
            name="ux_dismissed_notifications_user_notification",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True)
    )
    notification_id: str = Field(
        sa_column=Column(String(191), nullable=False)
    )
    dismissed_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    # NULL means the dismissal never expires.
    expires_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True),
    )
    dismiss_count: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, server_default=text("1")),
    )
