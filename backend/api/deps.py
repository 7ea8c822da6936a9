"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.session import AsyncSessionMaker, get_session
from services.notifications import NotificationRegistry

USER_ID_HEADER = "X-User-ID"
MAX_USER_ID_LENGTH = 64


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that must not share the request session."""
    return AsyncSessionMaker


def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """Return the caller's user id as forwarded by the upstream gateway."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{USER_ID_HEADER} must be at most {MAX_USER_ID_LENGTH} characters",
        )
    return user_id


def get_notification_registry(request: Request) -> NotificationRegistry:
    registry = getattr(request.app.state, "notification_registry", None)
    if registry is None:  # pragma: no cover - create_app always sets it
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification registry is not configured",
        )
    return registry


__all__ = [
    "USER_ID_HEADER",
    "get_db",
    "get_session_factory",
    "get_current_user_id",
    "get_notification_registry",
]
