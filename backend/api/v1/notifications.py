"""Notification queue and dismissal endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.deps import (
    get_current_user_id,
    get_db,
    get_notification_registry,
    get_session_factory,
)
from services.notifications import (
    GROUP_DEFAULT,
    MAX_DISMISSED_NOTIFICATIONS,
    NOTIFICATION_GROUPS,
    VIEW_CONTEXTS,
    NotificationQueue,
    NotificationRegistry,
    SqlDismissalLedger,
    list_dismissed_notification_ids,
)
from services.notifications.schemas import (
    DismissedNotificationListResponse,
    DismissNotificationRequest,
    DismissNotificationResponse,
    NotificationQueueResponse,
    QueuedNotificationItem,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


async def _load_ledger(session: AsyncSession, user_id: str) -> SqlDismissalLedger:
    ledger = SqlDismissalLedger(session, user_id)
    try:
        await ledger.load()
    except SQLAlchemyError as load_error:
        await session.rollback()
        # An unloaded ledger makes the resolver report the queue as pending.
        logger.warning(
            "Failed to load dismissed notifications",
            extra={"user_id": user_id},
            exc_info=load_error,
        )
    return ledger


@router.get("/queue", response_model=NotificationQueueResponse)
async def get_notification_queue(
    view_context: Annotated[str, Query(min_length=1)],
    group_id: Annotated[str, Query(min_length=1)] = GROUP_DEFAULT,
    session: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    user_id: str = Depends(get_current_user_id),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> NotificationQueueResponse:
    if view_context not in VIEW_CONTEXTS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="view_context is not supported",
        )
    if group_id not in NOTIFICATION_GROUPS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="group_id is not supported",
        )

    ledger = await _load_ledger(session, user_id)
    queue = NotificationQueue(registry, ledger)
    # Checks run concurrently; each opens its own session from the factory.
    context = queue.build_context(
        view_context,
        group_id,
        state={"session_factory": session_factory, "user_id": user_id},
    )
    resolution = await queue.resolve(context)

    notifications: list[QueuedNotificationItem] = []
    for notification_id in resolution.notification_ids:
        descriptor = registry.get(notification_id)
        if descriptor is None:  # pragma: no cover - registry is append-only
            continue
        notifications.append(
            QueuedNotificationItem(
                id=descriptor.id,
                area_slug=descriptor.area_slug,
                group_id=descriptor.group_id,
                priority=descriptor.priority,
                is_dismissible=descriptor.is_dismissible,
            )
        )

    return NotificationQueueResponse(
        status=resolution.status.value,
        view_context=view_context,
        group_id=group_id,
        notifications=notifications,
    )


@router.get("/dismissed", response_model=DismissedNotificationListResponse)
async def list_dismissed_notifications(
    limit: Annotated[int, Query(ge=1, le=MAX_DISMISSED_NOTIFICATIONS)] = 250,
    session: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> DismissedNotificationListResponse:
    notification_ids = await list_dismissed_notification_ids(
        session,
        user_id,
        limit=limit,
    )
    return DismissedNotificationListResponse(notification_ids=notification_ids)


@router.post("/dismissed", response_model=DismissNotificationResponse)
async def dismiss_notification(
    payload: DismissNotificationRequest,
    session: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> DismissNotificationResponse:
    notification_id = payload.notification_id.strip()
    if not notification_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="notification_id must not be empty",
        )

    descriptor = registry.get(notification_id)
    if descriptor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    if not descriptor.is_dismissible:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Notification is not dismissible",
        )

    ledger = SqlDismissalLedger(session, user_id)
    await ledger.load()
    queue = NotificationQueue(registry, ledger)
    await queue.dismiss(
        notification_id,
        expires_in_seconds=payload.expires_in_seconds,
    )

    record = ledger.get_record(notification_id)
    if record is None:  # pragma: no cover - dismiss always records
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Dismissal record missing after dismiss",
        )
    return DismissNotificationResponse(
        notification_id=record.notification_id,
        dismissed_at=record.dismissed_at,
        expires_at=record.expires_at,
        dismiss_count=record.dismiss_count,
    )
