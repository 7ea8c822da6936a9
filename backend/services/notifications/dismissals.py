"""Dismissed-notification persistence operations and the dismissal ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, cast, runtime_checkable

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from db.errors import is_unique_violation
from models import DismissedNotification

from .common import desc, eq, utcnow
from .constants import MAX_NOTIFICATION_ID_LENGTH

# Upper bound for a single listing page, not a retention cap.
MAX_DISMISSED_NOTIFICATIONS = 500
EXPIRED_SWEEP_BATCH_SIZE = 100
logger = logging.getLogger(__name__)


@runtime_checkable
class DismissalLedger(Protocol):
    """Narrow view of the persisted dismissal state consumed by the queue.

    Reads return ``None`` while the ledger has not loaded its data yet.
    """

    def is_dismissed(self, notification_id: str) -> bool | None: ...

    def dismissal_count(self, notification_id: str) -> int | None: ...

    async def dismiss(
        self,
        notification_id: str,
        *,
        expires_in_seconds: int = 0,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class DismissalRecord:
    notification_id: str
    dismissed_at: datetime
    expires_at: datetime | None = None
    dismiss_count: int = 1

    def is_active(self, now: datetime) -> bool:
        if self.expires_at is None:
            return True
        return as_utc(self.expires_at) > now


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expiry_for(now: datetime, expires_in_seconds: int) -> datetime | None:
    if expires_in_seconds < 0:
        raise ValueError("expires_in_seconds must be non-negative")
    if expires_in_seconds == 0:
        return None
    return now + timedelta(seconds=expires_in_seconds)


def _normalize_notification_id(notification_id: str) -> str:
    normalized_notification_id = notification_id.strip()
    if not normalized_notification_id:
        raise ValueError("notification_id must not be empty")
    if len(normalized_notification_id) > MAX_NOTIFICATION_ID_LENGTH:
        raise ValueError(
            f"notification_id must be at most {MAX_NOTIFICATION_ID_LENGTH} characters"
        )
    return normalized_notification_id


def _to_record(row: DismissedNotification) -> DismissalRecord:
    return DismissalRecord(
        notification_id=row.notification_id,
        dismissed_at=as_utc(row.dismissed_at),
        expires_at=as_utc(row.expires_at) if row.expires_at is not None else None,
        dismiss_count=row.dismiss_count,
    )


def _active_at(now: datetime) -> ColumnElement[bool]:
    expires_at_column = cast(ColumnElement[datetime | None], DismissedNotification.expires_at)
    return cast(
        ColumnElement[bool],
        or_(expires_at_column.is_(None), expires_at_column > now),
    )


async def load_dismissal_records(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int | None = None,
    active_at: datetime | None = None,
) -> dict[str, DismissalRecord]:
    """Return the user's dismissal records keyed by notification id, newest first.

    Without ``limit`` every record is returned. ``active_at`` drops records
    that have expired by that time.
    """
    stmt = (
        select(DismissedNotification)
        .where(eq(DismissedNotification.user_id, user_id))
        .order_by(
            desc(cast(Any, DismissedNotification.dismissed_at)),
            desc(cast(Any, DismissedNotification.id)),
        )
    )
    if active_at is not None:
        stmt = stmt.where(_active_at(active_at))
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return {row.notification_id: _to_record(row) for row in result.scalars().all()}


async def list_dismissed_notification_ids(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int,
    now: datetime | None = None,
) -> list[str]:
    """Return ids of the user's active dismissals, newest first."""
    records = await load_dismissal_records(
        session,
        user_id,
        limit=limit,
        active_at=now or utcnow(),
    )
    return list(records)


async def delete_expired_dismissed_notifications(
    session: AsyncSession,
    *,
    now: datetime | None = None,
    batch_size: int = EXPIRED_SWEEP_BATCH_SIZE,
) -> int:
    """Delete one batch of dismissal records whose expiry has passed.

    Permanent dismissals (``expires_at IS NULL``) are never deleted.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    current_time = now or utcnow()
    expires_at_column = cast(ColumnElement[datetime | None], DismissedNotification.expires_at)
    dismissed_id_column = cast(ColumnElement[int], DismissedNotification.id)
    expired_ids_subquery = (
        select(dismissed_id_column)
        .where(
            expires_at_column.is_not(None),
            cast(ColumnElement[bool], expires_at_column <= current_time),
        )
        .order_by(dismissed_id_column)
        .limit(batch_size)
        .subquery("expired_dismissed_notifications")
    )
    expired_id_column = cast(ColumnElement[int], expired_ids_subquery.c.id)
    delete_result = await session.execute(
        delete(DismissedNotification).where(
            dismissed_id_column.in_(select(expired_id_column))
        )
    )
    deleted_rows = int(cast(Any, delete_result).rowcount or 0)
    if deleted_rows > 0:
        await session.commit()
    return deleted_rows


async def _get_dismissed_notification(
    session: AsyncSession,
    user_id: str,
    notification_id: str,
) -> DismissedNotification | None:
    result = await session.execute(
        select(DismissedNotification)
        .where(
            eq(DismissedNotification.user_id, user_id),
            eq(DismissedNotification.notification_id, notification_id),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _refresh_dismissal(
    session: AsyncSession,
    existing: DismissedNotification,
    *,
    now: datetime,
    expires_at: datetime | None,
) -> DismissalRecord:
    existing.dismissed_at = now
    existing.expires_at = expires_at
    existing.dismiss_count = (existing.dismiss_count or 0) + 1
    session.add(existing)
    await session.commit()
    await session.refresh(existing)
    return _to_record(existing)


async def dismiss_notification_for_user(
    session: AsyncSession,
    user_id: str,
    *,
    notification_id: str,
    expires_in_seconds: int = 0,
    now: datetime | None = None,
) -> DismissalRecord:
    """Persist a dismissal, refreshing the expiry and count when one exists."""
    normalized_notification_id = _normalize_notification_id(notification_id)
    current_time = now or utcnow()
    expires_at = expiry_for(current_time, expires_in_seconds)

    existing = await _get_dismissed_notification(
        session, user_id, normalized_notification_id
    )
    if existing is not None:
        return await _refresh_dismissal(
            session, existing, now=current_time, expires_at=expires_at
        )

    dismissed = DismissedNotification(
        user_id=user_id,
        notification_id=normalized_notification_id,
        dismissed_at=current_time,
        expires_at=expires_at,
        dismiss_count=1,
    )
    session.add(dismissed)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise

        duplicate = await _get_dismissed_notification(
            session, user_id, normalized_notification_id
        )
        if duplicate is None:  # pragma: no cover - defensive
            raise
        logger.info(
            "Concurrent dismissal insert, refreshing existing record",
            extra={"user_id": user_id, "notification_id": normalized_notification_id},
        )
        return await _refresh_dismissal(
            session, duplicate, now=current_time, expires_at=expires_at
        )

    await session.refresh(dismissed)
    return _to_record(dismissed)


class SqlDismissalLedger:
    """Dismissal ledger backed by the ``dismissed_notifications`` table.

    Call :meth:`load` before resolving a queue; until then every read answers
    ``None`` so the resolver reports its result as pending.
    """

    def __init__(
        self,
        session: AsyncSession,
        user_id: str,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._user_id = user_id
        self._clock = clock
        self._records: dict[str, DismissalRecord] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._records is not None

    async def load(self) -> None:
        # Every record is loaded; expired ones still carry the dismiss count.
        self._records = await load_dismissal_records(self._session, self._user_id)

    def get_record(self, notification_id: str) -> DismissalRecord | None:
        if self._records is None:
            return None
        return self._records.get(notification_id)

    def is_dismissed(self, notification_id: str) -> bool | None:
        if self._records is None:
            return None
        record = self._records.get(notification_id)
        if record is None:
            return False
        return record.is_active(self._clock())

    def dismissal_count(self, notification_id: str) -> int | None:
        if self._records is None:
            return None
        record = self._records.get(notification_id)
        return record.dismiss_count if record is not None else 0

    async def dismiss(
        self,
        notification_id: str,
        *,
        expires_in_seconds: int = 0,
    ) -> None:
        record = await dismiss_notification_for_user(
            self._session,
            self._user_id,
            notification_id=notification_id,
            expires_in_seconds=expires_in_seconds,
            now=self._clock(),
        )
        if self._records is not None:
            self._records[record.notification_id] = record
