"""Queue resolution: which notifications a surface should show, in order."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from core.config import settings

from .admission import QueueContext, admit
from .common import utcnow
from .constants import GROUP_DEFAULT
from .dismissals import DismissalLedger
from .errors import DismissalsNotLoadedError
from .feature_flags import FeatureFlagSource, SettingsFeatureFlagSource
from .registry import NotificationDescriptor, NotificationRegistry
from .requirements import RequirementContext, evaluate_requirements

logger = logging.getLogger(__name__)


class QueuePhase(str, Enum):
    PENDING = "pending"
    ADMITTING = "admitting"
    EVALUATING = "evaluating"
    RESOLVED = "resolved"


class QueueStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True, slots=True)
class QueueResolution:
    """Outcome of a resolution: ``pending`` is never the same as an empty queue."""

    status: QueueStatus
    notification_ids: tuple[str, ...] = ()

    @classmethod
    def pending(cls) -> QueueResolution:
        return cls(status=QueueStatus.PENDING)

    @classmethod
    def resolved(cls, notification_ids: tuple[str, ...]) -> QueueResolution:
        return cls(status=QueueStatus.RESOLVED, notification_ids=tuple(notification_ids))

    @property
    def is_pending(self) -> bool:
        return self.status is QueueStatus.PENDING

    def without(self, notification_id: str) -> QueueResolution:
        if self.is_pending or notification_id not in self.notification_ids:
            return self
        return QueueResolution.resolved(
            tuple(item for item in self.notification_ids if item != notification_id)
        )


def sort_by_priority(
    descriptors: list[NotificationDescriptor],
) -> list[NotificationDescriptor]:
    return sorted(descriptors, key=lambda descriptor: descriptor.sort_key)


class NotificationQueue:
    """Resolves ordered notification queues against an explicit registry.

    The registry, dismissal ledger and feature flag source are all injected so
    separate instances never share state.
    """

    def __init__(
        self,
        registry: NotificationRegistry,
        dismissals: DismissalLedger,
        *,
        feature_flags: FeatureFlagSource | None = None,
        clock: Callable[[], datetime] = utcnow,
        requirement_timeout: float | None = None,
    ) -> None:
        self.registry = registry
        self.dismissals = dismissals
        self._feature_flags = feature_flags or SettingsFeatureFlagSource()
        self._clock = clock
        self._requirement_timeout = (
            requirement_timeout
            if requirement_timeout is not None
            else settings.notification_requirement_timeout_seconds
        )
        self._queues: dict[tuple[str, str], QueueResolution] = {}
        # Append-only log of ids hidden by dismiss(); resolve() filters out any
        # id hidden while it was evaluating.
        self._hidden_log: list[str] = []
        self._seen_dates: dict[str, list[str]] = {}

    def build_context(
        self,
        view_context: str,
        group_id: str = GROUP_DEFAULT,
        *,
        state: Mapping[str, Any] | None = None,
    ) -> QueueContext:
        return QueueContext(
            view_context=view_context,
            group_id=group_id,
            enabled_feature_flags=self._feature_flags.enabled_flags(),
            state=MappingProxyType(dict(state or {})),
        )

    async def resolve(self, context: QueueContext) -> QueueResolution:
        """Compute and cache the ordered queue for ``context``.

        Returns a pending resolution when dismissal data is unavailable.
        Failing requirement checks only drop their own notification.
        """
        log_extra = {"view_context": context.view_context, "group_id": context.group_id}
        hidden_mark = len(self._hidden_log)
        descriptors = self.registry.get_all()

        logger.debug("Queue phase %s", QueuePhase.ADMITTING.value, extra=log_extra)
        try:
            admitted = admit(descriptors, context, self.dismissals)
        except DismissalsNotLoadedError:
            logger.debug("Queue phase %s", QueuePhase.PENDING.value, extra=log_extra)
            return QueueResolution.pending()
        except Exception as ledger_error:
            logger.warning(
                "Failed to read dismissal state, queue left pending",
                extra=log_extra,
                exc_info=ledger_error,
            )
            return QueueResolution.pending()

        logger.debug("Queue phase %s", QueuePhase.EVALUATING.value, extra=log_extra)
        requirement_context = RequirementContext(
            queue_context=context,
            dismissals=self.dismissals,
            registry=self.registry,
        )
        candidates = await evaluate_requirements(
            admitted,
            requirement_context,
            timeout=self._requirement_timeout,
        )

        hidden_meanwhile = set(self._hidden_log[hidden_mark:])
        resolution = QueueResolution.resolved(
            tuple(
                descriptor.id
                for descriptor in sort_by_priority(candidates)
                if descriptor.id not in hidden_meanwhile
            )
        )
        self._queues[context.queue_key] = resolution
        logger.debug(
            "Queue phase %s",
            QueuePhase.RESOLVED.value,
            extra={**log_extra, "queued_count": len(resolution.notification_ids)},
        )
        return resolution

    def get_queued_notifications(
        self,
        view_context: str,
        group_id: str = GROUP_DEFAULT,
    ) -> QueueResolution:
        if not view_context:
            raise ValueError("viewContext is required.")
        return self._queues.get((view_context, group_id), QueueResolution.pending())

    def get_renderer(self, notification_id: str) -> Any:
        descriptor = self.registry.get(notification_id)
        return descriptor.renderer if descriptor is not None else None

    def is_notification_dismissed(self, notification_id: str) -> bool | None:
        return self.dismissals.is_dismissed(notification_id)

    def is_dismissal_final(self, notification_id: str) -> bool | None:
        descriptor = self.registry.get(notification_id)
        if descriptor is None:
            return None
        if not descriptor.is_dismissible:
            raise ValueError(
                "Notification should be dismissible to check if a notification "
                "is on its final dismissal."
            )
        if descriptor.dismiss_retries == 0:
            return True
        dismiss_count = self.dismissals.dismissal_count(notification_id)
        if dismiss_count is None:
            return None
        return dismiss_count >= descriptor.dismiss_retries

    async def dismiss(
        self,
        notification_id: str,
        *,
        expires_in_seconds: int = 0,
        skip_hiding_from_queue: bool = False,
    ) -> bool:
        """Dismiss a registered, dismissible notification.

        Returns False (and persists nothing) for unknown or non-dismissible
        notifications.
        """
        if not notification_id:
            raise ValueError("A notification id is required to dismiss a notification.")
        if expires_in_seconds < 0:
            raise ValueError("expires_in_seconds must be non-negative")

        descriptor = self.registry.get(notification_id)
        if descriptor is None or not descriptor.is_dismissible:
            return False

        if not skip_hiding_from_queue:
            self._hidden_log.append(notification_id)
            self._queues = {
                key: resolution.without(notification_id)
                for key, resolution in self._queues.items()
            }

        await self.dismissals.dismiss(
            notification_id, expires_in_seconds=expires_in_seconds
        )
        logger.info(
            "Notification dismissed",
            extra={
                "notification_id": notification_id,
                "expires_in_seconds": expires_in_seconds,
            },
        )
        return True

    def mark_seen(self, notification_id: str) -> None:
        if not notification_id:
            raise ValueError(
                "a valid notification ID is required to mark a notification as seen."
            )
        descriptor = self.registry.get(notification_id)
        if descriptor is None or not descriptor.is_dismissible:
            return

        seen_on = self._clock().date().isoformat()
        seen_dates = self._seen_dates.setdefault(notification_id, [])
        if seen_on not in seen_dates:
            seen_dates.append(seen_on)

    def get_seen_dates(self, notification_id: str) -> list[str]:
        return list(self._seen_dates.get(notification_id, ()))

    def get_seen_notifications(self) -> dict[str, list[str]]:
        return {
            notification_id: list(dates)
            for notification_id, dates in self._seen_dates.items()
        }
