"""Concurrent evaluation of per-notification requirement checks."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .admission import QueueContext
from .dismissals import DismissalLedger
from .registry import NotificationDescriptor, NotificationRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RequirementContext:
    """What a requirement check can see while it runs."""

    queue_context: QueueContext
    dismissals: DismissalLedger
    registry: NotificationRegistry

    @property
    def view_context(self) -> str:
        return self.queue_context.view_context

    @property
    def group_id(self) -> str:
        return self.queue_context.group_id

    @property
    def enabled_feature_flags(self) -> frozenset[str]:
        return self.queue_context.enabled_feature_flags

    @property
    def state(self) -> Mapping[str, Any]:
        return self.queue_context.state


async def _call_check(
    descriptor: NotificationDescriptor,
    context: RequirementContext,
) -> bool:
    check = descriptor.check_requirements
    if check is None:
        return True
    result = check(context)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def check_requirements(
    descriptor: NotificationDescriptor,
    context: RequirementContext,
    *,
    timeout: float | None = None,
) -> bool:
    """Run one descriptor's check; any failure counts as "not relevant"."""
    try:
        if timeout is None:
            return await _call_check(descriptor, context)
        return await asyncio.wait_for(_call_check(descriptor, context), timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "Notification requirement check timed out",
            extra={"notification_id": descriptor.id, "timeout_seconds": timeout},
        )
        return False
    except Exception as check_error:
        logger.warning(
            "Notification requirement check failed",
            extra={"notification_id": descriptor.id},
            exc_info=check_error,
        )
        return False


async def evaluate_requirements(
    descriptors: Sequence[NotificationDescriptor],
    context: RequirementContext,
    *,
    timeout: float | None = None,
) -> list[NotificationDescriptor]:
    """Return the descriptors whose checks pass, in their input order.

    All checks run concurrently and every one settles before this returns.
    """
    if not descriptors:
        return []
    outcomes = await asyncio.gather(
        *(
            check_requirements(descriptor, context, timeout=timeout)
            for descriptor in descriptors
        )
    )
    return [
        descriptor
        for descriptor, passed in zip(descriptors, outcomes)
        if passed
    ]
