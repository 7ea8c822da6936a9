"""Synchronous, context-based admission of registered notifications."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .constants import GROUP_DEFAULT
from .dismissals import DismissalLedger
from .errors import DismissalsNotLoadedError
from .registry import NotificationDescriptor


@dataclass(frozen=True, slots=True)
class QueueContext:
    """Inputs of a single queue resolution.

    ``state`` carries whatever ambient objects requirement checks need (a
    database session, the current user id); the core never inspects it.
    """

    view_context: str
    group_id: str = GROUP_DEFAULT
    enabled_feature_flags: frozenset[str] = frozenset()
    state: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not self.view_context:
            raise ValueError("viewContext is required.")
        if not self.group_id:
            object.__setattr__(self, "group_id", GROUP_DEFAULT)
        if not isinstance(self.enabled_feature_flags, frozenset):
            object.__setattr__(
                self, "enabled_feature_flags", frozenset(self.enabled_feature_flags)
            )

    @property
    def queue_key(self) -> tuple[str, str]:
        return (self.view_context, self.group_id)


def is_admissible(
    descriptor: NotificationDescriptor,
    context: QueueContext,
    dismissals: DismissalLedger,
) -> bool:
    """Return whether ``descriptor`` may be queued for ``context``.

    Checks run cheapest first: feature flag, group, view context, and only
    then the dismissal ledger. Raises ``DismissalsNotLoadedError`` when the
    ledger cannot answer yet.
    """
    if (
        descriptor.feature_flag is not None
        and descriptor.feature_flag not in context.enabled_feature_flags
    ):
        return False

    # Strict partitioning: ungrouped notifications only match the default group.
    if descriptor.group_id != context.group_id:
        return False

    if descriptor.view_contexts and context.view_context not in descriptor.view_contexts:
        return False

    if descriptor.is_dismissible:
        dismissed = dismissals.is_dismissed(descriptor.id)
        if dismissed is None:
            raise DismissalsNotLoadedError(descriptor.id)
        if dismissed:
            return False

    return True


def admit(
    descriptors: Iterable[NotificationDescriptor],
    context: QueueContext,
    dismissals: DismissalLedger,
) -> list[NotificationDescriptor]:
    return [
        descriptor
        for descriptor in descriptors
        if is_admissible(descriptor, context, dismissals)
    ]
