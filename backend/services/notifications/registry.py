"""In-process registry of notification descriptors."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from .constants import (
    DEFAULT_PRIORITY,
    GROUP_DEFAULT,
    MAX_NOTIFICATION_ID_LENGTH,
    NOTIFICATION_AREAS,
    NOTIFICATION_GROUPS,
    VIEW_CONTEXTS,
)
from .errors import (
    DuplicateRegistrationWarning,
    InvalidAreaError,
    InvalidGroupError,
    InvalidViewContextError,
    ValidationError,
)

if TYPE_CHECKING:
    from .requirements import RequirementContext

RequirementCheck: TypeAlias = Callable[["RequirementContext"], "bool | Awaitable[bool]"]
NotificationProducer: TypeAlias = Callable[["NotificationRegistry"], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationDescriptor:
    id: str
    renderer: Any
    area_slug: str
    registration_index: int
    view_contexts: tuple[str, ...] = ()
    group_id: str = GROUP_DEFAULT
    priority: int = DEFAULT_PRIORITY
    is_dismissible: bool = False
    feature_flag: str | None = None
    check_requirements: RequirementCheck | None = None
    dismiss_retries: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.registration_index)


def _validate_notification_id(notification_id: str) -> str:
    if not isinstance(notification_id, str) or not notification_id.strip():
        raise ValidationError("A notification id is required to register a notification.")
    if len(notification_id) > MAX_NOTIFICATION_ID_LENGTH:
        raise ValidationError(
            f"Notification id must be at most {MAX_NOTIFICATION_ID_LENGTH} characters."
        )
    return notification_id


def _validate_view_contexts(view_contexts: Iterable[str] | None) -> tuple[str, ...]:
    if view_contexts is None:
        return ()
    if isinstance(view_contexts, str):
        raise InvalidViewContextError(
            "Notification view contexts should be a sequence, not a single string."
        )

    normalized: list[str] = []
    for view_context in view_contexts:
        if view_context not in VIEW_CONTEXTS:
            raise InvalidViewContextError(
                "Notification view context should be one of: "
                + ", ".join(sorted(VIEW_CONTEXTS))
                + f" (got {view_context!r})."
            )
        if view_context not in normalized:
            normalized.append(view_context)
    return tuple(normalized)


class NotificationRegistry:
    """Append-only, insertion-ordered store of notification descriptors.

    Producers call :meth:`register` at startup; resolvers only ever read
    through :meth:`get_all` and :meth:`get`. Every value is validated before
    the single dictionary insertion, so readers never observe a partially
    registered descriptor.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, NotificationDescriptor] = {}
        self._next_index = 0

    def init(self, producers: Iterable[NotificationProducer] = ()) -> None:
        """Run each producer against this registry, in order."""
        for producer in producers:
            producer(self)
        logger.debug(
            "Notification registry initialized",
            extra={"registered_count": len(self._descriptors)},
        )

    def reset(self) -> None:
        self._descriptors = {}
        self._next_index = 0

    def register(
        self,
        notification_id: str,
        *,
        renderer: Any,
        area_slug: str,
        view_contexts: Iterable[str] | None = None,
        group_id: str | None = GROUP_DEFAULT,
        priority: int = DEFAULT_PRIORITY,
        is_dismissible: bool = False,
        feature_flag: str | None = None,
        check_requirements: RequirementCheck | None = None,
        dismiss_retries: int = 0,
    ) -> NotificationDescriptor:
        """Register a notification and return its stored descriptor.

        Raises ``ValidationError``, ``InvalidAreaError``, ``InvalidGroupError``
        or ``InvalidViewContextError`` without touching the store. Registering an
        id twice keeps the first descriptor and emits a
        ``DuplicateRegistrationWarning``.
        """
        notification_id = _validate_notification_id(notification_id)
        if renderer is None:
            raise ValidationError("A renderer is required to register a notification.")
        if area_slug not in NOTIFICATION_AREAS:
            raise InvalidAreaError(
                "Notification area should be one of: "
                + ", ".join(sorted(NOTIFICATION_AREAS))
                + f" (got {area_slug!r})."
            )
        normalized_view_contexts = _validate_view_contexts(view_contexts)
        normalized_group_id = group_id or GROUP_DEFAULT
        if normalized_group_id not in NOTIFICATION_GROUPS:
            raise InvalidGroupError(
                "Notification group should be one of: "
                + ", ".join(sorted(NOTIFICATION_GROUPS))
                + f" (got {group_id!r})."
            )
        if check_requirements is not None and not callable(check_requirements):
            raise ValidationError("check_requirements must be callable.")
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise ValidationError("priority must be an integer.")
        if dismiss_retries < 0:
            raise ValidationError("dismiss_retries must be non-negative.")
        if feature_flag is not None and not feature_flag.strip():
            raise ValidationError("feature_flag must not be blank.")

        existing = self._descriptors.get(notification_id)
        if existing is not None:
            message = (
                f'Could not register notification with ID "{notification_id}". '
                f'Notification "{notification_id}" is already registered.'
            )
            logger.warning(message, extra={"notification_id": notification_id})
            with warnings.catch_warnings():
                # Appended, so caller-installed filters still win; only the
                # once-per-location fallback is replaced.
                warnings.filterwarnings(
                    "always", category=DuplicateRegistrationWarning, append=True
                )
                warnings.warn(message, DuplicateRegistrationWarning, stacklevel=2)
            return existing

        descriptor = NotificationDescriptor(
            id=notification_id,
            renderer=renderer,
            area_slug=area_slug,
            registration_index=self._next_index,
            view_contexts=normalized_view_contexts,
            group_id=normalized_group_id,
            priority=priority,
            is_dismissible=bool(is_dismissible),
            feature_flag=feature_flag,
            check_requirements=check_requirements,
            dismiss_retries=dismiss_retries,
        )
        self._descriptors[notification_id] = descriptor
        self._next_index += 1
        return descriptor

    def get(self, notification_id: str) -> NotificationDescriptor | None:
        return self._descriptors.get(notification_id)

    def get_all(self) -> tuple[NotificationDescriptor, ...]:
        return tuple(self._descriptors.values())

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._descriptors

    def __iter__(self) -> Iterator[NotificationDescriptor]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return len(self._descriptors)
