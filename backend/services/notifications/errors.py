"""Notification registration and resolution errors."""

from __future__ import annotations


class NotificationRegistrationError(ValueError):
    """Base class for errors raised by ``NotificationRegistry.register``."""


class ValidationError(NotificationRegistrationError):
    """Raised when a descriptor is missing a required value or carries a bad one."""


class InvalidAreaError(NotificationRegistrationError):
    """Raised when ``area_slug`` is not a known notification area."""


class InvalidViewContextError(NotificationRegistrationError):
    """Raised when a view context is not a known view context."""


class InvalidGroupError(NotificationRegistrationError):
    """Raised when ``group_id`` is not a known notification group."""


class DuplicateRegistrationWarning(UserWarning):
    """Emitted when a notification id is registered more than once."""


class DismissalsNotLoadedError(RuntimeError):
    """Raised when dismissal state is needed before the ledger has loaded it."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(f"Dismissal state for {notification_id!r} is not loaded yet")
        self.notification_id = notification_id