"""SQLModel models package."""

from .dismissed_notification import DismissedNotification

__all__ = ["DismissedNotification"]
