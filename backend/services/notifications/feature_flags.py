"""Feature flag sources consulted when building queue contexts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from core.config import Settings, settings


@runtime_checkable
class FeatureFlagSource(Protocol):
    def enabled_flags(self) -> frozenset[str]: ...


class StaticFeatureFlagSource:
    """Fixed set of enabled flags."""

    def __init__(self, flags: Iterable[str] = ()) -> None:
        self._flags = frozenset(flags)

    def enabled_flags(self) -> frozenset[str]:
        return self._flags


class SettingsFeatureFlagSource:
    """Reads ``ENABLED_FEATURE_FLAGS`` from application settings on every call."""

    def __init__(self, source: Settings | None = None) -> None:
        self._settings = source or settings

    def enabled_flags(self) -> frozenset[str]:
        return frozenset(self._settings.enabled_feature_flags)
