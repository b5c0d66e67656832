"""
Snapshots — Configuration
===========================
Process-wide snapshot settings, read once when a manager is built.

Django settings (environment-backed in config/settings.py):
    SNAPSHOT_AUTO_ENABLED        bool, default True
    SNAPSHOT_DEFAULT_MAX_DEPTH   int, default 1
    SNAPSHOT_EXCLUDE_PROPERTIES  comma-separated names, trimmed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from django.conf import settings as django_settings

DEFAULT_AUTO_ENABLED = True
DEFAULT_MAX_DEPTH = 1
DEFAULT_EXCLUDE_PROPERTIES = ("_state", "_prefetched_objects_cache")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def parse_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot interpret {value!r} as a boolean.")


def parse_exclude_properties(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split a comma-separated list (or sequence) into trimmed names."""
    if value is None:
        return DEFAULT_EXCLUDE_PROPERTIES
    items = value.split(",") if isinstance(value, str) else value
    return tuple(name for name in (str(item).strip() for item in items) if name)


@dataclass(frozen=True)
class SnapshotSettings:
    auto_snapshot_enabled: bool = DEFAULT_AUTO_ENABLED
    default_max_depth: int = DEFAULT_MAX_DEPTH
    exclude_properties: tuple[str, ...] = DEFAULT_EXCLUDE_PROPERTIES

    def __post_init__(self) -> None:
        if self.default_max_depth < 0:
            raise ValueError("default_max_depth must be >= 0.")

    @classmethod
    def from_django(cls) -> "SnapshotSettings":
        return cls(
            auto_snapshot_enabled=parse_bool(
                getattr(django_settings, "SNAPSHOT_AUTO_ENABLED", None),
                default=DEFAULT_AUTO_ENABLED,
            ),
            default_max_depth=int(
                getattr(
                    django_settings,
                    "SNAPSHOT_DEFAULT_MAX_DEPTH",
                    DEFAULT_MAX_DEPTH,
                )
            ),
            exclude_properties=parse_exclude_properties(
                getattr(django_settings, "SNAPSHOT_EXCLUDE_PROPERTIES", None)
            ),
        )
