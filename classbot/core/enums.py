"""Closed-set membership helpers shared by policy checks and DB enum fields."""

from __future__ import annotations

import enum
from collections.abc import Collection
from typing import TypeVar

E = TypeVar("E", bound=enum.Enum)


def is_member(value: str | None, allowed: Collection[str]) -> bool:
    """Return True if *value* is present (not None) and belongs to *allowed*."""
    return value is not None and value in allowed


def enum_values(enum_cls: type[enum.Enum]) -> frozenset[str]:
    return frozenset(member.value for member in enum_cls)


def as_enum(value: str | None, enum_cls: type[E]) -> E | None:
    """Return the *enum_cls* member for *value*, or None if it is not one.

    Unlike ``enum_cls(value)`` this never raises; unexpected values coming
    from webhook payloads simply map to None.
    """
    if not is_member(value, enum_values(enum_cls)):
        return None
    return enum_cls(value)
