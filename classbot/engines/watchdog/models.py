"""Data models for the watchdog engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

ViolationKind = Literal["invalid-files", "invalid-users"]


@dataclass(frozen=True)
class InvalidFiles:
    """Commits touched paths outside the submission manifest."""

    files: frozenset[str]
    kind: ViolationKind = field(default="invalid-files", init=False)
    description: str = field(default="Commit modified unexpected files", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "description": self.description, "files": sorted(self.files)}


@dataclass(frozen=True)
class InvalidUsers:
    """Commits authored or committed by users outside the allow-lists."""

    users: frozenset[str]
    kind: ViolationKind = field(default="invalid-users", init=False)
    description: str = field(default="Commit authored by unexpected users", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "description": self.description, "users": sorted(self.users)}


PolicyViolation = Union[InvalidFiles, InvalidUsers]


@dataclass
class WatchdogIssue:
    """The issue created or updated for a push."""

    number: int
    title: str
    body: str
    html_url: str | None = None
    created: bool = False


@dataclass
class WatchdogResult:
    """Summary of one watchdog run over a push."""

    violations: list[PolicyViolation] = field(default_factory=list)
    issue: WatchdogIssue | None = None
    alert_id: int | None = None
    commented: bool = False
