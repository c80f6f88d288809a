"""Watchdog engine: submission policy checks, issue filing and alert ledger."""

from classbot.engines.watchdog.issues import IssueReconciler, render_issue_template
from classbot.engines.watchdog.manifest import ManifestMatcher, resolve_manifest
from classbot.engines.watchdog.models import (
    InvalidFiles,
    InvalidUsers,
    PolicyViolation,
    WatchdogIssue,
    WatchdogResult,
)
from classbot.engines.watchdog.policy import (
    UNDEFINED_USER,
    evaluate_push,
    find_invalid_authors,
    find_invalid_files,
    render_description,
)
from classbot.engines.watchdog.runner import WatchdogRunner

__all__ = [
    "UNDEFINED_USER",
    "InvalidFiles",
    "InvalidUsers",
    "IssueReconciler",
    "ManifestMatcher",
    "PolicyViolation",
    "WatchdogIssue",
    "WatchdogResult",
    "WatchdogRunner",
    "evaluate_push",
    "find_invalid_authors",
    "find_invalid_files",
    "render_description",
    "render_issue_template",
    "resolve_manifest",
]
