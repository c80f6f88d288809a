"""Commit-policy checks over the commits of one push."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from classbot.config.schema import ClassbotConfig
from classbot.core.enums import is_member
from classbot.engines.payloads import Commit, PushEvent
from classbot.engines.watchdog.manifest import ManifestMatcher, resolve_manifest
from classbot.engines.watchdog.models import InvalidFiles, InvalidUsers, PolicyViolation

log = structlog.get_logger("classbot.watchdog")

# Reported in place of a missing GitHub username.
UNDEFINED_USER = "UNDEFINED"


def find_invalid_files(
    commits: Iterable[Commit],
    patterns: Sequence[str],
    committers_allow: Iterable[str] | None = None,
) -> set[str]:
    """Return paths touched by *commits* that fall outside the manifest.

    Commits whose committer is in *committers_allow* are skipped entirely.
    """
    matcher = ManifestMatcher(patterns)
    allowed = frozenset(committers_allow or ())
    invalid: set[str] = set()
    for commit in commits:
        if is_member(commit.committer.username, allowed):
            continue
        invalid.update(matcher.outside(commit.modified))
        invalid.update(matcher.outside(commit.removed))
        invalid.update(matcher.outside(commit.added))
    return invalid


def find_invalid_authors(
    commits: Iterable[Commit],
    authors_allow: Iterable[str],
    committers_allow: Iterable[str] | None = None,
) -> set[str]:
    """Return authors (and committers, if *committers_allow* is given) not allowed.

    Missing usernames are reported as :data:`UNDEFINED_USER`.
    """
    authors = frozenset(authors_allow)
    committers = frozenset(committers_allow) if committers_allow is not None else None

    invalid: set[str] = set()
    for commit in commits:
        author = commit.author.username
        if not is_member(author, authors):
            invalid.add(author or UNDEFINED_USER)
        if committers is not None:
            committer = commit.committer.username
            if not is_member(committer, committers):
                invalid.add(committer or UNDEFINED_USER)
    return invalid


def evaluate_push(
    push: PushEvent,
    config: ClassbotConfig,
    collaborators: Sequence[str] = (),
) -> list[PolicyViolation]:
    """Run the enabled watchdog checks on *push*; both may report.

    *collaborators* are the direct collaborators with push access, who are
    always allowed alongside the repository owner.
    """
    watchdog = config.watchdog
    submission = config.submission
    violations: list[PolicyViolation] = []
    if watchdog is None:
        return violations

    if watchdog.validate_files:
        patterns = resolve_manifest(submission.manifest, push.branch)
        log.debug("watchdog.manifest", ref=push.ref, branch=push.branch, patterns=patterns)
        files = find_invalid_files(push.commits, patterns, submission.commiters_allow)
        if files:
            violations.append(InvalidFiles(files=frozenset(files)))

    if watchdog.validate_author:
        owner = push.repository.owner.login
        authors = [owner, *collaborators, *(submission.authors_allow or [])]
        committers = [
            owner,
            *collaborators,
            *(submission.commiters_allow or submission.authors_allow or []),
        ]
        log.debug("watchdog.allowed_users", authors=authors, committers=committers)
        users = find_invalid_authors(push.commits, authors, committers)
        if users:
            violations.append(InvalidUsers(users=frozenset(users)))

    return violations


def _markdown_id_list(identifiers: Iterable[str]) -> str:
    return ", ".join(f"`{ident}`" for ident in sorted(identifiers))


def render_description(violations: Sequence[PolicyViolation], commits: Iterable[Commit]) -> str:
    """Markdown summary of *violations* followed by the commits of the push."""
    lines = []
    for violation in violations:
        if isinstance(violation, InvalidFiles):
            lines.append(
                f"* The following file(s) were modified: {_markdown_id_list(violation.files)}\n"
            )
        else:
            lines.append(
                f"* The following user(s) commited: {_markdown_id_list(violation.users)}\n"
            )

    details = "Potentially offending commit(s):\n\n"
    for commit in commits:
        details += f"* [{commit.summary}]({commit.url}) (by {commit.author.name})\n"
    return "".join(lines) + "\n" + details
