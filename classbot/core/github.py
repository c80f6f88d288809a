"""GitHub naming helpers (repository names, refs, bot identity)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

_BRANCH_REF_RE = re.compile(r"^refs/heads/(?P<branch>.+)$")
_UNKNOWN_USER_SPLIT_RE = re.compile(r"^(?P<assignment>[^-]*)-(?P<username>.*)$")


@dataclass(frozen=True)
class AssignmentRepo:
    """Assignment name and student username encoded in a Classroom repo name."""

    assignment: str
    username: str


def parse_assignment_repo(repo: str, username: str | None = None) -> AssignmentRepo | None:
    """Split a GitHub Classroom repo name ``{assignment}-{username}``.

    When *username* is known the repo name must end with ``-{username}`` and
    everything before that suffix is the assignment name (which may itself
    contain dashes).  Without a username the best we can do is to split on
    the first dash.

    Returns None if the name does not follow the convention.
    """
    if username is None:
        match = _UNKNOWN_USER_SPLIT_RE.match(repo)
    else:
        match = re.match(rf"^(?P<assignment>.*)-(?P<username>{re.escape(username)})$", repo)
    if match is None:
        return None
    return AssignmentRepo(assignment=match["assignment"], username=match["username"])


def branch_from_ref(ref: str) -> str | None:
    """Return the branch name of a ``refs/heads/...`` ref, None for tags etc."""
    match = _BRANCH_REF_RE.match(ref)
    return match["branch"] if match else None


def bot_git_identity() -> dict[str, str]:
    """Committer identity used for commits authored by the bot.

    Reads ``CLASSBOT_USERNAME`` / ``CLASSBOT_USERID`` and builds the GitHub
    noreply address from them.
    """
    name = os.environ.get("CLASSBOT_USERNAME", "classbot")
    userid = os.environ.get("CLASSBOT_USERID", "0")
    return {"name": name, "email": f"{userid}+{name}@users.noreply.github.com"}
