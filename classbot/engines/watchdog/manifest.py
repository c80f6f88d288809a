"""File-manifest resolution and matching (gitignore-style patterns)."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

import pathspec

from classbot.config.schema import FileManifest

DEFAULT_BRANCH_KEY = "*"

_COMMENT_RE = re.compile(r"#.*$")


def _split_patterns(text: str) -> list[str]:
    patterns = []
    for line in text.split("\n"):
        line = _COMMENT_RE.sub("", line).strip()
        if line:
            patterns.append(line)
    return patterns


def resolve_manifest(manifest: FileManifest | None, branch: str | None = None) -> list[str]:
    """Return the pattern list that applies to *branch*.

    A per-branch manifest falls back to its ``"*"`` entry, and to no patterns
    at all (nothing allowed) if that is missing too.  Multi-line string
    patterns are split into lines with ``#`` comments and blank lines removed.
    """
    if branch is None:
        branch = DEFAULT_BRANCH_KEY

    if isinstance(manifest, dict):
        patterns = manifest.get(branch)
        if patterns is None:
            patterns = manifest.get(DEFAULT_BRANCH_KEY)
    else:
        patterns = manifest

    if patterns is None:
        return []
    if isinstance(patterns, str):
        return _split_patterns(patterns)
    return list(patterns)


class ManifestMatcher:
    """Tests paths against a compiled manifest.

    The manifest lists what submissions *may* touch; it is compiled the same
    way git compiles a ``.gitignore`` (last matching pattern wins, ``!``
    negates), and a path matched by it is inside the manifest.
    """

    def __init__(self, patterns: Sequence[str]) -> None:
        self.patterns = list(patterns)
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def is_outside_manifest(self, path: str) -> bool:
        return not self._spec.match_file(path)

    def outside(self, paths: Iterable[str]) -> list[str]:
        return [p for p in paths if self.is_outside_manifest(p)]
