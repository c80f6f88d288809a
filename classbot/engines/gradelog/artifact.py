"""Autograde artifact selection and bounded extraction."""

from __future__ import annotations

import io
import json
import os
import zipfile
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

log = structlog.get_logger("classbot.gradelog")

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class ArtifactError(Exception):
    """The artifact archive is oversized, corrupt or has no usable JSON result."""


class AutogradeResult(BaseModel):
    """Result JSON written by the autograding workflow.

    Only the score fields are interpreted; the full document is stored.
    """

    model_config = ConfigDict(extra="allow")

    score: float | None = None
    max_score: float | None = None
    execution_time: float | None = None


def max_artifact_bytes() -> int:
    """Byte limit for archives and their members (``CLASSBOT_ARTIFACT_MAX_BYTES``)."""
    return int(os.environ.get("CLASSBOT_ARTIFACT_MAX_BYTES", DEFAULT_MAX_BYTES))


def _created_at(artifact: dict[str, Any]) -> datetime:
    value = artifact.get("created_at")
    if not value:
        return datetime.min
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def select_artifact(
    artifacts: Sequence[dict[str, Any]], head_sha: str
) -> dict[str, Any] | None:
    """Pick the artifact produced for *head_sha*.

    With several candidates, prefer the one whose workflow run was for
    *head_sha*, else the most recently created one.
    """
    if not artifacts:
        return None
    if len(artifacts) == 1:
        return artifacts[0]

    log.warning("gradelog.multiple_artifacts", count=len(artifacts), head_sha=head_sha)
    for artifact in artifacts:
        if (artifact.get("workflow_run") or {}).get("head_sha") == head_sha:
            return artifact
    log.warning("gradelog.head_sha_unmatched", head_sha=head_sha)
    return max(artifacts, key=_created_at)


def extract_result(data: bytes, max_bytes: int = DEFAULT_MAX_BYTES) -> dict[str, Any]:
    """Return the parsed JSON result stored in the artifact zip *data*.

    The first ``*.json`` member is used.  Raises :class:`ArtifactError` if the
    archive or that member exceeds *max_bytes*, the archive is not a valid
    zip, no JSON member exists, or the member is not a JSON object.
    """
    if len(data) > max_bytes:
        raise ArtifactError(f"artifact archive is {len(data)} bytes, limit is {max_bytes}")

    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            members = [
                info
                for info in archive.infolist()
                if not info.is_dir() and info.filename.endswith(".json")
            ]
            if not members:
                raise ArtifactError("no JSON file in artifact")
            if len(members) > 1:
                log.warning(
                    "gradelog.multiple_json_members",
                    members=[m.filename for m in members],
                    using=members[0].filename,
                )
            member = members[0]
            if member.file_size > max_bytes:
                raise ArtifactError(
                    f"{member.filename} is {member.file_size} bytes, limit is {max_bytes}"
                )
            with archive.open(member) as fh:
                raw = fh.read(max_bytes + 1)
    except zipfile.BadZipFile as exc:
        raise ArtifactError(f"invalid artifact archive: {exc}") from exc

    if len(raw) > max_bytes:
        raise ArtifactError(f"{member.filename} exceeds limit of {max_bytes} bytes")
    try:
        result = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ArtifactError(f"{member.filename}: invalid JSON: {exc}") from exc
    if not isinstance(result, dict):
        raise ArtifactError(f"{member.filename}: expected a JSON object")
    return result
