"""Tests for the grade importer (artifact handling + GradeLogRunner)."""

from __future__ import annotations

import io
import json
import zipfile
from unittest.mock import AsyncMock

import pytest

from classbot.config.loader import validate_config
from classbot.core.github_client import PayloadTooLargeError
from classbot.dao.assignment_dao import AssignmentDAO
from classbot.dao.submission_dao import SubmissionDAO
from classbot.engines.gradelog.artifact import ArtifactError, extract_result, select_artifact
from classbot.engines.gradelog.runner import GradeLogRunner, parse_check_run_id
from classbot.engines.payloads import WorkflowJobEvent
from classbot.services.assignment_service import AssignmentService
from classbot.services.submission_service import SubmissionService

OWNER = "cs101-fall"
REPO = "hw-1-alice"
HEAD = "e" * 40
RESULT = {"score": 70, "max_score": 100, "execution_time": 3.5, "tests": [{"name": "t1"}]}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _zip(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buf.getvalue()


def _event(name: str = "Autograding", conclusion: str = "success") -> WorkflowJobEvent:
    return WorkflowJobEvent.model_validate(
        {
            "action": "completed",
            "repository": {"name": REPO, "owner": {"login": OWNER, "id": 9001}},
            "workflow_job": {
                "id": 1,
                "run_id": 2,
                "name": name,
                "head_sha": HEAD,
                "status": "completed",
                "conclusion": conclusion,
                "completed_at": "2026-02-03T04:05:06Z",
                "check_run_url": f"https://api.github.com/repos/{OWNER}/{REPO}/check-runs/4242",
            },
        }
    )


def _client(*, artifacts=None, archive: bytes | None = None, author=None) -> AsyncMock:
    client = AsyncMock()
    if artifacts is None:
        artifacts = [{"id": 77, "workflow_run": {"head_sha": HEAD}}]
    if author is None:
        author = {"login": "alice", "id": 555}

    async def get(path, params=None):
        if path.endswith(f"/commits/{HEAD}"):
            return {"sha": HEAD, "author": author}
        if path.endswith("/actions/artifacts"):
            assert params == {"name": "autograde"}
            return {"total_count": len(artifacts), "artifacts": artifacts}
        raise AssertionError(f"unexpected GET {path}")

    client.get.side_effect = get
    client.download.return_value = (
        archive if archive is not None else _zip({"result.json": json.dumps(RESULT).encode()})
    )
    return client


def _runner(client, max_bytes: int | None = None) -> GradeLogRunner:
    return GradeLogRunner(
        client,
        SubmissionService(SubmissionDAO()),
        AssignmentService(AssignmentDAO()),
        max_bytes=max_bytes,
    )


CONFIG = validate_config({"gradelog": {}})


# ── artifact selection ────────────────────────────────────────────────────


class TestSelectArtifact:
    def test_none(self):
        assert select_artifact([], HEAD) is None

    def test_single(self):
        assert select_artifact([{"id": 1}], HEAD) == {"id": 1}

    def test_prefers_matching_head_sha(self):
        artifacts = [
            {"id": 1, "workflow_run": {"head_sha": "x"}, "created_at": "2026-02-02T00:00:00Z"},
            {"id": 2, "workflow_run": {"head_sha": HEAD}, "created_at": "2026-02-01T00:00:00Z"},
        ]
        assert select_artifact(artifacts, HEAD)["id"] == 2

    def test_falls_back_to_newest(self):
        artifacts = [
            {"id": 1, "workflow_run": {"head_sha": "x"}, "created_at": "2026-02-01T00:00:00Z"},
            {"id": 2, "workflow_run": {"head_sha": "y"}, "created_at": "2026-02-03T00:00:00Z"},
            {"id": 3, "workflow_run": {"head_sha": "z"}},
        ]
        assert select_artifact(artifacts, HEAD)["id"] == 2


# ── artifact extraction ───────────────────────────────────────────────────


class TestExtractResult:
    def test_reads_first_json_member(self):
        data = _zip({"log.txt": b"hello", "result.json": b'{"score": 1}'})
        assert extract_result(data) == {"score": 1}

    def test_archive_over_limit(self):
        data = _zip({"result.json": b'{"score": 1}'})
        with pytest.raises(ArtifactError, match="limit"):
            extract_result(data, max_bytes=len(data) - 1)

    def test_member_over_limit(self):
        # compresses well, so the archive itself stays small
        data = _zip({"result.json": b'{"pad": "' + b" " * 5000 + b'"}'})
        assert len(data) < 1000
        with pytest.raises(ArtifactError, match="limit"):
            extract_result(data, max_bytes=1000)

    def test_not_a_zip(self):
        with pytest.raises(ArtifactError, match="invalid artifact archive"):
            extract_result(b"definitely not a zip")

    def test_no_json_member(self):
        with pytest.raises(ArtifactError, match="no JSON"):
            extract_result(_zip({"log.txt": b"x"}))

    def test_invalid_json(self):
        with pytest.raises(ArtifactError, match="invalid JSON"):
            extract_result(_zip({"result.json": b"{nope"}))

    def test_not_an_object(self):
        with pytest.raises(ArtifactError, match="JSON object"):
            extract_result(_zip({"result.json": b"[1, 2]"}))


class TestParseCheckRunId:
    def test_parses(self):
        assert parse_check_run_id("https://api.github.com/repos/o/r/check-runs/4242") == 4242

    def test_missing(self):
        assert parse_check_run_id(None) is None
        assert parse_check_run_id("https://api.github.com/repos/o/r") is None


# ── GradeLogRunner ────────────────────────────────────────────────────────


class TestGradeLogRunner:
    async def test_records_submission(self, session, assignment):
        client = _client()
        submission_id = await _runner(client).run(session, _event(), CONFIG)

        assert submission_id is not None
        sub = await SubmissionDAO().get_by_id(session, submission_id)
        assert sub.userid == 555
        assert sub.assignment_id == assignment.id
        assert sub.score == 70
        assert sub.max_score == 100
        code = await SubmissionDAO().get_code_by_head_sha(session, HEAD)
        assert code.repo == REPO
        assert code.check_run_id == 4242
        assert code.status == "success"
        assert code.scored_by == "action"
        assert code.execution_time == 3.5
        assert code.autograde == RESULT

        path = client.download.call_args.args[0]
        assert path == f"/repos/{OWNER}/{REPO}/actions/artifacts/77/zip"

    async def test_already_recorded_is_noop(self, session, assignment):
        await _runner(_client()).run(session, _event(), CONFIG)

        client = _client()
        assert await _runner(client).run(session, _event(), CONFIG) is None
        client.get.assert_not_called()
        client.download.assert_not_called()
        assert await SubmissionDAO().count(session) == 1

    async def test_other_job_skipped(self, session, assignment):
        client = _client()
        assert await _runner(client).run(session, _event(name="Lint"), CONFIG) is None
        client.get.assert_not_called()

    async def test_unknown_conclusion_stored_as_null(self, session, assignment):
        submission_id = await _runner(_client()).run(
            session, _event(conclusion="cancelled"), CONFIG
        )
        code = await SubmissionDAO().get_code_by_head_sha(session, HEAD)
        assert submission_id is not None
        assert code.status is None

    async def test_missing_author(self, session, assignment):
        client = _client(author={})
        assert await _runner(client).run(session, _event(), CONFIG) is None
        client.download.assert_not_called()

    async def test_assignment_not_found(self, session):
        client = _client()
        assert await _runner(client).run(session, _event(), CONFIG) is None
        client.download.assert_not_called()
        assert await SubmissionDAO().count(session) == 0

    async def test_no_artifact(self, session, assignment):
        client = _client(artifacts=[])
        assert await _runner(client).run(session, _event(), CONFIG) is None
        client.download.assert_not_called()

    async def test_oversized_download(self, session, assignment):
        client = _client()
        client.download.side_effect = PayloadTooLargeError(20_000_000, 10_000_000)
        assert await _runner(client).run(session, _event(), CONFIG) is None
        assert await SubmissionDAO().count(session) == 0

    async def test_corrupt_archive(self, session, assignment):
        client = _client(archive=b"garbage")
        assert await _runner(client).run(session, _event(), CONFIG) is None
        assert await SubmissionDAO().count(session) == 0

    async def test_non_numeric_score(self, session, assignment):
        archive = _zip({"result.json": b'{"score": "lots"}'})
        assert await _runner(_client(archive=archive)).run(session, _event(), CONFIG) is None

    async def test_disabled(self, session, assignment):
        client = _client()
        config = validate_config({"gradelog": {"disabled": True}})
        assert await _runner(client).run(session, _event(), config) is None
        client.get.assert_not_called()
