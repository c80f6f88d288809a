"""Validated webhook payload shapes.

Only the fields the components read are modelled; everything else GitHub
sends is ignored.  Payloads are validated once at the dispatcher boundary.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from classbot.core.github import branch_from_ref


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitActor(_Payload):
    name: str = ""
    email: str | None = None
    username: str | None = None


class Commit(_Payload):
    id: str
    message: str = ""
    url: str = ""
    author: GitActor = Field(default_factory=GitActor)
    committer: GitActor = Field(default_factory=GitActor)
    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]


class RepositoryOwner(_Payload):
    login: str
    id: int


class Repository(_Payload):
    name: str
    owner: RepositoryOwner

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


class Pusher(_Payload):
    name: str
    email: str | None = None


class RepositoryEvent(_Payload):
    action: str | None = None
    repository: Repository


class PushEvent(RepositoryEvent):
    ref: str
    after: str
    pusher: Pusher
    commits: list[Commit] = Field(default_factory=list)  # oldest first

    @property
    def branch(self) -> str | None:
        return branch_from_ref(self.ref)


class CheckRunOutput(_Payload):
    title: str | None = None
    summary: str | None = None
    text: str | None = None


class CheckRun(_Payload):
    id: int
    name: str
    head_sha: str
    status: str | None = None
    conclusion: str | None = None
    output: CheckRunOutput = Field(default_factory=CheckRunOutput)


class CheckRunEvent(RepositoryEvent):
    check_run: CheckRun


class CheckSuite(_Payload):
    id: int
    head_branch: str | None = None
    head_sha: str


class CheckSuiteEvent(RepositoryEvent):
    check_suite: CheckSuite


class WorkflowJob(_Payload):
    id: int
    run_id: int | None = None
    name: str
    head_sha: str
    status: str | None = None
    conclusion: str | None = None
    completed_at: datetime | None = None
    check_run_url: str | None = None


class WorkflowJobEvent(RepositoryEvent):
    workflow_job: WorkflowJob
