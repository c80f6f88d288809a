"""Pydantic models for the layered classbot.yml configuration."""

from __future__ import annotations

from typing import Union

from chevron.tokenizer import ChevronError, tokenize
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Either a flat pattern list / multi-line string, or a per-branch mapping of
# those ("*" is the fallback branch).
FilePatterns = Union[list[str], str]
FileManifest = Union[FilePatterns, dict[str, FilePatterns]]


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ComponentConfig(_Section):
    """Every component section can be switched off without deleting it."""

    disabled: bool = False


class ClassroomConfig(_Section):
    staff: list[str] = Field(default_factory=list)


class SubmissionConfig(_Section):
    branch: str = "main"
    manifest: FileManifest = Field(default_factory=list)
    authors_allow: list[str] | None = None
    commiters_allow: list[str] | None = None


class IssueConfig(_Section):
    label: str
    title: str
    template: str
    assignees: list[str] = Field(default_factory=list)
    extra_labels: list[str] = Field(default_factory=list)

    @field_validator("template")
    @classmethod
    def _template_valid(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("missing (or blank) watchdog issue template")
        try:
            for _token in tokenize(value):
                pass
        except ChevronError as exc:
            raise ValueError(f"watchdog issue template: {exc}") from exc
        return value


class WatchdogConfig(ComponentConfig):
    validate_files: bool = False
    validate_author: bool = False
    timestamp_comment: bool = False
    issue: IssueConfig


class AutogradeSkeleton(_Section):
    repo: str | None = None
    branch: str | None = None


class AutogradeConfig(ComponentConfig):
    skeleton: AutogradeSkeleton | None = None


class BadgesConfig(ComponentConfig):
    branch: str = "status"
    path: str = "badges"


class GradeLogConfig(ComponentConfig):
    job_name: str = "Autograding"
    artifact_name: str = "autograde"


class WorkflowsConfig(ComponentConfig):
    source_path: str
    destination_path: str
    pusher_filter: str = ".*"
    message_filter: str = ".*"


class ClassbotConfig(_Section):
    """Fully merged, validated configuration for one repository.

    A component whose section is ``None`` is disabled.
    """

    classroom: ClassroomConfig = Field(default_factory=ClassroomConfig)
    submission: SubmissionConfig = Field(default_factory=SubmissionConfig)
    watchdog: WatchdogConfig | None = None
    autograde: AutogradeConfig | None = None
    badges: BadgesConfig | None = None
    gradelog: GradeLogConfig | None = None
    workflows: WorkflowsConfig | None = None


def is_component_enabled(section: ComponentConfig | None) -> bool:
    """A component runs only when its section is present and not disabled."""
    return section is not None and not section.disabled
