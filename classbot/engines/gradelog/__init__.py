"""Grade importer: autograding artifacts into the submissions ledger."""

from classbot.engines.gradelog.artifact import ArtifactError, extract_result, select_artifact
from classbot.engines.gradelog.runner import GradeLogRunner, parse_check_run_id

__all__ = [
    "ArtifactError",
    "GradeLogRunner",
    "extract_result",
    "parse_check_run_id",
    "select_artifact",
]
