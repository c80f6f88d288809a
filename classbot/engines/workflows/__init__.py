"""Workflows engine: one-time autograding workflow bootstrap."""

from classbot.engines.workflows.runner import WorkflowSetupRunner

__all__ = ["WorkflowSetupRunner"]
