"""Autograde engine."""

from classbot.engines.autograde.runner import AutogradeRunner

__all__ = ["AutogradeRunner"]
