"""Badges engine: SVG score badge on the status branch."""

from classbot.engines.badges.badge import Score, create_points_badge, parse_autograding_score
from classbot.engines.badges.runner import BadgesRunner

__all__ = [
    "BadgesRunner",
    "Score",
    "create_points_badge",
    "parse_autograding_score",
]
