"""Score badge rendering."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

Points = Union[int, float, str]

UNKNOWN = "??"

GREY = "#aaa"
RED = "#fe3737"
ORANGE = "#fe7d37"
GREEN = "#35f235"

# Summary line written by the classroom autograding action.
_POINTS_RE = re.compile(r"^Points\s+(?P<score>\d+)\s*/\s*(?P<max_score>\d+)")

_BADGE_SVG = """\
<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" width="140" height="24" role="img" aria-label="{aria_label}">
  <linearGradient id="s" x2="0" y2="100%">
    <stop offset="0" stop-color="#ddd" stop-opacity=".2" />
    <stop offset="1" stop-opacity=".2" />
  </linearGradient>
  <clipPath id="r">
    <rect width="140" height="24" rx="4" fill="#fff" />
  </clipPath>
  <g clip-path="url(#r)">
    <rect width="70" height="24" fill="#666" />
    <rect x="70" width="70" height="24" fill="{color}" />
    <rect width="140" height="24" fill="url(#s)" />
  </g>
  <g fill="#fff" text-anchor="middle" font-family="-apple-system,BlinkMacSystemFont,'Segoe UI','Noto Sans',Helvetica,Arial,sans-serif,'Apple Color Emoji','Segoe UI Emoji'"
    text-rendering="geometricPrecision" font-size="140">
    <g font-size="140">
      <text aria-hidden="true" x="350" y="160" fill="#010101" fill-opacity=".3" transform="scale(.1)" textLength="580">{title}</text>
      <text x="350" y="160" transform="scale(.1)" fill="#fff" textLength="580">{title}</text>
    </g>
    <text aria-hidden="true" x="1050" y="170" fill="#010101" fill-opacity=".3" transform="scale(.1)" textLength="580">{value}</text>
    <text x="1050" y="170" transform="scale(.1)" fill="#fff" textLength="580">{value}</text>
  </g>
</svg>"""


@dataclass(frozen=True)
class Score:
    score: Points = UNKNOWN
    max_score: Points = UNKNOWN


def _is_number(value: Points) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def badge_color(points: Points, max_points: Points = 100) -> str:
    """Grey unless *points* is numeric; red at zero, orange below max, green at max."""
    if not _is_number(points):
        return GREY
    bound = max_points if _is_number(max_points) and max_points else math.inf
    if points == 0:
        return RED
    if points < bound:
        return ORANGE
    if points == bound:
        return GREEN
    return GREY


def create_points_badge(points: Points, max_points: Points = 100) -> str:
    """Return an SVG badge showing ``points / max_points``."""
    return _BADGE_SVG.format(
        aria_label=f"{points} out of {max_points} points",
        color=badge_color(points, max_points),
        title="\N{DIRECT HIT} score",
        value=f"{points} / {max_points}",
    )


def parse_autograding_score(conclusion: str | None, summary: str | None) -> Score:
    """Extract the score from a completed autograding check run.

    ``success`` and ``failure`` runs report ``Points <n>/<m>`` in their
    summary; a timed-out run scores zero; anything else is unknown.
    """
    if conclusion == "timed_out":
        return Score(score=0)
    if conclusion not in ("success", "failure"):
        return Score()

    match = _POINTS_RE.match(summary or "")
    if match is None:
        return Score()
    return Score(score=int(match["score"]), max_score=int(match["max_score"]))
