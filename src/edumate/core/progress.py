"""Dashboard helpers over the session's results and timetable."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from edumate.core.models import WEEKDAYS, TestResult


@dataclass(frozen=True)
class ScorePoint:
    """One bar of the recent-scores chart."""

    label: str
    percentage: int


def percentage(result: TestResult) -> int:
    """Score as a rounded percentage of the total."""
    if result.total <= 0:
        return 0
    return round(result.score / result.total * 100)


def recent_scores(results: list[TestResult], limit: int = 5) -> list[ScorePoint]:
    """Percentages for the last few results, oldest first.

    Labels are the first three letters of the subject plus "Mock" for
    full-syllabus tests or "Ch" for chapter tests.
    """
    points = []
    for result in results[-limit:] if limit > 0 else []:
        kind = "Mock" if result.is_full_syllabus else "Ch"
        points.append(ScorePoint(label=f"{result.subject[:3]} - {kind}", percentage=percentage(result)))
    return points


def weekday_name(day: date | None = None) -> str:
    day = day or date.today()
    return WEEKDAYS[day.weekday()]


def grade_band(pct: int) -> str:
    """Colour band used when showing a result."""
    if pct > 70:
        return "green"
    if pct > 40:
        return "yellow"
    return "red"
