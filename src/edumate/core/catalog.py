"""Academic catalog: boards, classes, streams and subject lists."""

from __future__ import annotations

BOARDS = ("CBSE", "ICSE", "State Board")

STANDARDS = ("6", "7", "8", "9", "10", "11", "12")

STREAMS = ("Science", "Commerce", "Arts")

# Standards where a stream must be chosen
SENIOR_STANDARDS = ("11", "12")

SUBJECTS: dict[str, tuple[str, ...]] = {
    "General": (
        "Mathematics",
        "Science",
        "English",
        "Hindi",
        "Social Science",
        "Computer Science",
    ),
    "Science": (
        "Physics",
        "Chemistry",
        "Mathematics",
        "Biology",
        "English",
        "Computer Science",
    ),
    "Commerce": (
        "Accountancy",
        "Business Studies",
        "Economics",
        "Mathematics",
        "English",
    ),
    "Arts": (
        "History",
        "Political Science",
        "Geography",
        "Economics",
        "Psychology",
        "English",
    ),
}


def is_senior(standard: str) -> bool:
    return standard in SENIOR_STANDARDS


def available_subjects(standard: str, stream: str | None = None) -> tuple[str, ...]:
    """Subjects offered for a class and stream.

    Junior classes share the general list; senior classes without a known
    stream fall back to Science.
    """
    if not is_senior(standard):
        return SUBJECTS["General"]
    return SUBJECTS.get(stream or "Science", SUBJECTS["Science"])
