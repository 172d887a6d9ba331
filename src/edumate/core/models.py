"""Record types persisted per account.

- Account: registration record, including the credential
- Profile: credential-free projection held by the session
- TestResult: one graded mock exam (immutable)
- TimeTableEntry / Slot: recurring weekly schedule
- Note: saved study notes
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# Chapter label stored for full-syllabus mock tests
FULL_SYLLABUS = "Full Syllabus"

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def new_record_id() -> str:
    return uuid.uuid4().hex[:12]


# =============================================================================
# ACCOUNT
# =============================================================================


@dataclass(frozen=True)
class Profile:
    """Credential-free view of an account."""

    email: str
    name: str
    guardian_contact: str
    board: str
    standard: str
    stream: str | None = None
    subjects: tuple[str, ...] = ()
    is_registered: bool = True

    @property
    def identity(self) -> str:
        return self.email

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "email": self.email,
            "name": self.name,
            "guardian_contact": self.guardian_contact,
            "board": self.board,
            "standard": self.standard,
            "stream": self.stream,
            "subjects": list(self.subjects),
            "is_registered": self.is_registered,
        }


@dataclass(frozen=True)
class Account:
    """Stored account record. Never mutated after registration."""

    email: str
    name: str
    credential: str
    guardian_contact: str
    board: str
    standard: str
    stream: str | None = None
    subjects: tuple[str, ...] = ()
    is_registered: bool = True

    @property
    def identity(self) -> str:
        return self.email

    def to_profile(self) -> Profile:
        """Strip the credential."""
        return Profile(
            email=self.email,
            name=self.name,
            guardian_contact=self.guardian_contact,
            board=self.board,
            standard=self.standard,
            stream=self.stream,
            subjects=self.subjects,
            is_registered=self.is_registered,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = self.to_profile().to_dict()
        data["credential"] = self.credential
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Account:
        return cls(
            email=data["email"],
            name=data["name"],
            credential=data["credential"],
            guardian_contact=data.get("guardian_contact", ""),
            board=data.get("board", ""),
            standard=data.get("standard", ""),
            stream=data.get("stream"),
            subjects=tuple(data.get("subjects", [])),
            is_registered=data.get("is_registered", True),
        )


# =============================================================================
# TEST RESULTS
# =============================================================================


@dataclass(frozen=True)
class TestResult:
    """Graded mock exam."""

    __test__ = False  # not a pytest class

    id: str
    subject: str
    chapter: str
    score: float
    total: float
    feedback: str
    correct_answers: str
    created_at: str

    @property
    def is_full_syllabus(self) -> bool:
        return self.chapter == FULL_SYLLABUS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "subject": self.subject,
            "chapter": self.chapter,
            "score": self.score,
            "total": self.total,
            "feedback": self.feedback,
            "correct_answers": self.correct_answers,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestResult:
        return cls(
            id=data["id"],
            subject=data["subject"],
            chapter=data["chapter"],
            score=data["score"],
            total=data["total"],
            feedback=data.get("feedback", ""),
            correct_answers=data.get("correct_answers", ""),
            created_at=data.get("created_at", ""),
        )


# =============================================================================
# TIMETABLE
# =============================================================================


class SlotCategory(str, Enum):
    """Kind of activity in a timetable slot."""

    STUDY = "study"
    BREAK = "break"
    MOCK_TEST = "mock-test"


@dataclass
class Slot:
    """One row of a day's timetable."""

    time: str
    activity: str
    category: SlotCategory = SlotCategory.STUDY

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "activity": self.activity,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Slot:
        return cls(
            time=data.get("time", ""),
            activity=data.get("activity", ""),
            category=SlotCategory(data.get("category", data.get("type", "study"))),
        )


@dataclass
class TimeTableEntry:
    """Slots for one recurring weekday."""

    day: str
    slots: list[Slot] = field(default_factory=list)

    def copy(self) -> TimeTableEntry:
        return TimeTableEntry(day=self.day, slots=[replace(s) for s in self.slots])

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "slots": [s.to_dict() for s in self.slots]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimeTableEntry:
        return cls(
            day=data["day"],
            slots=[Slot.from_dict(s) for s in data.get("slots", [])],
        )


# =============================================================================
# NOTES
# =============================================================================


@dataclass(frozen=True)
class Note:
    """Generated study notes for a chapter."""

    id: str
    subject: str
    chapter: str
    content: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "chapter": self.chapter,
            "content": self.content,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Note:
        return cls(
            id=data["id"],
            subject=data.get("subject", ""),
            chapter=data.get("chapter", ""),
            content=data.get("content", ""),
            created_at=data.get("created_at", ""),
        )
