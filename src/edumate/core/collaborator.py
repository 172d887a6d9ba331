"""AI collaborator: question generation, grading, notes, schedules, search.

The rest of the system only sees the Collaborator protocol. Every call is
fallible and slow; failures surface as CollaboratorError and never touch
stored records.

LLMCollaborator implements the protocol over the OpenAI-compatible
LLMClient, with prompts from the prompt registry and pydantic validation
of every JSON answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from edumate.core.errors import CollaboratorError
from edumate.core.models import Profile, Slot, SlotCategory, TimeTableEntry, WEEKDAYS
from edumate.llm.client import LLMClient, LLMError
from edumate.prompts.registry import get_prompt
from edumate.utils.text_utils import strip_think

logger = structlog.get_logger(__name__)


# =============================================================================
# RESPONSE TYPES
# =============================================================================


@dataclass(frozen=True)
class GradeReport:
    """Collaborator verdict on an answer sheet."""

    score: float
    total: float
    feedback: str
    correct_answers: str


@dataclass(frozen=True)
class SearchResult:
    """A study resource link."""

    title: str
    url: str


class _QuestionPaper(BaseModel):
    questions: list[str] = Field(min_length=1)

    @field_validator("questions")
    @classmethod
    def _non_blank(cls, value: list[str]) -> list[str]:
        cleaned = [q.strip() for q in value if q and q.strip()]
        if not cleaned:
            raise ValueError("no usable questions")
        return cleaned


class _GradePayload(BaseModel):
    score: float = Field(ge=0)
    total: float = Field(gt=0)
    feedback: str = ""
    correct_answers: str = ""

    @field_validator("correct_answers", mode="before")
    @classmethod
    def _join_answers(cls, value: Any) -> Any:
        if isinstance(value, list):
            return "\n".join(str(v) for v in value)
        return value


class _SlotPayload(BaseModel):
    time: str
    activity: str
    type: SlotCategory = SlotCategory.STUDY


class _DayPayload(BaseModel):
    day: str
    slots: list[_SlotPayload] = Field(default_factory=list)


class _TimetablePayload(BaseModel):
    timetable: list[_DayPayload] = Field(min_length=1)


class _SearchPayload(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)


# =============================================================================
# PROTOCOL
# =============================================================================


class Collaborator(Protocol):
    """External content generation and grading service."""

    def generate_questions(
        self,
        subject: str,
        chapter: str | None,
        full_syllabus: bool,
        profile: Profile,
    ) -> list[str]: ...

    def grade_submission(
        self,
        questions: list[str],
        image: bytes,
        profile: Profile,
    ) -> GradeReport: ...

    def generate_notes(self, subject: str, chapter: str, profile: Profile) -> str: ...

    def generate_schedule(
        self,
        school_end_time: str,
        profile: Profile,
    ) -> list[TimeTableEntry]: ...

    def search_resources(self, query: str, profile: Profile) -> list[SearchResult]: ...

    def solve_doubt(self, question: str, history: str, profile: Profile) -> str: ...


# =============================================================================
# HELPERS
# =============================================================================


def enhance_search_query(query: str, profile: Profile) -> str:
    """Add board, class and exam-paper hints to a search query."""
    return (
        f"{query.strip()} for {profile.board} Class {profile.standard} "
        "previous year question papers question bank"
    )


def _profile_vars(profile: Profile) -> dict[str, str]:
    return {
        "name": profile.name,
        "board": profile.board,
        "standard": profile.standard,
        "stream_clause": f" ({profile.stream})" if profile.stream else "",
        "subjects": ", ".join(profile.subjects) or "all core subjects",
    }


def _normalize_day(day: str) -> str | None:
    day = day.strip().capitalize()
    return day if day in WEEKDAYS else None


# =============================================================================
# LLM IMPLEMENTATION
# =============================================================================


class LLMCollaborator:
    """Collaborator backed by an OpenAI-compatible chat model."""

    def __init__(
        self,
        client: LLMClient | None = None,
        chapter_minutes: int = 60,
        full_syllabus_minutes: int = 180,
    ):
        self._client = client
        self.chapter_minutes = chapter_minutes
        self.full_syllabus_minutes = full_syllabus_minutes

    @property
    def client(self) -> LLMClient:
        # Created lazily so commands that never call the model work offline
        if self._client is None:
            self._client = LLMClient()
        return self._client

    def _json(
        self,
        operation: str,
        system_prompt: str,
        user_message: str,
        images: list[bytes] | None = None,
    ) -> dict[str, Any]:
        try:
            return self.client.simple_json(system_prompt, user_message, images=images)
        except LLMError as e:
            logger.error("collaborator.call_failed", operation=operation, error=str(e))
            raise CollaboratorError(f"AI service failed during {operation}: {e}") from e

    def _text(self, operation: str, system_prompt: str, user_message: str) -> str:
        try:
            content = self.client.simple_chat(system_prompt, user_message)
        except LLMError as e:
            logger.error("collaborator.call_failed", operation=operation, error=str(e))
            raise CollaboratorError(f"AI service failed during {operation}: {e}") from e

        content = strip_think(content)
        if not content:
            raise CollaboratorError(f"AI service returned nothing for {operation}.")
        return content

    def generate_questions(
        self,
        subject: str,
        chapter: str | None,
        full_syllabus: bool,
        profile: Profile,
    ) -> list[str]:
        variables = _profile_vars(profile)
        if full_syllabus:
            scope, scope_detail = "full syllabus", f"the complete Class {profile.standard} syllabus"
            duration = self.full_syllabus_minutes
        else:
            scope, scope_detail = "chapter", f"the chapter \"{chapter}\" only"
            duration = self.chapter_minutes

        data = self._json(
            "question generation",
            get_prompt("exam/generate_questions_system", **variables),
            get_prompt(
                "exam/generate_questions_user",
                subject=subject,
                scope=scope,
                scope_detail=scope_detail,
                duration_minutes=duration,
            ),
        )
        try:
            paper = _QuestionPaper.model_validate(data)
        except PydanticValidationError as e:
            raise CollaboratorError("AI service returned an invalid question paper.") from e

        logger.info(
            "collaborator.questions_generated",
            subject=subject,
            full_syllabus=full_syllabus,
            count=len(paper.questions),
        )
        return paper.questions

    def grade_submission(
        self,
        questions: list[str],
        image: bytes,
        profile: Profile,
    ) -> GradeReport:
        numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(questions, 1))
        data = self._json(
            "grading",
            get_prompt("exam/grade_system", **_profile_vars(profile)),
            get_prompt("exam/grade_user", questions=numbered),
            images=[image],
        )
        try:
            payload = _GradePayload.model_validate(data)
        except PydanticValidationError as e:
            raise CollaboratorError("AI service returned an invalid grade.") from e

        if payload.score > payload.total:
            raise CollaboratorError("AI service awarded more marks than the paper allows.")

        return GradeReport(
            score=payload.score,
            total=payload.total,
            feedback=payload.feedback,
            correct_answers=payload.correct_answers,
        )

    def generate_notes(self, subject: str, chapter: str, profile: Profile) -> str:
        return self._text(
            "notes generation",
            get_prompt("notes/generate_system", chapter=chapter, **_profile_vars(profile)),
            get_prompt("notes/generate_user", subject=subject, chapter=chapter),
        )

    def generate_schedule(
        self,
        school_end_time: str,
        profile: Profile,
    ) -> list[TimeTableEntry]:
        data = self._json(
            "timetable generation",
            get_prompt("schedule/generate_system", **_profile_vars(profile)),
            get_prompt("schedule/generate_user", school_end_time=school_end_time),
        )
        try:
            payload = _TimetablePayload.model_validate(data)
        except PydanticValidationError as e:
            raise CollaboratorError("AI service returned an invalid timetable.") from e

        entries: dict[str, TimeTableEntry] = {}
        for day_payload in payload.timetable:
            day = _normalize_day(day_payload.day)
            if day is None or day in entries:
                logger.warning("collaborator.timetable_day_skipped", day=day_payload.day)
                continue
            entries[day] = TimeTableEntry(
                day=day,
                slots=[
                    Slot(time=s.time, activity=s.activity, category=s.type)
                    for s in day_payload.slots
                ],
            )

        return [entries[day] for day in WEEKDAYS if day in entries]

    def search_resources(self, query: str, profile: Profile) -> list[SearchResult]:
        data = self._json(
            "resource search",
            get_prompt("resources/search_system"),
            get_prompt("resources/search_user", query=enhance_search_query(query, profile)),
        )
        try:
            payload = _SearchPayload.model_validate(data)
        except PydanticValidationError as e:
            raise CollaboratorError("AI service returned invalid search results.") from e
        return payload.results

    def solve_doubt(self, question: str, history: str, profile: Profile) -> str:
        return self._text(
            "doubt solving",
            get_prompt("doubts/solve_system", **_profile_vars(profile)),
            get_prompt("doubts/solve_user", history=history, question=question),
        )
