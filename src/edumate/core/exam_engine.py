"""Mock exam session engine.

Stages:

    setup -> loading -> active -> upload -> grading -> result -> setup

- setup -> loading: start(subject, chapter | full_syllabus) asks the
  collaborator for a question paper
- loading -> active: questions arrive, countdown armed (chapter 60 min,
  full syllabus 180 min by default)
- active -> upload: countdown reaches zero on a tick, or finish_early()
- upload -> grading: submit(image) sends the answer sheet for grading
- grading -> result: grade arrives, TestResult built and persisted once
- result -> setup: acknowledge()

The engine only changes stage in response to discrete events (start,
tick, finish_early, submit, acknowledge, abandon). Time comes from an
injectable monotonic clock; elapsed time, not the number of ticks, sets
the remaining budget. CountdownTicker delivers ticks from a background
thread.

Collaborator failures never advance the stage: a failed generation goes
back to setup with the request kept for retry(), a failed grading goes
back to upload with the answer sheet kept.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import structlog

from edumate.core.collaborator import Collaborator
from edumate.core.errors import (
    CollaboratorError,
    EduMateError,
    ExamStateError,
    ValidationError,
)
from edumate.core.models import FULL_SYLLABUS, TestResult, new_record_id, utc_now
from edumate.core.session import SessionController

logger = structlog.get_logger(__name__)

CHAPTER_SECONDS = 3600
FULL_SYLLABUS_SECONDS = 10800

Clock = Callable[[], float]


class ExamStage(str, Enum):
    """Stage of the exam workflow."""

    SETUP = "setup"
    LOADING = "loading"
    ACTIVE = "active"
    UPLOAD = "upload"
    GRADING = "grading"
    RESULT = "result"


@dataclass
class ExamRequest:
    """What the student asked to be examined on."""

    subject: str
    chapter: str | None = None
    full_syllabus: bool = False

    @property
    def chapter_label(self) -> str:
        return FULL_SYLLABUS if self.full_syllabus else (self.chapter or "")


@dataclass
class ExamSession:
    """Transient state of one exam attempt."""

    request: ExamRequest
    questions: tuple[str, ...] = ()
    time_budget: int = 0
    remaining: int = 0
    started_at: float | None = None
    annotations: dict[int, str] = field(default_factory=dict)
    image: bytes | None = None
    result: TestResult | None = None
    last_error: str | None = None


class ExamEngine:
    """Finite-state machine for a single student's mock exams."""

    def __init__(
        self,
        collaborator: Collaborator,
        session: SessionController,
        clock: Clock = time.monotonic,
        chapter_seconds: int = CHAPTER_SECONDS,
        full_syllabus_seconds: int = FULL_SYLLABUS_SECONDS,
    ):
        self.collaborator = collaborator
        self.session = session
        self.clock = clock
        self.chapter_seconds = chapter_seconds
        self.full_syllabus_seconds = full_syllabus_seconds

        self._stage = ExamStage.SETUP
        self._exam: ExamSession | None = None
        # Guards stage and exam; never held across collaborator calls
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def stage(self) -> ExamStage:
        return self._stage

    @property
    def exam(self) -> ExamSession | None:
        return self._exam

    @property
    def questions(self) -> tuple[str, ...]:
        return self._exam.questions if self._exam else ()

    @property
    def remaining(self) -> int:
        """Seconds left on the countdown (0 outside a timed exam)."""
        return self._exam.remaining if self._exam else 0

    @property
    def result(self) -> TestResult | None:
        return self._exam.result if self._exam else None

    @property
    def last_error(self) -> str | None:
        return self._exam.last_error if self._exam else None

    def _set_stage(self, stage: ExamStage) -> None:
        previous = self._stage
        self._stage = stage
        logger.info("exam.stage_changed", previous=previous.value, stage=stage.value)

    # -------------------------------------------------------------------------
    # setup -> loading -> active
    # -------------------------------------------------------------------------

    def start(
        self,
        subject: str,
        chapter: str | None = None,
        full_syllabus: bool = False,
    ) -> bool:
        """Generate a paper and start the countdown.

        Returns:
            True if the exam became active, False if a generation was
            already in flight (the call is ignored).

        Raises:
            ValidationError: If subject is blank, or chapter is blank for a
                chapter test
            ExamStateError: If an exam is already past setup
            CollaboratorError: If generation failed (engine back in setup)
        """
        subject = subject.strip()
        chapter = chapter.strip() if chapter else None
        if not subject:
            raise ValidationError("Please choose a subject.", field="subject")
        if not full_syllabus and not chapter:
            raise ValidationError(
                "Please enter a chapter or select full syllabus.", field="chapter"
            )

        request = ExamRequest(
            subject=subject,
            chapter=None if full_syllabus else chapter,
            full_syllabus=full_syllabus,
        )
        return self._generate(request)

    def retry(self) -> bool:
        """Repeat the last failed collaborator call from where it stopped.

        Raises:
            ExamStateError: If there is nothing to retry
        """
        exam = self._exam
        if exam is not None and exam.last_error:
            if self._stage == ExamStage.SETUP:
                return self._generate(exam.request)
            if self._stage == ExamStage.UPLOAD and exam.image:
                return self.submit()
        raise ExamStateError("retry", self._stage.value)

    def _generate(self, request: ExamRequest) -> bool:
        profile = self.session.require().profile

        with self._lock:
            if self._stage == ExamStage.LOADING:
                logger.debug("exam.start_ignored", reason="already_loading")
                return False
            if self._stage != ExamStage.SETUP:
                raise ExamStateError("start a new exam", self._stage.value)
            self._exam = ExamSession(request=request)
            self._set_stage(ExamStage.LOADING)

        try:
            questions = self.collaborator.generate_questions(
                request.subject,
                request.chapter,
                request.full_syllabus,
                profile,
            )
        except EduMateError as e:
            self._fail(ExamStage.SETUP, e)
            raise
        except Exception as e:
            error = CollaboratorError(f"Could not generate questions: {e}")
            self._fail(ExamStage.SETUP, error)
            raise error from e

        if not questions:
            error = CollaboratorError("AI service returned no questions.")
            self._fail(ExamStage.SETUP, error)
            raise error

        budget = self.full_syllabus_seconds if request.full_syllabus else self.chapter_seconds
        with self._lock:
            exam = self._exam
            if self._stage != ExamStage.LOADING or exam is None:
                # Abandoned while the paper was being generated
                logger.info("exam.generation_discarded")
                return False
            exam.questions = tuple(questions)
            exam.time_budget = budget
            exam.remaining = budget
            exam.started_at = self.clock()
            exam.last_error = None
            self._set_stage(ExamStage.ACTIVE)

        logger.info(
            "exam.started",
            subject=request.subject,
            chapter=request.chapter_label,
            questions=len(questions),
            budget_seconds=budget,
        )
        return True

    def _fail(self, stage: ExamStage, error: EduMateError) -> None:
        with self._lock:
            if self._exam is not None:
                self._exam.last_error = error.message
            self._set_stage(stage)
        logger.warning("exam.collaborator_failed", fallback_stage=stage.value, error=error.message)

    # -------------------------------------------------------------------------
    # active
    # -------------------------------------------------------------------------

    def tick(self, now: float | None = None) -> int:
        """Advance the countdown from the clock.

        Only acts while active. Reaching zero moves to upload for good.

        Returns:
            Remaining seconds
        """
        with self._lock:
            exam = self._exam
            if self._stage != ExamStage.ACTIVE or exam is None or exam.started_at is None:
                return self.remaining

            now = self.clock() if now is None else now
            elapsed = max(0.0, now - exam.started_at)
            remaining = max(0, math.ceil(exam.time_budget - elapsed))
            exam.remaining = min(exam.remaining, remaining)

            if exam.remaining == 0:
                logger.info("exam.time_up", subject=exam.request.subject)
                self._set_stage(ExamStage.UPLOAD)
            return exam.remaining

    def finish_early(self) -> None:
        """Stop the countdown and move on to uploading the answer sheet."""
        with self._lock:
            if self._stage != ExamStage.ACTIVE:
                raise ExamStateError("submit the test", self._stage.value)
            logger.info("exam.finished_early", remaining=self.remaining)
            self._set_stage(ExamStage.UPLOAD)

    def annotate_question(self, index: int, note: str) -> None:
        """Attach a private note to a question while the exam is running."""
        with self._lock:
            if self._stage != ExamStage.ACTIVE or self._exam is None:
                raise ExamStateError("edit questions", self._stage.value)
            if not 0 <= index < len(self._exam.questions):
                raise ValidationError(f"No question number {index + 1}.", field="index")
            if note.strip():
                self._exam.annotations[index] = note.strip()
            else:
                self._exam.annotations.pop(index, None)

    # -------------------------------------------------------------------------
    # upload -> grading -> result
    # -------------------------------------------------------------------------

    def attach_image(self, image: bytes) -> None:
        """Keep a photo of the answer sheet for submission."""
        with self._lock:
            if self._stage != ExamStage.UPLOAD or self._exam is None:
                raise ExamStateError("upload an answer sheet", self._stage.value)
            if not image:
                raise ValidationError("Please upload an image of your answers.", field="image")
            self._exam.image = bytes(image)

    def submit(self, image: bytes | None = None) -> bool:
        """Send the answer sheet for grading and record the result.

        Args:
            image: Answer-sheet photo; if omitted the attached one is used

        Returns:
            True if a result was produced, False if grading was already in
            flight (the call is ignored).

        Raises:
            ValidationError: If no image is available (stays in upload)
            ExamStateError: If not in upload
            CollaboratorError: If grading failed (back in upload, image kept)
            StorageFullError: If the result could not be saved (back in upload)
        """
        profile = self.session.require().profile

        with self._lock:
            if self._stage == ExamStage.GRADING:
                logger.debug("exam.submit_ignored", reason="already_grading")
                return False
            exam = self._exam
            if self._stage != ExamStage.UPLOAD or exam is None:
                raise ExamStateError("submit for grading", self._stage.value)
            if image:
                exam.image = bytes(image)
            if not exam.image:
                raise ValidationError("Please upload an image of your answers.", field="image")
            questions = list(exam.questions)
            sheet = exam.image
            self._set_stage(ExamStage.GRADING)

        try:
            report = self.collaborator.grade_submission(questions, sheet, profile)
        except EduMateError as e:
            self._fail(ExamStage.UPLOAD, e)
            raise
        except Exception as e:
            error = CollaboratorError(f"Could not grade the answer sheet: {e}")
            self._fail(ExamStage.UPLOAD, error)
            raise error from e

        result = TestResult(
            id=new_record_id(),
            subject=exam.request.subject,
            chapter=exam.request.chapter_label,
            score=report.score,
            total=report.total,
            feedback=report.feedback,
            correct_answers=report.correct_answers,
            created_at=utc_now(),
        )

        with self._lock:
            if self._stage != ExamStage.GRADING or self._exam is not exam:
                logger.info("exam.grade_discarded")
                return False
            try:
                self.session.record_result(result)
            except EduMateError as e:
                exam.last_error = e.message
                self._set_stage(ExamStage.UPLOAD)
                raise
            exam.result = result
            exam.last_error = None
            self._set_stage(ExamStage.RESULT)

        logger.info(
            "exam.graded",
            result_id=result.id,
            subject=result.subject,
            score=result.score,
            total=result.total,
        )
        return True

    # -------------------------------------------------------------------------
    # result -> setup, abandon
    # -------------------------------------------------------------------------

    def acknowledge(self) -> None:
        """Leave the result screen and discard the finished exam."""
        with self._lock:
            if self._stage != ExamStage.RESULT:
                raise ExamStateError("close the result", self._stage.value)
            self._exam = None
            self._set_stage(ExamStage.SETUP)

    def abandon(self) -> None:
        """Walk away from an unfinished exam. Nothing is saved.

        Allowed in active and upload; a no-op in setup.
        """
        with self._lock:
            if self._stage == ExamStage.SETUP:
                self._exam = None
                return
            if self._stage not in (ExamStage.ACTIVE, ExamStage.UPLOAD):
                raise ExamStateError("abandon the exam", self._stage.value)
            logger.info("exam.abandoned", stage=self._stage.value)
            self._exam = None
            self._set_stage(ExamStage.SETUP)

    def reset(self) -> None:
        """Drop whatever exam is in progress, in any stage.

        Used when the student changes. A paper or grade still in flight is
        discarded when it arrives.
        """
        with self._lock:
            if self._exam is None and self._stage == ExamStage.SETUP:
                return
            logger.info("exam.reset", stage=self._stage.value)
            self._exam = None
            if self._stage != ExamStage.SETUP:
                self._set_stage(ExamStage.SETUP)


class CountdownTicker:
    """Background thread that ticks an engine while it is active.

    Stops by itself once the engine leaves the active stage.
    """

    def __init__(
        self,
        engine: ExamEngine,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ):
        if interval <= 0 or interval > 1.0:
            raise ValueError("tick interval must be in (0, 1] seconds")
        self.engine = engine
        self.interval = interval
        self.on_tick = on_tick
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="exam-countdown", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.interval * 2)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            if self.engine.stage != ExamStage.ACTIVE:
                break
            remaining = self.engine.tick()
            if self.on_tick is not None:
                self.on_tick(remaining)
