"""Guardian notifications sent after a mock exam is graded."""

from __future__ import annotations

from typing import Protocol

import structlog

from edumate.core.models import Profile, TestResult

logger = structlog.get_logger(__name__)


class GuardianNotifier(Protocol):
    """Delivers a short message to the student's guardian."""

    def notify_result(self, profile: Profile, result: TestResult) -> None: ...


def format_result_message(profile: Profile, result: TestResult) -> str:
    return (
        f"Your child {profile.name} completed a test in {result.subject} "
        f"with a score of {result.score:g}/{result.total:g}."
    )


class LoggingNotifier:
    """Simulated SMS: the message is only logged."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def notify_result(self, profile: Profile, result: TestResult) -> None:
        message = format_result_message(profile, result)
        self.sent.append((profile.guardian_contact, message))
        logger.info(
            "guardian.notified",
            identity=profile.identity,
            contact=profile.guardian_contact,
            message=message,
        )
