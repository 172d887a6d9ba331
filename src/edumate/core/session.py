"""Session controller.

Responsibilities:
- Hold at most one logged-in student (credential-free profile)
- Load that student's results, schedule and notes into working state
- Persist the "last active identity" pointer so a restart resumes the session
- Append graded results and notify the guardian

Logging out clears memory and the pointer; records stay in the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from edumate.core.errors import NoActiveSessionError
from edumate.core.models import (
    Account,
    Note,
    Profile,
    TestResult,
    TimeTableEntry,
    utc_now,
)
from edumate.core.notifications import GuardianNotifier, LoggingNotifier
from edumate.db.repositories import Repositories

logger = structlog.get_logger(__name__)


@dataclass
class Session:
    """The logged-in student and their working state."""

    profile: Profile
    results: list[TestResult] = field(default_factory=list)
    schedule: list[TimeTableEntry] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    schedule_dirty: bool = False
    started_at: str = ""

    def __post_init__(self):
        if not self.started_at:
            self.started_at = utc_now()

    @property
    def identity(self) -> str:
        return self.profile.identity


class SessionController:
    """Owns the zero-or-one active session."""

    def __init__(
        self,
        repos: Repositories,
        notifier: GuardianNotifier | None = None,
    ):
        self.repos = repos
        self.notifier = notifier or LoggingNotifier()
        self._session: Session | None = None

    @property
    def active(self) -> Session | None:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def require(self) -> Session:
        """Return the active session or fail."""
        if self._session is None:
            raise NoActiveSessionError()
        return self._session

    def start(self, account: Account) -> Session:
        """Make account the active identity and hydrate its working state.

        Any previous session is replaced.
        """
        identity = account.identity
        self.repos.active_identity.set(identity)

        self._session = Session(
            profile=account.to_profile(),
            results=self.repos.results.list(identity),
            schedule=self.repos.schedule.get(identity),
            notes=self.repos.notes.list(identity),
        )

        logger.info(
            "session.started",
            identity=identity,
            results=len(self._session.results),
            schedule_days=len(self._session.schedule),
            notes=len(self._session.notes),
        )
        return self._session

    def end(self) -> None:
        """Log out. Stored records are kept."""
        identity = self._session.identity if self._session else None
        self._session = None
        self.repos.active_identity.clear()
        logger.info("session.ended", identity=identity)

    def restore(self) -> Session | None:
        """Resume the session recorded by the durable pointer, if any.

        A pointer to an account that no longer exists is cleared.
        """
        identity = self.repos.active_identity.get()
        if identity is None:
            return None

        account = self.repos.accounts.get(identity)
        if account is None:
            logger.warning("session.dangling_pointer", identity=identity)
            self.repos.active_identity.clear()
            return None

        logger.debug("session.restoring", identity=identity)
        return self.start(account)

    def record_result(self, result: TestResult) -> None:
        """Append a graded result to the active account and persist it."""
        session = self.require()
        session.results = self.repos.results.append(session.identity, result)

        logger.info(
            "session.result_recorded",
            identity=session.identity,
            result_id=result.id,
            subject=result.subject,
            score=result.score,
            total=result.total,
        )
        # The result is already persisted; a failed notification must not undo it
        try:
            self.notifier.notify_result(session.profile, result)
        except Exception as e:
            logger.warning("guardian.notify_failed", identity=session.identity, error=str(e))
