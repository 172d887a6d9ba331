"""Application context.

Builds the record store, repositories, session controller and every
manager from AppConfig, and offers the login/logout/register flows that
tie accounts to the session.

Usage:
    from edumate.core.app import AppContext

    ctx = AppContext.open()        # restores the last active session
    ctx.login("a@x.com", "pw1")
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Mapping

import structlog

from edumate.config.app_config import AppConfig, load_app_config
from edumate.core.accounts import AccountManager, RegistrationForm
from edumate.core.admin import AdminConsole
from edumate.core.collaborator import Collaborator, LLMCollaborator, SearchResult
from edumate.core.doubts import DoubtSolver
from edumate.core.errors import ValidationError
from edumate.core.exam_engine import Clock, ExamEngine
from edumate.core.models import Account
from edumate.core.notes import NotesManager
from edumate.core.notifications import GuardianNotifier
from edumate.core.schedule import ScheduleEditor
from edumate.core.session import Session, SessionController
from edumate.db.record_store import MemoryRecordStore, RecordStore, SqliteRecordStore
from edumate.db.repositories import Repositories

logger = structlog.get_logger(__name__)


class AppContext:
    """Everything one process needs, wired together."""

    def __init__(
        self,
        store: RecordStore,
        collaborator: Collaborator | None = None,
        config: AppConfig | None = None,
        notifier: GuardianNotifier | None = None,
        clock: Clock = time.monotonic,
    ):
        self.config = config or load_app_config()
        self.store = store
        self.repos = Repositories(store)
        self.collaborator = collaborator or LLMCollaborator(
            chapter_minutes=self.config.exam.chapter_minutes,
            full_syllabus_minutes=self.config.exam.full_syllabus_minutes,
        )

        self.session = SessionController(self.repos, notifier=notifier)
        self.accounts = AccountManager(self.repos, session=self.session)
        self.exam = ExamEngine(
            self.collaborator,
            self.session,
            clock=clock,
            chapter_seconds=self.config.exam.chapter_seconds,
            full_syllabus_seconds=self.config.exam.full_syllabus_seconds,
        )
        self.notes = NotesManager(self.collaborator, self.session)
        self.schedule = ScheduleEditor(self.collaborator, self.session)
        self.admin = AdminConsole(
            self.repos,
            self.accounts,
            admin_password=self.config.admin.get_password(),
        )

    @classmethod
    def open(
        cls,
        config: AppConfig | None = None,
        collaborator: Collaborator | None = None,
        in_memory: bool = False,
    ) -> AppContext:
        """Open the configured store and resume the last session, if any."""
        config = config or load_app_config()
        if in_memory:
            store: RecordStore = MemoryRecordStore(quota_bytes=config.storage.quota_bytes)
        else:
            store = SqliteRecordStore(
                db_path=Path(config.storage.db_path),
                quota_bytes=config.storage.quota_bytes,
            )

        ctx = cls(store, collaborator=collaborator, config=config)
        ctx.session.restore()
        return ctx

    # -------------------------------------------------------------------------
    # Account flows
    # -------------------------------------------------------------------------

    def register(self, form: RegistrationForm | Mapping[str, Any]) -> Session:
        """Create an account and log straight into it."""
        account = self.accounts.register(form)
        return self._start(account)

    def login(self, identity: str, secret: str) -> Session:
        account = self.accounts.authenticate(identity, secret)
        return self._start(account)

    def logout(self) -> None:
        self.exam.reset()
        self.session.end()

    def delete_account(self, confirm_identity: str, confirm_secret: str) -> None:
        """Delete the logged-in student's account after re-confirmation."""
        session = self.session.require()
        self.exam.reset()
        self.accounts.delete(session.identity, confirm_identity, confirm_secret)

    def _start(self, account: Account) -> Session:
        # A half-finished exam never carries over to another student
        self.exam.reset()
        return self.session.start(account)

    # -------------------------------------------------------------------------
    # Study tools
    # -------------------------------------------------------------------------

    def doubt_solver(self) -> DoubtSolver:
        return DoubtSolver(self.collaborator, self.session)

    def search_resources(self, query: str) -> list[SearchResult]:
        """Find study links for a topic, tuned to the student's board and class."""
        profile = self.session.require().profile
        query = query.strip()
        if not query:
            raise ValidationError("Please enter a topic to search.", field="query")

        results = self.collaborator.search_resources(query, profile)
        logger.info("resources.searched", query=query, results=len(results))
        return results
