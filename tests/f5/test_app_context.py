"""Tests for the application context wiring (F5)."""

import pytest

from edumate.config.app_config import AppConfig, ExamConfig, StorageConfig
from edumate.core.app import AppContext
from edumate.core.errors import NoActiveSessionError, ValidationError
from edumate.core.exam_engine import ExamStage
from edumate.db.record_store import MemoryRecordStore, SqliteRecordStore


@pytest.fixture
def file_config(tmp_path) -> AppConfig:
    return AppConfig(storage=StorageConfig(db_path=str(tmp_path / "state" / "edumate.db")))


class TestOpen:
    """Tests for building a context from config."""

    def test_sqlite_store_by_default(self, file_config, mock_collaborator):
        ctx = AppContext.open(config=file_config, collaborator=mock_collaborator)

        assert isinstance(ctx.store, SqliteRecordStore)
        assert not ctx.session.is_active

    def test_in_memory(self, mock_collaborator):
        ctx = AppContext.open(config=AppConfig(), collaborator=mock_collaborator, in_memory=True)

        assert isinstance(ctx.store, MemoryRecordStore)

    def test_restores_last_session(self, file_config, mock_collaborator, registration):
        first = AppContext.open(config=file_config, collaborator=mock_collaborator)
        first.register(registration)

        second = AppContext.open(config=file_config, collaborator=mock_collaborator)

        assert second.session.is_active
        assert second.session.require().profile.email == "a@x.com"

    def test_exam_budget_from_config(self, mock_collaborator, registration):
        config = AppConfig(exam=ExamConfig(chapter_minutes=30))
        ctx = AppContext(MemoryRecordStore(), collaborator=mock_collaborator, config=config)
        ctx.register(registration)

        ctx.exam.start("Mathematics", chapter="Algebra")

        assert ctx.exam.remaining == 1800

    def test_admin_password_from_env(self, monkeypatch, mock_collaborator):
        monkeypatch.setenv("EDUMATE_ADMIN_PASSWORD", "letmein")

        ctx = AppContext(MemoryRecordStore(), collaborator=mock_collaborator, config=AppConfig())
        ctx.admin.unlock("letmein")

        assert ctx.admin.unlocked


class TestAccountFlows:
    """Tests for register, login, logout and delete."""

    def test_register_logs_in(self, app_ctx, registration, store):
        session = app_ctx.register(registration)

        assert session.profile.name == "Asha Rao"
        assert store.get("activeIdentity") == "a@x.com"

    def test_logout_abandons_running_exam(self, logged_in, store):
        logged_in.exam.start("Mathematics", chapter="Algebra")

        logged_in.logout()

        assert logged_in.exam.stage == ExamStage.SETUP
        assert not logged_in.session.is_active
        assert store.get("results:a@x.com") is None

    def test_switching_student_resets_exam(self, logged_in, registration):
        logged_in.register(dict(registration, email="b@x.com", name="Bilal Khan"))
        logged_in.exam.start("Science", chapter="Light")

        logged_in.login("a@x.com", "pw1")

        assert logged_in.exam.stage == ExamStage.SETUP
        assert logged_in.session.require().identity == "a@x.com"

    def test_delete_account(self, logged_in, store):
        logged_in.notes.save(logged_in.notes.generate("Mathematics", "Algebra"))
        logged_in.schedule.regenerate("16:00")

        logged_in.delete_account("a@x.com", "pw1")

        assert store.list_keys() == []
        assert not logged_in.session.is_active

    def test_delete_requires_login(self, app_ctx):
        with pytest.raises(NoActiveSessionError):
            app_ctx.delete_account("a@x.com", "pw1")


class TestResourceSearch:
    """Tests for study resource search."""

    def test_search(self, logged_in, mock_collaborator):
        results = logged_in.search_resources("  quadratic equations ")

        assert results[0].title == "CBSE Class 10 Maths PYQ"
        assert mock_collaborator.search_resources.call_args.args[0] == "quadratic equations"

    def test_blank_query(self, logged_in, mock_collaborator):
        with pytest.raises(ValidationError):
            logged_in.search_resources("  ")

        mock_collaborator.search_resources.assert_not_called()
