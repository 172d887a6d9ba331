"""Tests for account registration, authentication and deletion (F2)."""

import pytest

from edumate.core.accounts import AccountManager, RegistrationForm, parse_registration
from edumate.core.errors import (
    DuplicateIdentityError,
    IdentityMismatchError,
    InvalidCredentialError,
    NotFoundError,
    StorageFullError,
    ValidationError,
)
from edumate.core.models import Note, TestResult
from edumate.core.session import SessionController
from edumate.db.record_store import MemoryRecordStore
from edumate.db.repositories import Repositories


@pytest.fixture
def session(repos):
    return SessionController(repos)


@pytest.fixture
def manager(repos, session):
    return AccountManager(repos, session=session)


class TestRegistration:
    """Tests for AccountManager.register."""

    def test_register_then_authenticate(self, manager, registration):
        """Round trip: a registered identity authenticates with its secret."""
        manager.register(registration)

        account = manager.authenticate("a@x.com", "pw1")

        assert account.name == "Asha Rao"
        assert account.board == "CBSE"
        assert account.standard == "10"
        assert account.subjects == ("Mathematics", "Science")
        assert account.is_registered

    def test_credential_not_stored_in_plaintext(self, manager, registration, store):
        manager.register(registration)

        stored = store.get("account:a@x.com")

        assert stored["credential"] != "pw1"
        assert "pw1" not in stored["credential"]

    def test_identity_is_trimmed(self, manager, registration):
        registration["email"] = "  a@x.com  "
        manager.register(registration)

        assert manager.authenticate("a@x.com", "pw1").email == "a@x.com"

    def test_duplicate_rejected_without_overwrite(self, manager, registration, repos):
        manager.register(registration)
        original = repos.accounts.get("a@x.com")

        registration["name"] = "Someone Else"
        with pytest.raises(DuplicateIdentityError):
            manager.register(registration)

        assert repos.accounts.get("a@x.com") == original

    @pytest.mark.parametrize("field", ["name", "email", "secret", "guardian_contact"])
    def test_blank_required_field(self, manager, registration, repos, field):
        registration[field] = "   " if field != "secret" else ""

        with pytest.raises(ValidationError) as exc_info:
            manager.register(registration)

        assert exc_info.value.field == field
        assert repos.accounts.list_identities() == []

    def test_missing_field(self, manager, registration):
        del registration["guardian_contact"]

        with pytest.raises(ValidationError) as exc_info:
            manager.register(registration)

        assert exc_info.value.field == "guardian_contact"
        assert "Parent's mobile" in exc_info.value.message

    def test_malformed_email(self, manager, registration):
        registration["email"] = "not-an-email"

        with pytest.raises(ValidationError) as exc_info:
            manager.register(registration)

        assert exc_info.value.field == "email"

    def test_unknown_board(self, manager, registration):
        registration["board"] = "IB"

        with pytest.raises(ValidationError):
            manager.register(registration)

    def test_storage_full(self, registration):
        repos = Repositories(MemoryRecordStore(quota_bytes=50))
        manager = AccountManager(repos)

        with pytest.raises(StorageFullError):
            manager.register(registration)

        assert not repos.accounts.exists("a@x.com")


class TestRegistrationForm:
    """Tests for academic profile rules."""

    def test_stream_dropped_below_class_11(self, registration):
        registration["stream"] = "Commerce"

        form = parse_registration(registration)

        assert form.stream is None

    def test_senior_defaults_to_science(self, registration):
        registration["standard"] = "11"

        form = parse_registration(registration)

        assert form.stream == "Science"

    def test_senior_keeps_stream(self, registration):
        registration["standard"] = "12"
        registration["stream"] = "Arts"

        assert parse_registration(registration).stream == "Arts"

    def test_subjects_deduplicated(self, registration):
        registration["subjects"] = ["Mathematics", " Mathematics ", "", "Science"]

        assert parse_registration(registration).subjects == ["Mathematics", "Science"]

    def test_form_object_accepted(self, manager, registration):
        form = RegistrationForm(**registration)

        assert manager.register(form).email == "a@x.com"


class TestAuthentication:
    """Tests for AccountManager.authenticate."""

    def test_unknown_identity(self, manager):
        with pytest.raises(NotFoundError):
            manager.authenticate("nobody@x.com", "pw1")

    def test_wrong_secret(self, manager, registration):
        manager.register(registration)

        with pytest.raises(InvalidCredentialError):
            manager.authenticate("a@x.com", "wrong")


class TestDeletion:
    """Tests for cascading account deletion."""

    def _seed(self, repos):
        repos.results.append(
            "a@x.com",
            TestResult(
                id="r1",
                subject="Mathematics",
                chapter="Algebra",
                score=8,
                total=10,
                feedback="",
                correct_answers="",
                created_at="2026-10-17T10:00:00+00:00",
            ),
        )
        repos.notes.replace(
            "a@x.com",
            [Note(id="n1", subject="Mathematics", chapter="Algebra", content="x", created_at="t")],
        )
        repos.schedule.replace("a@x.com", [])

    def test_cascade_removes_all_four_keys(self, manager, registration, repos, store, session):
        account = manager.register(registration)
        session.start(account)
        self._seed(repos)

        manager.delete("a@x.com", "a@x.com", "pw1")

        for key in ("account:a@x.com", "results:a@x.com", "schedule:a@x.com", "notes:a@x.com"):
            assert store.get(key) is None
        assert store.get("activeIdentity") is None
        assert not session.is_active

    def test_identity_mismatch(self, manager, registration, store):
        manager.register(registration)

        with pytest.raises(IdentityMismatchError):
            manager.delete("a@x.com", "b@x.com", "pw1")

        assert store.get("account:a@x.com") is not None

    def test_wrong_secret_keeps_everything(self, manager, registration, repos, store):
        manager.register(registration)
        self._seed(repos)

        with pytest.raises(InvalidCredentialError):
            manager.delete("a@x.com", "a@x.com", "nope")

        assert store.get("account:a@x.com") is not None
        assert len(repos.results.list("a@x.com")) == 1

    def test_missing_account(self, manager):
        with pytest.raises(NotFoundError):
            manager.delete("a@x.com", "a@x.com", "pw1")

    def test_other_students_untouched(self, manager, registration, repos, session):
        manager.register(registration)
        other = dict(registration, email="b@x.com")
        account_b = manager.register(other)
        session.start(account_b)
        self._seed(repos)

        manager.delete("a@x.com", "a@x.com", "pw1")

        assert repos.accounts.exists("b@x.com")
        assert session.active.identity == "b@x.com"
        assert repos.active_identity.get() == "b@x.com"
