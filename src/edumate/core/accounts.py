"""Account management.

Responsibilities:
- Validate registration forms and create accounts (no overwrite)
- Authenticate by identity and secret
- Delete an account with re-confirmation, cascading to every dependent
  record kind before the account record itself

Identity key = email with surrounding whitespace removed; case is kept.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping

import structlog
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from edumate.core.catalog import BOARDS, STANDARDS, STREAMS, is_senior
from edumate.core.credentials import hash_secret, verify_secret
from edumate.core.errors import (
    DuplicateIdentityError,
    IdentityMismatchError,
    InvalidCredentialError,
    NotFoundError,
    ValidationError,
)
from edumate.core.models import Account
from edumate.db.repositories import Repositories

if TYPE_CHECKING:
    from edumate.core.session import SessionController

logger = structlog.get_logger(__name__)

# Email validation pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

FIELD_LABELS = {
    "name": "Full name",
    "email": "Email",
    "secret": "Password",
    "guardian_contact": "Parent's mobile",
    "board": "Board",
    "standard": "Class",
    "stream": "Stream",
    "subjects": "Subjects",
}


def normalize_identity(email: str) -> str:
    """Identity key for an email address."""
    return email.strip()


class RegistrationForm(BaseModel):
    """Registration input."""

    name: str
    email: str
    secret: str
    guardian_contact: str
    board: str = "CBSE"
    standard: str = "10"
    stream: str | None = None
    subjects: list[str] = Field(default_factory=list)

    @field_validator("name", "email", "guardian_contact", "board", "standard")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("secret")
    @classmethod
    def _secret_required(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("is not a valid email address")
        return value

    @field_validator("subjects")
    @classmethod
    def _clean_subjects(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for subject in value:
            subject = subject.strip()
            if subject and subject not in seen:
                seen.append(subject)
        return seen

    @model_validator(mode="after")
    def _academic_profile(self) -> RegistrationForm:
        if self.board not in BOARDS:
            raise ValueError(f"board must be one of {', '.join(BOARDS)}")
        if self.standard not in STANDARDS:
            raise ValueError(f"class must be one of {', '.join(STANDARDS)}")
        if is_senior(self.standard):
            self.stream = (self.stream or "Science").strip()
            if self.stream not in STREAMS:
                raise ValueError(f"stream must be one of {', '.join(STREAMS)}")
        else:
            self.stream = None
        return self


def parse_registration(data: Mapping[str, Any]) -> RegistrationForm:
    """Build a RegistrationForm, translating failures to ValidationError."""
    try:
        return RegistrationForm.model_validate(dict(data))
    except PydanticValidationError as e:
        error = e.errors()[0]
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        if field:
            if error.get("type") == "missing":
                message = "must not be empty"
            message = f"{FIELD_LABELS.get(field, field)} {message}"
        raise ValidationError(message, field=field) from e


class AccountManager:
    """Creates, authenticates and deletes accounts."""

    def __init__(
        self,
        repos: Repositories,
        session: SessionController | None = None,
    ):
        self.repos = repos
        self.session = session

    def register(self, form: RegistrationForm | Mapping[str, Any]) -> Account:
        """Create a new account.

        Args:
            form: Registration form or raw field mapping

        Returns:
            The stored Account

        Raises:
            ValidationError: If a required field is blank or malformed
            DuplicateIdentityError: If the identity is already registered
            StorageFullError: If the account does not fit in storage
        """
        if not isinstance(form, RegistrationForm):
            form = parse_registration(form)

        identity = normalize_identity(form.email)
        if self.repos.accounts.exists(identity):
            logger.warning("accounts.duplicate_identity", identity=identity)
            raise DuplicateIdentityError(identity)

        account = Account(
            email=identity,
            name=form.name,
            credential=hash_secret(form.secret),
            guardian_contact=form.guardian_contact,
            board=form.board,
            standard=form.standard,
            stream=form.stream,
            subjects=tuple(form.subjects),
            is_registered=True,
        )
        self.repos.accounts.put(account)

        logger.info(
            "accounts.registered",
            identity=identity,
            board=account.board,
            standard=account.standard,
            subjects=len(account.subjects),
        )
        return account

    def authenticate(self, identity: str, secret: str) -> Account:
        """Check credentials.

        Raises:
            NotFoundError: If no account exists for identity
            InvalidCredentialError: If the secret does not match
        """
        identity = normalize_identity(identity)
        account = self.repos.accounts.get(identity)
        if account is None:
            raise NotFoundError("User not found. Please register first.")

        if not verify_secret(secret, account.credential):
            logger.warning("accounts.invalid_credential", identity=identity)
            raise InvalidCredentialError("Invalid credentials.")

        logger.info("accounts.authenticated", identity=identity)
        return account

    def delete(self, identity: str, confirm_identity: str, confirm_secret: str) -> None:
        """Delete an account after re-confirming identity and secret.

        Raises:
            IdentityMismatchError: If confirm_identity is not identity
            NotFoundError: If the account record is missing
            InvalidCredentialError: If confirm_secret does not match
        """
        identity = normalize_identity(identity)
        if normalize_identity(confirm_identity) != identity:
            raise IdentityMismatchError()

        account = self.repos.accounts.get(identity)
        if account is None:
            raise NotFoundError("Account data corrupted or missing.")

        if not verify_secret(confirm_secret, account.credential):
            logger.warning("accounts.delete_rejected", identity=identity)
            raise InvalidCredentialError("Incorrect password. Account deletion failed.")

        self.purge(identity)

    def purge(self, identity: str) -> None:
        """Remove an account and everything keyed to it, without checks.

        Dependents go first so a failure part-way leaves at worst an
        account with no data, never data with no account.
        """
        identity = normalize_identity(identity)
        self.repos.results.delete_all(identity)
        self.repos.schedule.delete_all(identity)
        self.repos.notes.delete_all(identity)
        self.repos.accounts.delete(identity)

        if self.session is not None and self.session.active is not None:
            if self.session.active.identity == identity:
                self.session.end()

        # Pointer may be left over from a previous process
        if self.repos.active_identity.get() == identity:
            self.repos.active_identity.clear()

        logger.info("accounts.deleted", identity=identity)
