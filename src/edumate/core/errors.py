"""Error taxonomy shared by the store, managers and exam engine.

Every error carries a message that can be shown to the student as-is.
"""

from __future__ import annotations


class EduMateError(Exception):
    """Base class for all recoverable EduMate failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(EduMateError):
    """Missing or malformed input; re-prompt and try again."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(EduMateError):
    """Identity or record absent."""


class InvalidCredentialError(EduMateError):
    """Supplied secret does not match the stored credential."""

    def __init__(self, message: str = "Incorrect password."):
        super().__init__(message)


class IdentityMismatchError(EduMateError):
    """Confirmation identity differs from the account being acted on."""

    def __init__(self, message: str = "Email entered does not match the current account."):
        super().__init__(message)


class DuplicateIdentityError(EduMateError):
    """An account already exists for this identity."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"An account already exists for {identity}.")


class StorageFullError(EduMateError):
    """A write would exceed the device storage quota."""

    def __init__(self, key: str, required: int, quota: int):
        self.key = key
        self.required = required
        self.quota = quota
        super().__init__(
            f"Storage is full: writing '{key}' needs {required} bytes "
            f"but the quota is {quota} bytes."
        )


class CollaboratorError(EduMateError):
    """AI collaborator call failed or timed out; safe to retry."""


class AlreadySavedError(EduMateError):
    """Note is already in the account's documents."""

    def __init__(self, note_id: str):
        self.note_id = note_id
        super().__init__("This note is already saved.")


class NoActiveSessionError(EduMateError):
    """Operation needs a logged-in student."""

    def __init__(self, message: str = "Please log in first."):
        super().__init__(message)


class ExamStateError(EduMateError):
    """Exam event is not valid for the current stage."""

    def __init__(self, action: str, stage: str):
        self.action = action
        self.stage = stage
        super().__init__(f"Cannot {action} while the exam is in '{stage}'.")


class AdminAccessError(EduMateError):
    """Admin password missing or incorrect."""

    def __init__(self, message: str = "Incorrect admin password."):
        super().__init__(message)
