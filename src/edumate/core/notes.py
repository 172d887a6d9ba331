"""Notes manager.

Generates chapter notes through the collaborator as unsaved drafts; the
student decides which drafts to keep. Saved notes live in the active
session and are persisted under notes:{identity}.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from edumate.core.collaborator import Collaborator
from edumate.core.errors import AlreadySavedError, NotFoundError, ValidationError
from edumate.core.models import Note, new_record_id, utc_now
from edumate.core.session import SessionController
from edumate.utils.text_utils import slugify, strip_markdown_emphasis

logger = structlog.get_logger(__name__)


class NotesManager:
    """Generate, save, delete and export study notes."""

    def __init__(self, collaborator: Collaborator, session: SessionController):
        self.collaborator = collaborator
        self.session = session

    def list_notes(self) -> list[Note]:
        return list(self.session.require().notes)

    def get(self, note_id: str) -> Note:
        for note in self.session.require().notes:
            if note.id == note_id:
                return note
        raise NotFoundError(f"No saved note with id {note_id}.")

    def generate(self, subject: str, chapter: str) -> Note:
        """Ask the collaborator for notes. The draft is not saved.

        Raises:
            ValidationError: If subject or chapter is blank
            CollaboratorError: If generation failed
        """
        profile = self.session.require().profile
        subject, chapter = subject.strip(), chapter.strip()
        if not subject:
            raise ValidationError("Please choose a subject.", field="subject")
        if not chapter:
            raise ValidationError("Please enter a chapter.", field="chapter")

        content = self.collaborator.generate_notes(subject, chapter, profile)
        draft = Note(
            id=new_record_id(),
            subject=subject,
            chapter=chapter,
            content=content,
            created_at=utc_now(),
        )
        logger.info("notes.generated", note_id=draft.id, subject=subject, chapter=chapter)
        return draft

    def save(self, draft: Note) -> None:
        """Add a draft to the saved notes.

        Raises:
            AlreadySavedError: If a note with the same id is already saved
        """
        session = self.session.require()
        if any(n.id == draft.id for n in session.notes):
            raise AlreadySavedError(draft.id)

        notes = session.notes + [draft]
        self.session.repos.notes.replace(session.identity, notes)
        session.notes = notes
        logger.info("notes.saved", identity=session.identity, note_id=draft.id)

    def delete(self, note_id: str) -> bool:
        """Remove a saved note. Unknown ids are ignored.

        Returns:
            True if a note was removed
        """
        session = self.session.require()
        remaining = [n for n in session.notes if n.id != note_id]
        if len(remaining) == len(session.notes):
            logger.debug("notes.delete_noop", note_id=note_id)
            return False

        self.session.repos.notes.replace(session.identity, remaining)
        session.notes = remaining
        logger.info("notes.deleted", identity=session.identity, note_id=note_id)
        return True

    def export(self, note: Note | str, directory: Path) -> Path:
        """Write a note to {chapter}_notes.md in directory."""
        if isinstance(note, str):
            note = self.get(note)
        profile = self.session.require().profile

        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{slugify(note.chapter)}_notes.md"
        header = (
            f"# {note.chapter}\n\n"
            f"Subject: {note.subject} | Board: {profile.board}\n\n---\n\n"
        )
        path.write_text(header + strip_markdown_emphasis(note.content) + "\n", encoding="utf-8")

        logger.info("notes.exported", note_id=note.id, path=str(path))
        return path
