"""Schedule editor.

One weekly timetable per account (weekday -> slots). Regeneration goes
through the collaborator and is saved at once; slot edits only touch the
session's working copy until save() is called.
"""

from __future__ import annotations

import re

import structlog

from edumate.core.collaborator import Collaborator
from edumate.core.errors import NotFoundError, ValidationError
from edumate.core.models import WEEKDAYS, Slot, SlotCategory, TimeTableEntry
from edumate.core.session import SessionController

logger = structlog.get_logger(__name__)

SCHOOL_END_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")

# Accepted field names, including the "type" alias used by generated timetables
EDITABLE_FIELDS = {"time": "time", "activity": "activity", "category": "category", "type": "category"}


def today_slots(schedule: list[TimeTableEntry], weekday: str) -> list[Slot]:
    """Slots planned for a weekday, empty if none."""
    for entry in schedule:
        if entry.day == weekday:
            return list(entry.slots)
    return []


class ScheduleEditor:
    """Regenerate, edit and save the weekly timetable."""

    def __init__(self, collaborator: Collaborator, session: SessionController):
        self.collaborator = collaborator
        self.session = session

    @property
    def entries(self) -> list[TimeTableEntry]:
        return self.session.require().schedule

    @property
    def has_unsaved_changes(self) -> bool:
        return self.session.require().schedule_dirty

    def regenerate(self, school_end_time: str) -> list[TimeTableEntry]:
        """Replace the timetable with a freshly generated one and save it.

        Args:
            school_end_time: When school ends, "HH:MM"

        Raises:
            ValidationError: If the time is malformed
            CollaboratorError: If generation failed (old timetable kept)
        """
        session = self.session.require()
        school_end_time = school_end_time.strip()
        if not SCHOOL_END_PATTERN.match(school_end_time):
            raise ValidationError("School end time must look like 16:00.", field="school_end_time")

        entries = self.collaborator.generate_schedule(school_end_time, session.profile)
        if not entries:
            raise ValidationError("The generated timetable was empty.", field="timetable")

        self.session.repos.schedule.replace(session.identity, entries)
        session.schedule = [e.copy() for e in entries]
        session.schedule_dirty = False

        logger.info(
            "schedule.regenerated",
            identity=session.identity,
            days=len(entries),
            slots=sum(len(e.slots) for e in entries),
        )
        return session.schedule

    def edit_slot(self, day: str, index: int, field: str, value: str) -> Slot:
        """Change one field of one slot in the working copy.

        Raises:
            NotFoundError: If the day or slot does not exist
            ValidationError: If the field or value is not allowed
        """
        session = self.session.require()
        attribute = EDITABLE_FIELDS.get(field)
        if attribute is None:
            raise ValidationError(f"Unknown slot field '{field}'.", field="field")

        entry = next((e for e in session.schedule if e.day == day), None)
        if entry is None:
            if day not in WEEKDAYS:
                raise ValidationError(f"'{day}' is not a weekday.", field="day")
            raise NotFoundError(f"No timetable for {day}.")
        if not 0 <= index < len(entry.slots):
            raise NotFoundError(f"{day} has no slot number {index + 1}.")

        slot = entry.slots[index]
        if attribute == "category":
            try:
                slot.category = SlotCategory(value)
            except ValueError as e:
                allowed = ", ".join(c.value for c in SlotCategory)
                raise ValidationError(f"Slot type must be one of {allowed}.", field="value") from e
        else:
            setattr(slot, attribute, value)

        session.schedule_dirty = True
        logger.debug("schedule.slot_edited", day=day, index=index, field=attribute)
        return slot

    def save(self) -> None:
        """Persist the working copy."""
        session = self.session.require()
        self.session.repos.schedule.replace(session.identity, session.schedule)
        session.schedule_dirty = False
        logger.info("schedule.saved", identity=session.identity, days=len(session.schedule))

    def discard_changes(self) -> list[TimeTableEntry]:
        """Reload the last saved timetable into the working copy."""
        session = self.session.require()
        session.schedule = self.session.repos.schedule.get(session.identity)
        session.schedule_dirty = False
        return session.schedule
