"""
Record Controller - turns form intents into store operations.

Keeps track of which record, if any, the form is currently editing:

- Idle (editing_id is None): a submit creates a new record
- Editing(id): a submit replaces the record with that id

An edit request for an existing id enters Editing; a successful submit,
a cancel, or deleting the record under edit returns to Idle.
"""

import time
from datetime import date
from typing import Callable, List, Optional
from pydantic import BaseModel

from student_roster.models.student import StudentRecord
from student_roster.services.record_store import RecordStore
from student_roster.services.validation import FieldError, ValidationResult, validate_fields
from student_roster.logging_config import get_logger, log_with_context

logger = get_logger("controller")

SAVE_LABEL = "Save Student"
UPDATE_LABEL = "Update Student"


class SubmitResult(BaseModel):
    """Outcome of a submit: the committed record, or the validation failures."""
    record: Optional[StudentRecord] = None
    errors: List[FieldError] = []

    @property
    def ok(self) -> bool:
        return self.record is not None


class TimeBasedIdFactory:
    """
    Mints ids from the millisecond clock.

    Each id is strictly greater than the previous one from the same factory,
    so two records created within the same millisecond still differ.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.last = 0

    def __call__(self) -> str:
        now_ms = int(self.clock() * 1000)
        self.last = max(now_ms, self.last + 1)
        return str(self.last)


class RecordController:
    """Validates form data, decides create vs. update, and filters the roster."""

    def __init__(self, store: RecordStore,
                 today: Callable[[], date] = date.today,
                 id_factory: Callable[[], str] = None):
        self.store = store
        self.today = today
        self.id_factory = id_factory or TimeBasedIdFactory()
        self.editing_id: Optional[str] = None

    @property
    def mode(self) -> str:
        return "idle" if self.editing_id is None else "editing"

    @property
    def submit_label(self) -> str:
        return SAVE_LABEL if self.editing_id is None else UPDATE_LABEL

    def validate(self, fields: dict) -> ValidationResult:
        return validate_fields(fields, self.today())

    def submit(self, fields: dict) -> SubmitResult:
        """
        Validate and commit a full field bundle.

        In Editing state the record keeps its id and position; otherwise a
        fresh id is minted and the record is appended. Validation failures
        leave both the store and the edit state untouched.
        """
        result = self.validate(fields)
        if not result.ok:
            log_with_context(logger, "INFO",
                             "Submit rejected: {} invalid field(s)".format(len(result.errors)),
                             context={"editing_id": self.editing_id},
                             extra_data={"fields": result.error_fields()})
            return SubmitResult(errors=result.errors)

        record_id = self.editing_id or self._mint_id()
        record = StudentRecord.from_fields(record_id, result.candidate)
        self.store.upsert(record)

        log_with_context(logger, "INFO",
                         "{} student {}".format("Updated" if self.editing_id else "Created", record.id),
                         context={"student_id": record.id})
        self.editing_id = None
        return SubmitResult(record=record)

    def request_edit(self, record_id: str) -> Optional[StudentRecord]:
        """Enter Editing for an existing record and return it; None if unknown."""
        record = self.store.find_by_id(record_id)
        if record is None:
            log_with_context(logger, "INFO", "Edit requested for unknown student {}".format(record_id),
                             context={"student_id": record_id})
            return None

        self.editing_id = record.id
        log_with_context(logger, "DEBUG", "Editing student {}".format(record.id),
                         context={"student_id": record.id})
        return record

    def request_delete(self, record_id: str) -> None:
        """Remove a record unconditionally; deleting twice is the same as once."""
        self.store.remove(record_id)
        if self.editing_id == record_id:
            self.editing_id = None

    def cancel_edit(self) -> None:
        self.editing_id = None

    def search(self, term: str = "") -> List[StudentRecord]:
        """
        Records whose first name, last name, grade, parent name or parent
        contact contain the term, ignoring case. An empty term matches all.
        """
        records = self.store.get_all()
        if not term:
            return records
        needle = term.lower()
        return [r for r in records if r.matches(needle)]

    def _mint_id(self) -> str:
        record_id = self.id_factory()
        # Ids loaded from an earlier session may be ahead of the clock
        while self.store.find_by_id(record_id) is not None:
            record_id = self.id_factory()
        return record_id
