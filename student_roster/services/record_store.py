"""
Record Store - the authoritative in-memory roster and its persisted copy.

The whole roster lives under a single key of a key-value backend as one
JSON array. Reads come from memory; every mutation rewrites the complete
array (no deltas, no batching), so the persisted copy always matches
the in-memory list once a call returns.

A blob that cannot be read back as a list of records is treated the same
as a first run: the store starts empty and logs a warning.
"""

import os
import json
from typing import List, Optional
from pydantic import ValidationError

from student_roster.models.student import StudentRecord
from student_roster.logging_config import get_logger, log_with_context

# Channel logger for store operations
logger = get_logger("store")

STORE_KEY = os.getenv("STUDENTS_STORE_KEY", "students")


class RecordStore:
    """Ordered collection of StudentRecord objects backed by one key-value slot."""

    def __init__(self, backend, key: str = STORE_KEY):
        self.backend = backend
        self.key = key
        self._records: List[StudentRecord] = []

    def load(self) -> List[StudentRecord]:
        """
        Replace the in-memory roster with whatever the backend holds.

        Missing, unparseable or malformed data yields an empty roster.
        """
        blob = self.backend.get(self.key)
        if blob is None:
            log_with_context(logger, "INFO", "No stored roster under '{}'".format(self.key),
                             context={"store_key": self.key})
            self._records = []
            return self.get_all()

        try:
            self._records = _parse_roster(blob)
        except (json.JSONDecodeError, ValidationError, TypeError, ValueError) as e:
            log_with_context(logger, "WARNING",
                             "Stored roster under '{}' is unreadable, starting empty".format(self.key),
                             context={"store_key": self.key},
                             extra_data={"error": str(e)[:200]})
            self._records = []
            return self.get_all()

        log_with_context(logger, "INFO", "Loaded {} records".format(len(self._records)),
                         context={"store_key": self.key},
                         extra_data={"record_count": len(self._records)})
        return self.get_all()

    def get_all(self) -> List[StudentRecord]:
        return list(self._records)

    def find_by_id(self, record_id: str) -> Optional[StudentRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def upsert(self, record: StudentRecord) -> StudentRecord:
        """
        Replace the record with the same id in place, or append it.

        The in-memory roster only changes once the backend write succeeds.
        """
        updated = list(self._records)
        for index, existing in enumerate(updated):
            if existing.id == record.id:
                updated[index] = record
                action = "Updated"
                break
        else:
            updated.append(record)
            action = "Added"

        self._persist(updated)
        self._records = updated
        log_with_context(logger, "INFO", "{} student record {}".format(action, record.id),
                         context={"student_id": record.id},
                         extra_data={"record_count": len(self._records)})
        return record

    def remove(self, record_id: str) -> None:
        """Drop the record with this id. Unknown ids are not an error."""
        remaining = [r for r in self._records if r.id != record_id]
        removed = len(remaining) != len(self._records)
        self._persist(remaining)
        self._records = remaining
        log_with_context(logger, "INFO",
                         "Removed student record {}".format(record_id) if removed
                         else "No student record {} to remove".format(record_id),
                         context={"student_id": record_id},
                         extra_data={"record_count": len(self._records)})

    def _persist(self, records: List[StudentRecord]) -> None:
        blob = json.dumps([r.to_document() for r in records])
        self.backend.set(self.key, blob)


def _parse_roster(blob: str) -> List[StudentRecord]:
    """Decode a stored roster; raises on anything that is not a list of records."""
    documents = json.loads(blob)
    if not isinstance(documents, list):
        raise TypeError("stored roster is {}, expected a list".format(type(documents).__name__))

    records = []
    seen_ids = set()
    for document in documents:
        record = StudentRecord.model_validate(document)
        if record.id in seen_ids:
            raise ValueError("duplicate record id {}".format(record.id))
        seen_ids.add(record.id)
        records.append(record)
    return records
