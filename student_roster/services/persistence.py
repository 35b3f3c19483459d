"""
Persistence backends - named slots holding one serialized document each.

The record store only needs two calls: read the blob under a key, and
overwrite it. Two backends implement that contract:

- SqlKeyValueBackend: one row per key in the kv_store table
- MemoryBackend: a plain dict, for tests and throwaway sessions
"""

import time
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from student_roster.models.kv_entry import KeyValueEntry
from student_roster.logging_config import get_logger, log_with_context

logger = get_logger("db")


class SqlKeyValueBackend:
    """Key-value slots stored as rows of the kv_store table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        """
        Overwrite the slot, creating it on first write.

        Database errors roll back the session and propagate to the caller.
        """
        start_time = time.time()
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry:
                entry.value = value
                entry.updated_at = datetime.now(timezone.utc)
            else:
                db.add(KeyValueEntry(key=key, value=value,
                                     updated_at=datetime.now(timezone.utc)))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log_with_context(logger, "ERROR", "Failed to write slot {}: {}".format(key, str(e)),
                             context={"store_key": key})
            raise
        finally:
            db.close()

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG", "Wrote slot {}".format(key),
                         context={"store_key": key},
                         extra_data={"bytes": len(value), "duration_ms": round(duration_ms, 2)})


class MemoryBackend:
    """Key-value slots held in a dict for the lifetime of the object."""

    def __init__(self, initial: dict = None):
        self.slots = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def set(self, key: str, value: str) -> None:
        self.slots[key] = value
