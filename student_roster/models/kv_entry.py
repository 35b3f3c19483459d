"""
KeyValueEntry model - a single named slot holding a serialized document.

The roster is stored as one JSON array under a fixed key. Every mutation
rewrites the whole value, so the table never holds more than a handful
of rows.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime
from student_roster.database import Base


class KeyValueEntry(Base):
    """
    SQLAlchemy model for the kv_store table.
    """
    __tablename__ = "kv_store"

    key = Column(Text, primary_key=True,
                 doc="Slot name, e.g. 'students'")
    value = Column(Text, nullable=False,
                   doc="Serialized document stored in the slot")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc),
                        doc="Timestamp of the last write to this slot")

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
