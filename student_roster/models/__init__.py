from student_roster.models.kv_entry import KeyValueEntry
from student_roster.models.student import StudentRecord

__all__ = ["KeyValueEntry", "StudentRecord"]
