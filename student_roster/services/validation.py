"""
Validation rules for the student form.

Rules:
1. Required fields must be non-empty after trimming whitespace
2. Date of birth must parse as a calendar date
3. Date of birth must be strictly before today

Every violated field is reported in one pass; nothing short-circuits on the
first failure. Validation is pure: it never touches the store.

Design Decision: an unparseable date of birth is reported as a failure
rather than let through. A value the date parser rejects can never be
compared with today, so accepting it would store a record whose only
date field is meaningless.
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from student_roster.models.student import FORM_FIELDS

# Required wire field -> label shown in messages
REQUIRED_FIELDS = {
    "firstName": "First Name",
    "lastName": "Last Name",
    "dob": "Date of Birth",
    "gender": "Gender",
    "grade": "Grade",
    "address": "Address",
    "parentName": "Parent Name",
    "parentContact": "Parent Contact",
}

DOB_IN_FUTURE_MESSAGE = "Date of Birth must be in the past"
DOB_INVALID_MESSAGE = "Date of Birth is not a valid date"


class FieldError(BaseModel):
    """One failed rule for one form field."""
    field: str
    message: str


class ValidationResult(BaseModel):
    """Either a normalized candidate (all fields trimmed) or a list of errors."""
    candidate: Optional[Dict[str, str]] = None
    errors: List[FieldError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_fields(self) -> List[str]:
        return [e.field for e in self.errors]


def normalize_fields(fields: dict) -> Dict[str, str]:
    """
    Keep only the form fields and trim each one.

    Missing keys and None become empty strings; anything else is
    converted to its string form first.
    """
    normalized = {}
    for name in FORM_FIELDS:
        value = fields.get(name)
        normalized[name] = "" if value is None else str(value).strip()
    return normalized


def parse_date(value: str) -> Optional[date]:
    """
    Parse an ISO calendar date.

    Plain dates ("2010-05-01") and full ISO timestamps are accepted; for
    timestamps only the date part is kept. Returns None if parsing fails.
    """
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def validate_fields(fields: dict, today: date) -> ValidationResult:
    """
    Apply the required-field rule and the date rule to a raw field bundle.

    Args:
        fields: Wire-named field values as submitted by the form
        today: The current date; dob must be strictly earlier

    Returns:
        ValidationResult with the trimmed candidate, or every FieldError found
    """
    normalized = normalize_fields(fields)
    errors = []

    for name, label in REQUIRED_FIELDS.items():
        if not normalized[name]:
            errors.append(FieldError(field=name, message=f"{label} is required"))

    if normalized["dob"]:
        dob = parse_date(normalized["dob"])
        if dob is None:
            errors.append(FieldError(field="dob", message=DOB_INVALID_MESSAGE))
        elif dob >= today:
            errors.append(FieldError(field="dob", message=DOB_IN_FUTURE_MESSAGE))

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(candidate=normalized)
