"""
Student model - represents one entry in the roster.

Records are plain pydantic models rather than ORM rows: the whole roster
is persisted as a single JSON document, so each record only has to know
how to turn itself into (and back from) one object of that document.
Python attributes are snake_case; the serialized form uses the camelCase
names the form submits (firstName, parentContact, ...).
"""

from pydantic import BaseModel, ConfigDict, Field

# Wire names of every editable field, in form order
FORM_FIELDS = (
    "firstName", "lastName", "dob", "gender", "grade", "section",
    "address", "parentName", "parentContact", "email", "medicalInfo",
)

# Fields matched by the search box
SEARCHABLE_FIELDS = ("firstName", "lastName", "grade", "parentName", "parentContact")

SHORT_ID_LENGTH = 6


class StudentRecord(BaseModel):
    """
    A single student record.

    The id is assigned once when the record is created and never changes;
    an update always supplies every other field again (full replacement).
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., description="Opaque time-based identifier")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    dob: str = Field(..., description="Date of birth, ISO calendar date")
    gender: str
    grade: str
    section: str = ""
    address: str
    parent_name: str = Field(..., alias="parentName")
    parent_contact: str = Field(..., alias="parentContact")
    email: str = ""
    medical_info: str = Field("", alias="medicalInfo")

    @classmethod
    def from_fields(cls, record_id: str, fields: dict) -> "StudentRecord":
        """Build a record from a wire-named field mapping and an id."""
        return cls.model_validate({**fields, "id": record_id})

    def to_document(self) -> dict:
        """Serialize to the wire/persisted form (camelCase keys)."""
        return self.model_dump(by_alias=True)

    def matches(self, term: str) -> bool:
        """
        Case-insensitive substring match against the searchable fields.

        The caller is expected to pass an already lower-cased term.
        """
        document = self.to_document()
        return any(term in document[name].lower() for name in SEARCHABLE_FIELDS)

    def table_row(self) -> dict:
        """Project the record onto the columns of the roster table."""
        grade_label = f"Grade {self.grade}"
        if self.section:
            grade_label += f" ({self.section})"
        return {
            "id": self.id,
            "shortId": self.id[:SHORT_ID_LENGTH],
            "name": f"{self.first_name} {self.last_name}",
            "gradeLabel": grade_label,
            "parentName": self.parent_name,
            "parentContact": self.parent_contact,
        }

    def __repr__(self):
        return f"<StudentRecord(id={self.id}, name='{self.first_name} {self.last_name}')>"
