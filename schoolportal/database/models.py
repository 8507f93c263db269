"""Pydantic models for portal rows and request bodies."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    ADMIN = "admin"
    PROFESSOR = "professor"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


# Display labels for the four grading periods.
SECTION_LABELS: dict[int, str] = {
    1: "First term",
    2: "Mid-year",
    3: "Second term",
    4: "Final",
}


# ==================== ROWS ====================


class Profile(BaseModel):
    """A user as returned to clients. Never carries the credential."""

    id: int
    email: str
    role: Role
    name: str
    surname: str
    dob: Optional[str] = None
    year: Optional[int] = None
    class_id: Optional[int] = None
    class_name: Optional[str] = None


class SchoolClass(BaseModel):
    id: int
    name: str
    year: int
    student_count: Optional[int] = None


class Subject(BaseModel):
    id: int
    name: str


class Assignment(BaseModel):
    """A professor's right to grade one subject in one class."""

    id: int
    professor_id: int
    subject_id: int
    class_id: int
    subject_name: Optional[str] = None
    class_name: Optional[str] = None
    class_year: Optional[int] = None


class Grade(BaseModel):
    id: int
    student_id: int
    subject_id: int
    section: int
    value: int
    created_at: Optional[str] = None
    subject_name: Optional[str] = None


class AttendanceRecord(BaseModel):
    id: int
    student_id: int
    date: str
    status: AttendanceStatus


class NewsItem(BaseModel):
    id: int
    title: str
    content: str
    date: str
    category: str


class StaffMember(BaseModel):
    id: int
    name: str
    surname: str
    role: Role
    email: str
    subjects: str = ""


class RosterStudent(BaseModel):
    id: int
    name: str
    surname: str
    grades: Optional[list[Grade]] = None


class UserSummary(BaseModel):
    """Row of the admin user list."""

    id: int
    email: str
    role: Role
    name: str
    surname: str
    class_name: Optional[str] = None


class DetailedStudent(BaseModel):
    """Student with every grade and attendance row, plus derived figures."""

    id: int
    name: str
    surname: str
    email: str
    class_name: Optional[str] = None
    grades: list[Grade] = Field(default_factory=list)
    attendance: list[AttendanceRecord] = Field(default_factory=list)
    average: Optional[float] = None
    average_display: str = "-"
    absences: int = 0
    attendance_severity: str = "normal"
    absences_elevated: bool = False


# ==================== REQUEST BODIES ====================


# Strings are kept exactly as sent: credentials are compared verbatim.
class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore")


class LoginRequest(_Body):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class GradeCreate(_Body):
    student_id: int
    subject_id: int
    section: int = Field(ge=1, le=4)
    value: int


class ClassCreate(_Body):
    name: str = Field(min_length=1)
    year: int = Field(ge=1, le=4)


class UserCreate(_Body):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: Role
    name: str = Field(min_length=1)
    surname: str = Field(min_length=1)
    dob: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1, le=4)
    class_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def email_has_at(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value

    @field_validator("dob")
    @classmethod
    def dob_is_iso_date(cls, value: Optional[str]) -> Optional[str]:
        if value in (None, ""):
            return None
        date.fromisoformat(value)
        return value

    @model_validator(mode="after")
    def class_only_for_students(self) -> "UserCreate":
        if self.class_id is not None and self.role != Role.STUDENT:
            raise ValueError("only students can belong to a class")
        return self


class LoginResponse(BaseModel):
    user: Profile
    token: str
    token_type: str = "bearer"
