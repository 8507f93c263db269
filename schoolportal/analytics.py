"""Derived figures for grades and attendance.

Everything here is a pure function over rows the repository already
fetched; nothing touches the store. Averages are returned unrounded and
only ``format_average`` (called at the presentation boundary) rounds them.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

SECTIONS: tuple[int, ...] = (1, 2, 3, 4)

# More than this many absences is shown with a warning colour.
ELEVATED_ABSENCE_THRESHOLD = 5
# More than this many absences marks the student's attendance as critical.
CRITICAL_ABSENCE_THRESHOLD = 10

EMPTY_AVERAGE = "-"


class Severity(str, Enum):
    NORMAL = "normal"
    CRITICAL = "critical"


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def subject_average(grades: Iterable[Mapping[str, Any]]) -> Optional[float]:
    """Mean of ``value`` over one subject's grades, all sections together.

    Sections are not weighted. Returns None for an empty list.
    """
    return _mean([g["value"] for g in grades])


def overall_average(grades: Iterable[Mapping[str, Any]]) -> Optional[float]:
    """Mean of ``value`` over every grade of a student, whatever the subject."""
    return _mean([g["value"] for g in grades])


def group_by_section(grades: Iterable[Mapping[str, Any]]) -> dict[int, list[int]]:
    """Partition grade values by section.

    The result always has the keys 1 to 4; values keep their input order.
    Grades with a section outside 1..4 are ignored.
    """
    buckets: dict[int, list[int]] = {section: [] for section in SECTIONS}
    for grade in grades:
        if grade["section"] in buckets:
            buckets[grade["section"]].append(grade["value"])
    return buckets


def absence_count(attendance: Iterable[Mapping[str, Any]]) -> int:
    """Count rows whose status is ``absent``. Late and present never count."""
    return sum(1 for row in attendance if row["status"] == "absent")


def attendance_severity(absences: int) -> Severity:
    return Severity.CRITICAL if absences > CRITICAL_ABSENCE_THRESHOLD else Severity.NORMAL


def is_absence_elevated(absences: int) -> bool:
    return absences > ELEVATED_ABSENCE_THRESHOLD


def format_average(value: Optional[float]) -> str:
    """Format an average to one decimal place, or a dash when there is none."""
    if value is None:
        return EMPTY_AVERAGE
    return f"{value:.1f}"


def build_report_card(grades: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Group a student's grades into a report card.

    Args:
        grades: Grade rows carrying ``subject_name``, ``section`` and ``value``

    Returns:
        Dictionary with ``subjects`` (one entry per subject name, in order
        of first appearance, each with its section buckets and unrounded
        average) and ``overall_average``.
    """
    by_subject: dict[str, list[Mapping[str, Any]]] = {}
    for grade in grades:
        by_subject.setdefault(grade["subject_name"], []).append(grade)

    subjects = [
        {
            "subject_name": name,
            "sections": group_by_section(rows),
            "average": subject_average(rows),
        }
        for name, rows in by_subject.items()
    ]
    return {"subjects": subjects, "overall_average": overall_average(grades)}


def summarize_attendance(attendance: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    absences = absence_count(attendance)
    return {
        "absences": absences,
        "attendance_severity": attendance_severity(absences).value,
        "absences_elevated": is_absence_elevated(absences),
    }


def summarize_student(student: Mapping[str, Any]) -> dict[str, Any]:
    """Derived figures for one row of the admin's detailed student list."""
    average = overall_average(student.get("grades", []))
    return {
        "average": average,
        "average_display": format_average(average),
        **summarize_attendance(student.get("attendance", [])),
    }


def filter_students(
    students: Iterable[Mapping[str, Any]],
    search: Optional[str] = None,
    class_name: Optional[str] = None,
) -> list[Mapping[str, Any]]:
    """Filter students by a case-insensitive name search and an exact class name.

    An empty search or a missing class name matches everyone.
    """
    needle = (search or "").lower()
    return [
        s
        for s in students
        if needle in f"{s['name']} {s['surname']}".lower()
        and (not class_name or s.get("class_name") == class_name)
    ]


def filter_users(users: Iterable[Mapping[str, Any]], search: Optional[str] = None) -> list[Mapping[str, Any]]:
    """Filter users whose full name or email contains ``search`` (case-insensitive)."""
    needle = (search or "").lower()
    return [
        u
        for u in users
        if needle in f"{u['name']} {u['surname']}".lower() or needle in u["email"].lower()
    ]
