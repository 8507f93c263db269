from typing import List, Optional

from fastapi import APIRouter, Depends

from ... import analytics
from ...database.models import Grade, Profile
from ...database.repository import Repository
from ...errors import NotFound
from ...policy import Actor, Operation, Resource, enforce, visible_grades
from ..dependencies import get_current_actor, get_repository

router = APIRouter()


def _authorize_student_record(
    repo: Repository, actor: Actor, operation: Operation, student_id: int
) -> Optional[int]:
    profile = repo.get_profile(student_id)
    class_id = profile["class_id"] if profile else None
    enforce(actor, operation, Resource(owner_id=student_id, class_id=class_id))
    return class_id


@router.get("/{student_id}/grades", response_model=List[Grade], summary="Get a Student's Grades")
def get_grades(
    student_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    class_id = _authorize_student_record(repo, actor, Operation.READ_GRADES, student_id)
    return visible_grades(actor, class_id, repo.get_grades_for_student(student_id))


@router.get("/{student_id}/profile", response_model=Profile, summary="Get a Student's Profile")
def get_profile(
    student_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    _authorize_student_record(repo, actor, Operation.READ_PROFILE, student_id)
    profile = repo.get_profile(student_id)
    if profile is None:
        raise NotFound(f"User with ID {student_id} not found")
    return profile


@router.get("/{student_id}/attendance", summary="Get a Student's Attendance with Absence Summary")
def get_attendance(
    student_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    _authorize_student_record(repo, actor, Operation.READ_ATTENDANCE, student_id)
    records = repo.get_attendance_for_student(student_id)
    return {"records": records, **analytics.summarize_attendance(records)}


@router.get("/{student_id}/report", summary="Get a Student's Report Card")
def get_report_card(
    student_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    class_id = _authorize_student_record(repo, actor, Operation.READ_GRADES, student_id)
    grades = visible_grades(actor, class_id, repo.get_grades_for_student(student_id))
    report = analytics.build_report_card(grades)

    for subject in report["subjects"]:
        subject["average_display"] = analytics.format_average(subject["average"])
    report["overall_average_display"] = analytics.format_average(report["overall_average"])
    return report
