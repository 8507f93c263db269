from fastapi import APIRouter, Depends

from ...database.models import GradeCreate, Role
from ...database.repository import Repository
from ...errors import ValidationFailure
from ...policy import Actor, Operation, Resource, enforce, enforce_role
from ..dependencies import get_current_actor, get_repository

router = APIRouter()


@router.post("", summary="Record a Grade")
def create_grade(
    grade: GradeCreate,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    student = repo.get_profile(grade.student_id)
    enforce(
        actor,
        Operation.WRITE_GRADE,
        Resource(
            owner_id=grade.student_id,
            class_id=student["class_id"] if student else None,
            subject_id=grade.subject_id,
        ),
    )
    if student is None or student["role"] != Role.STUDENT.value:
        raise ValidationFailure("student_id does not refer to a student")

    grade_id = repo.create_grade(grade.student_id, grade.subject_id, grade.section, grade.value)
    return {"success": True, "id": grade_id}


@router.delete("/{grade_id}", summary="Delete a Grade")
def delete_grade(
    grade_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    existing = repo.get_grade(grade_id)
    if existing is None:
        # Already gone: nothing to authorise against, nothing to delete.
        enforce_role(actor, Role.PROFESSOR)
        return {"success": True}

    enforce(
        actor,
        Operation.WRITE_GRADE,
        Resource(
            owner_id=existing["student_id"],
            class_id=existing["class_id"],
            subject_id=existing["subject_id"],
        ),
    )
    repo.delete_grade(grade_id)
    return {"success": True}
