from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...database.models import Assignment, RosterStudent
from ...database.repository import Repository
from ...errors import NotFound
from ...policy import Actor, Operation, Resource, enforce
from ..dependencies import get_current_actor, get_repository

router = APIRouter()


@router.get(
    "/professor/{professor_id}/assignments",
    response_model=List[Assignment],
    summary="Get a Professor's Class and Subject Assignments",
)
def get_assignments(
    professor_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.READ_ASSIGNMENTS, Resource(owner_id=professor_id))
    return repo.get_assignments_for_professor(professor_id)


@router.get(
    "/class/{class_id}/students",
    response_model=List[RosterStudent],
    response_model_exclude_none=True,
    summary="Get a Class Roster, Optionally with Grades in One Subject",
)
def get_class_roster(
    class_id: int,
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.VIEW_ROSTER, Resource(class_id=class_id, subject_id=subject_id))
    if repo.get_class(class_id) is None:
        raise NotFound(f"Class with ID {class_id} not found")
    return repo.get_students_in_class(class_id, subject_id)
