from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ... import analytics
from ...database.models import ClassCreate, DetailedStudent, SchoolClass, UserCreate, UserSummary
from ...database.repository import Repository
from ...errors import ValidationFailure
from ...policy import Actor, Operation, enforce
from ...session_manager import SessionStore
from ..dependencies import get_current_actor, get_repository, get_sessions

router = APIRouter()


@router.get("/users", response_model=List[UserSummary], summary="Get All Users with Class Names")
def get_users(
    q: Optional[str] = Query(None, description="Search in full name or email"),
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.MANAGE_USERS)
    return analytics.filter_users(repo.get_all_users_with_class(), q)


@router.get("/classes", response_model=List[SchoolClass], summary="Get All Classes with Student Counts")
def get_classes(
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.MANAGE_CLASSES)
    return repo.get_all_classes_with_student_count()


@router.get(
    "/students-detailed",
    response_model=List[DetailedStudent],
    summary="Get Every Student with Grades, Attendance and Derived Figures",
)
def get_students_detailed(
    q: Optional[str] = Query(None, description="Search in full name"),
    class_name: Optional[str] = Query(None, description="Exact class name"),
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.VIEW_DETAILED)
    students = analytics.filter_students(repo.get_students_detailed(), q, class_name)
    return [{**student, **analytics.summarize_student(student)} for student in students]


@router.post("/classes", status_code=status.HTTP_201_CREATED, summary="Create a Class")
def create_class(
    school_class: ClassCreate,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.MANAGE_CLASSES)
    class_id = repo.create_class(school_class.name, school_class.year)
    return {"success": True, "id": class_id}


@router.post("/users", status_code=status.HTTP_201_CREATED, summary="Create a User")
def create_user(
    user: UserCreate,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
):
    enforce(actor, Operation.MANAGE_USERS)
    if user.class_id is not None and repo.get_class(user.class_id) is None:
        raise ValidationFailure(f"Class with ID {user.class_id} does not exist")

    user_id = repo.create_user(
        email=user.email,
        password=user.password,
        role=user.role,
        name=user.name,
        surname=user.surname,
        dob=user.dob,
        year=user.year,
        class_id=user.class_id,
    )
    return {"success": True, "id": user_id}


@router.delete("/users/{user_id}", summary="Delete a User and Everything That References Them")
def delete_user(
    user_id: int,
    actor: Actor = Depends(get_current_actor),
    repo: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_sessions),
):
    enforce(actor, Operation.MANAGE_USERS)
    if repo.delete_user(user_id):
        sessions.revoke_user(user_id)
    return {"success": True}
