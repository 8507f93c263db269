"""Access policy for the school portal.

Decides whether an actor may perform an operation on a resource. The
functions here are pure: the caller loads whatever the decision needs
(the actor's assignments, the student's class) before asking, and asks
before touching the store.

Rules:
    - Students see only their own profile, grades, attendance and report.
    - Professors manage grades only for (subject, class) pairs they are
      assigned to, read grades only for those pairs, and see rosters
      only of their classes.
    - Admins manage users and classes and may read everything, but do
      not write grades.
    - News, the staff directory and the subject list are public.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .database.models import Role
from .errors import AuthorizationDenied


class Operation(str, Enum):
    READ_PROFILE = "read_profile"
    READ_GRADES = "read_grades"
    READ_ATTENDANCE = "read_attendance"
    READ_ASSIGNMENTS = "read_assignments"
    VIEW_ROSTER = "view_roster"
    WRITE_GRADE = "write_grade"
    MANAGE_USERS = "manage_users"
    MANAGE_CLASSES = "manage_classes"
    VIEW_DETAILED = "view_detailed"
    READ_NEWS = "read_news"
    READ_STAFF = "read_staff"
    READ_SUBJECTS = "read_subjects"


PUBLIC_OPERATIONS = frozenset({Operation.READ_NEWS, Operation.READ_STAFF, Operation.READ_SUBJECTS})
ADMIN_OPERATIONS = frozenset({Operation.MANAGE_USERS, Operation.MANAGE_CLASSES, Operation.VIEW_DETAILED})
STUDENT_RECORD_OPERATIONS = frozenset(
    {Operation.READ_PROFILE, Operation.READ_GRADES, Operation.READ_ATTENDANCE}
)


@dataclass(frozen=True)
class Actor:
    """A verified user: id and role come from the session, never the request.

    ``assignments`` holds a professor's (subject_id, class_id) pairs.
    """

    user_id: int
    role: Role
    assignments: frozenset[tuple[int, int]] = field(default_factory=frozenset)

    @classmethod
    def from_assignments(
        cls, user_id: int, role: Role, assignments: Iterable[Mapping[str, int]] = ()
    ) -> "Actor":
        return cls(
            user_id=user_id,
            role=Role(role),
            assignments=frozenset((a["subject_id"], a["class_id"]) for a in assignments),
        )

    @property
    def class_ids(self) -> frozenset[int]:
        return frozenset(class_id for _, class_id in self.assignments)


@dataclass(frozen=True)
class Resource:
    """What an operation targets.

    owner_id: the user whose record is read (profile, grades, assignments)
    class_id: the class of that student, or of the roster
    subject_id: the subject of a grade or roster filter
    """

    owner_id: Optional[int] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None


def is_allowed(actor: Optional[Actor], operation: Operation, resource: Resource = Resource()) -> bool:
    """Decide one request.

    Args:
        actor: The verified user, or None for an anonymous request
        operation: What the request wants to do
        resource: The record the operation targets

    Returns:
        True if the operation is permitted
    """
    if operation in PUBLIC_OPERATIONS:
        return True
    if actor is None:
        return False

    if actor.role == Role.ADMIN:
        return operation != Operation.WRITE_GRADE

    if operation in ADMIN_OPERATIONS:
        return False

    if actor.role == Role.STUDENT:
        return operation in STUDENT_RECORD_OPERATIONS and resource.owner_id == actor.user_id

    # Professor
    if operation == Operation.READ_ASSIGNMENTS:
        return resource.owner_id == actor.user_id
    if operation in STUDENT_RECORD_OPERATIONS:
        return resource.class_id is not None and resource.class_id in actor.class_ids
    if operation == Operation.VIEW_ROSTER:
        if resource.subject_id is None:
            return resource.class_id in actor.class_ids
        return (resource.subject_id, resource.class_id) in actor.assignments
    if operation == Operation.WRITE_GRADE:
        return (resource.subject_id, resource.class_id) in actor.assignments
    return False


def enforce(actor: Optional[Actor], operation: Operation, resource: Resource = Resource()) -> None:
    """Raise ``AuthorizationDenied`` unless ``is_allowed`` permits the request."""
    if not is_allowed(actor, operation, resource):
        raise AuthorizationDenied("You are not allowed to perform this action")


def enforce_role(actor: Optional[Actor], *roles: Role) -> None:
    """Role-only check, for requests whose target does not exist."""
    if actor is None or actor.role not in roles:
        raise AuthorizationDenied("You are not allowed to perform this action")


def visible_grades(
    actor: Actor, class_id: Optional[int], grades: Iterable[Mapping[str, Any]]
) -> list[Mapping[str, Any]]:
    """Filter one student's grades down to what ``actor`` may read.

    Professors see only subjects they teach in the student's class. Anyone
    else who passed ``READ_GRADES`` sees every row.
    """
    rows = list(grades)
    if actor.role != Role.PROFESSOR:
        return rows
    return [g for g in rows if (g["subject_id"], class_id) in actor.assignments]
