"""FastAPI dependencies: store access and the acting user."""

from typing import Optional

from fastapi import Depends, Header, Request

from ..database.models import Role
from ..database.repository import Repository
from ..errors import AuthenticationFailure
from ..logutils import update_context
from ..policy import Actor
from ..session_manager import SessionStore


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_actor(
    token: Optional[str] = Depends(get_bearer_token),
    repo: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_sessions),
) -> Actor:
    """Resolve the session into an ``Actor`` for the access policy.

    Professors get their assignment pairs loaded here, once per request.

    Raises:
        AuthenticationFailure: If the token is missing, unknown or expired
    """
    session = sessions.validate(token)
    if session is None:
        raise AuthenticationFailure("Authentication required")

    assignments = (
        repo.get_assignments_for_professor(session.user_id)
        if session.role == Role.PROFESSOR
        else []
    )
    update_context(user_id=session.user_id, role=session.role.value)
    return Actor.from_assignments(session.user_id, session.role, assignments)
