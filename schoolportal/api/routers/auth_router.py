from typing import Optional

from fastapi import APIRouter, Depends

from ...auth import LOGIN_ERROR_MESSAGE
from ...database.models import LoginRequest, LoginResponse, Profile
from ...database.repository import Repository
from ...errors import AuthenticationFailure
from ...session_manager import SessionStore
from ..dependencies import get_bearer_token, get_repository, get_sessions

router = APIRouter()


@router.post("/login", response_model=LoginResponse, summary="Log In and Receive a Session Token")
def login(
    credentials: LoginRequest,
    repo: Repository = Depends(get_repository),
    sessions: SessionStore = Depends(get_sessions),
):
    user = repo.authenticate(credentials.email, credentials.password)
    if user is None:
        raise AuthenticationFailure(LOGIN_ERROR_MESSAGE)

    token = sessions.create(user["id"], user["role"])
    return LoginResponse(user=Profile(**user), token=token)


@router.post("/logout", summary="End the Current Session")
def logout(
    token: Optional[str] = Depends(get_bearer_token),
    sessions: SessionStore = Depends(get_sessions),
):
    if not sessions.logout(token):
        raise AuthenticationFailure("Authentication required")
    return {"success": True}
