from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from session_service.api.error import to_http_error
from session_service.app.services.authentication_gate import AuthContext
from session_service.app.services.dtos import (
    DeviceInfo,
    LoginResponse,
    LogoutResponse,
    RefreshTokenResponse,
    SessionSummary,
)
from session_service.app.services.session_lifecycle_service import (
    SessionLifecycleService,
)
from session_service.depends import (
    get_current_context,
    get_refresh_context,
    get_session_service,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    device_info: Optional[str] = Field(None, max_length=255)
    device_name: Optional[str] = Field(None, max_length=255)
    device_type: Optional[str] = Field(None, max_length=50)


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    User Login

    Verifies credentials and opens a new session. If the user already holds
    the maximum number of sessions, the least recently used one is closed.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
        - 500 Internal Server Error: Server error
    """
    device = DeviceInfo(
        device_info=request.device_info,
        device_name=request.device_name,
        device_type=request.device_type,
        ip_address=http_request.client.host if http_request.client else None,
        user_agent=http_request.headers.get("user-agent"),
    )

    result = await service.login(request.email, request.password, device)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse)
async def refresh(
    refresh_context: Tuple[AuthContext, str] = Depends(get_refresh_context),
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    Refresh Tokens

    Rotates the session's access and refresh tokens. The presented pair stops
    working immediately.

    Raises:
        - 401 Unauthorized: Invalid/expired/wrong-kind token, or session
          not found, expired or inactive
        - 500 Internal Server Error: Server error
    """
    _, refresh_token = refresh_context
    result = await service.refresh(refresh_token)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


class LogoutRequest(BaseModel):
    """
    Logout HTTP request payload

    Exactly one of session_id / access_token unless logout_all is set.
    """

    session_id: Optional[UUID] = Field(None, description="Session to close")
    access_token: Optional[str] = Field(None, description="Access token of the session to close")
    logout_all: bool = Field(False, description="Close every session of the current user")


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: LogoutRequest,
    context: AuthContext = Depends(get_current_context),
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    Logout

    Closes one session of the current user, or all of them.

    Raises:
        - 400 Bad Request: Neither or both identifiers given without logout_all
        - 401 Unauthorized: Caller is not authenticated
        - 404 Not Found: Session does not exist or belongs to another user
    """
    result = await service.logout_session(
        context.principal.id,
        session_id=request.session_id,
        access_token=request.access_token,
        logout_all=request.logout_all,
    )

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.get("/sessions", status_code=status.HTTP_200_OK, response_model=List[SessionSummary])
async def list_sessions(
    context: AuthContext = Depends(get_current_context),
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    List Active Sessions

    Returns the current user's active sessions (tokens redacted), most recently
    used first, flagging the session that made this request.
    """
    result = await service.list_active_sessions(context.principal.id, context.session_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
