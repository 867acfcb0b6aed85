from uuid import UUID
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from session_service.api.error import to_http_error
from session_service.app.services.authentication_gate import AuthContext
from session_service.app.services.dtos import LogoutResponse
from session_service.app.services.session_lifecycle_service import (
    SessionLifecycleService,
)
from session_service.depends import get_current_context, get_session_service, require_roles
from session_service.domain.entities import UserRole

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions for a user"""

    user_id: UUID = Field(..., description="User ID whose sessions will be revoked")


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=LogoutResponse,
)
async def revoke_all_sessions(
    request: RevokeAllSessionsRequest,
    context: AuthContext = Depends(require_roles(UserRole.admin)),
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    Revoke All Sessions

    Closes every session of a user. Useful for:
    - Security incidents (account compromise)
    - Password changes made by support staff

    Authorization:
    - Admins only

    Raises:
        - 401 Unauthorized: Caller is not authenticated
        - 403 Forbidden: Caller is not an admin
        - 404 Not Found: User not found
    """
    result = await service.revoke_user_sessions(request.user_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=LogoutResponse,
)
async def revoke_specific_session(
    session_id: UUID,
    context: AuthContext = Depends(get_current_context),
    service: SessionLifecycleService = Depends(get_session_service),
):
    """
    Revoke Specific Session

    Closes one of the caller's own sessions, e.g. to log out a lost device.

    Raises:
        - 401 Unauthorized: Caller is not authenticated
        - 404 Not Found: Session not found or owned by another user
    """
    result = await service.logout_session(context.principal.id, session_id=session_id)

    if result.is_err():
        raise to_http_error(result.error)

    return result.value
