from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from session_service.app.services.authentication_gate import AuthContext
from session_service.app.services.dtos import UserProfile
from session_service.depends import get_current_context

router = APIRouter(tags=["User"])


class MeResponse(BaseModel):
    """GET /me response payload"""
    user: UserProfile
    session_id: str


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def get_me(context: AuthContext = Depends(get_current_context)):
    """
    Current Principal

    Returns the authenticated user resolved from the bearer token.

    Raises:
        - 401 Unauthorized: Missing, invalid or expired token, or retired session
    """
    return MeResponse(
        user=UserProfile.from_principal(context.principal),
        session_id=str(context.session_id),
    )
