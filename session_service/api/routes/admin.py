"""
Admin API Routes - Session Maintenance Endpoints

These endpoints are for schedulers and operators.
Authentication is via Admin API Key, not user JWTs.
"""

from enum import Enum
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from config import ApplicationConfig
from session_service.api.utils.admin_auth import verify_admin_api_key
from session_service.app.services.session_governor import SessionGovernor, SweepReport
from session_service.app.services.unit_of_work import UnitOfWork
from session_service.depends import get_unit_of_work

router = APIRouter(
    prefix="/admin/sessions",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_api_key)],
)


class CleanupMode(str, Enum):
    full = "full"
    light = "light"


class SweepResponse(BaseModel):
    expired: int
    inactive: int
    never_used: int
    total: int


class CleanupResponse(BaseModel):
    mode: CleanupMode
    deactivated: SweepResponse
    deleted: SweepResponse


class StatsResponse(BaseModel):
    active: int
    inactive: int
    total: int


def _governor(uow: UnitOfWork) -> SessionGovernor:
    return SessionGovernor(
        uow,
        retention_days=ApplicationConfig.SESSION_RETENTION_DAYS,
        never_used_grace_hours=ApplicationConfig.NEVER_USED_GRACE_HOURS,
    )


@router.post("/sweep", status_code=status.HTTP_200_OK, response_model=SweepResponse)
async def sweep_sessions(uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Sweep Sessions

    Deactivates expired, idle and never-used sessions. Rows are kept, so
    running it twice in a row deactivates nothing the second time.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    async with uow:
        report = await _governor(uow).sweep()
        await uow.commit()

    return SweepResponse(**report.as_dict())


@router.post("/cleanup", status_code=status.HTTP_200_OK, response_model=CleanupResponse)
async def cleanup_sessions(
    mode: CleanupMode = Query(CleanupMode.full),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Cleanup Sessions

    full: sweep, then delete expired rows, rows inactive past retention and
    abandoned logins. light: delete expired rows only.

    Requires: X-Admin-API-Key header
    """
    async with uow:
        governor = _governor(uow)
        if mode == CleanupMode.full:
            swept = await governor.sweep()
            purged = await governor.purge()
        else:
            swept = SweepReport()
            purged = SweepReport(expired=await governor.purge_expired_only())
        await uow.commit()

    return CleanupResponse(
        mode=mode,
        deactivated=SweepResponse(**swept.as_dict()),
        deleted=SweepResponse(**purged.as_dict()),
    )


@router.get("/stats", status_code=status.HTTP_200_OK, response_model=StatsResponse)
async def session_stats(uow: UnitOfWork = Depends(get_unit_of_work)):
    """Active and total session counts"""
    async with uow:
        stats = await _governor(uow).stats()

    return StatsResponse(active=stats.active, inactive=stats.inactive, total=stats.total)
