"""API routes for employee work sessions."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import get_db
from staffdesk.api.schemas import EmployeeSessionSchema, SessionStartRequest
from staffdesk.employees import sessions
from staffdesk.employees.sessions import WorkDay

router = APIRouter(prefix="/api/employees", tags=["sessions"])


@router.post("/sessions/check-inactivity")
async def check_inactivity(db: AsyncSession = Depends(get_db)) -> dict:
    """Flag employees idle for more than 15 minutes as busy."""
    return {"updated": await sessions.check_inactivity(db)}


@router.post("/{employee_id}/sessions/start", response_model=EmployeeSessionSchema)
async def start_session(
    employee_id: int,
    request: SessionStartRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSessionSchema:
    request = request or SessionStartRequest()
    work_session = await sessions.start_session(
        db,
        employee_id,
        session_type=request.session_type,
        device=request.device,
        ip_address=request.ip_address,
    )
    return EmployeeSessionSchema.model_validate(work_session)


@router.post("/{employee_id}/sessions/end", response_model=EmployeeSessionSchema)
async def end_session(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSessionSchema:
    return EmployeeSessionSchema.model_validate(await sessions.end_session(db, employee_id))


@router.post("/{employee_id}/sessions/heartbeat", response_model=EmployeeSessionSchema)
async def heartbeat(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSessionSchema:
    return EmployeeSessionSchema.model_validate(await sessions.update_activity(db, employee_id))


@router.get("/{employee_id}/sessions", response_model=list[EmployeeSessionSchema])
async def list_sessions(
    employee_id: int,
    since: dt.datetime | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[EmployeeSessionSchema]:
    found = await sessions.list_sessions(db, employee_id, since=since, limit=limit)
    return [EmployeeSessionSchema.model_validate(s) for s in found]


@router.get("/{employee_id}/work-hours", response_model=list[WorkDay])
async def work_hours(
    employee_id: int,
    since: dt.datetime | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[WorkDay]:
    """Minutes worked per day."""
    found = await sessions.list_sessions(db, employee_id, since=since, limit=1000)
    return sessions.summarize_work_hours(found)
