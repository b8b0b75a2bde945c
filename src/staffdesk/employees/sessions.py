"""Employee work sessions and online presence."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.employees.operations import get_employee
from staffdesk.errors import NotFoundError
from staffdesk.models._time import utcnow
from staffdesk.models.employee import Employee
from staffdesk.models.employee_session import EmployeeSession

logger = structlog.get_logger()

INACTIVITY_THRESHOLD = dt.timedelta(minutes=15)


def _duration_minutes(start: dt.datetime, end: dt.datetime) -> int:
    return int((end - start).total_seconds() // 60)


async def _active_sessions(session: AsyncSession, employee_id: int) -> list[EmployeeSession]:
    stmt = (
        sa.select(EmployeeSession)
        .where(EmployeeSession.employee_id == employee_id, EmployeeSession.is_active.is_(True))
        .order_by(EmployeeSession.login_time.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


def _close(work_session: EmployeeSession, now: dt.datetime) -> None:
    work_session.logout_time = now
    work_session.duration_minutes = _duration_minutes(work_session.login_time, now)
    work_session.is_active = False


def _open(
    session: AsyncSession,
    employee: Employee,
    now: dt.datetime,
    session_type: str,
    device: dict | None = None,
    ip_address: str | None = None,
) -> EmployeeSession:
    work_session = EmployeeSession(
        employee_id=employee.id,
        session_type=session_type,
        login_time=now,
        last_activity=now,
        is_active=True,
        device=device,
        ip_address=ip_address,
    )
    session.add(work_session)
    employee.work_status = "available"
    employee.is_online = True
    return work_session


async def start_session(
    session: AsyncSession,
    employee_id: int,
    session_type: str = "manual",
    device: dict | None = None,
    ip_address: str | None = None,
    now: dt.datetime | None = None,
) -> EmployeeSession:
    """Log the employee in, closing any session still open."""
    now = now or utcnow()
    employee = await get_employee(session, employee_id)
    for stale in await _active_sessions(session, employee.id):
        _close(stale, now)

    work_session = _open(session, employee, now, session_type, device, ip_address)
    await session.commit()
    logger.info("employee_session_started", employee_id=employee.id, session_id=work_session.id)
    return work_session


async def end_session(
    session: AsyncSession,
    employee_id: int,
    now: dt.datetime | None = None,
) -> EmployeeSession:
    now = now or utcnow()
    employee = await get_employee(session, employee_id)
    active = await _active_sessions(session, employee.id)
    if not active:
        raise NotFoundError("Active session", f"employee {employee_id}")

    for work_session in active:
        _close(work_session, now)
    employee.work_status = "offline"
    employee.is_online = False
    await session.commit()
    logger.info(
        "employee_session_ended",
        employee_id=employee.id,
        duration_minutes=active[0].duration_minutes,
    )
    return active[0]


async def update_activity(
    session: AsyncSession,
    employee_id: int,
    now: dt.datetime | None = None,
) -> EmployeeSession:
    """Heartbeat: refresh the active session, starting one if none is open.

    An employee returning after more than 15 minutes of inactivity is set
    back to ``available``.
    """
    now = now or utcnow()
    employee = await get_employee(session, employee_id)
    active = await _active_sessions(session, employee.id)

    if not active:
        work_session = _open(session, employee, now, "automatic")
        await session.commit()
        logger.info("employee_session_auto_started", employee_id=employee.id)
        return work_session

    work_session = active[0]
    if now - work_session.last_activity > INACTIVITY_THRESHOLD:
        employee.work_status = "available"
    work_session.last_activity = now
    await session.commit()
    return work_session


async def check_inactivity(session: AsyncSession, now: dt.datetime | None = None) -> int:
    """Mark employees whose active session went quiet as ``busy``. Returns how many changed."""
    now = now or utcnow()
    stmt = (
        sa.select(EmployeeSession, Employee)
        .join(Employee, Employee.id == EmployeeSession.employee_id)
        .where(
            EmployeeSession.is_active.is_(True),
            EmployeeSession.last_activity < now - INACTIVITY_THRESHOLD,
            Employee.work_status != "busy",
        )
    )
    updated = 0
    for _, employee in (await session.execute(stmt)).all():
        employee.work_status = "busy"
        updated += 1
    await session.commit()
    if updated:
        logger.info("employees_marked_inactive", count=updated)
    return updated


async def list_sessions(
    session: AsyncSession,
    employee_id: int,
    since: dt.datetime | None = None,
    limit: int = 100,
) -> list[EmployeeSession]:
    stmt = sa.select(EmployeeSession).where(EmployeeSession.employee_id == employee_id)
    if since is not None:
        stmt = stmt.where(EmployeeSession.login_time >= since)
    stmt = stmt.order_by(EmployeeSession.login_time.desc()).limit(limit)
    return list((await session.execute(stmt)).scalars().all())


@dataclass
class WorkDay:
    date: str
    sessions: int
    total_minutes: int


def summarize_work_hours(
    sessions: Sequence[EmployeeSession],
    now: dt.datetime | None = None,
) -> list[WorkDay]:
    """Minutes worked per login day; open sessions count up to ``now``."""
    now = now or utcnow()
    minutes: dict[dt.date, int] = defaultdict(int)
    counts: dict[dt.date, int] = defaultdict(int)
    for s in sessions:
        day = s.login_time.date()
        if s.duration_minutes is not None:
            minutes[day] += s.duration_minutes
        else:
            minutes[day] += _duration_minutes(s.login_time, s.logout_time or now)
        counts[day] += 1
    return [
        WorkDay(date=day.isoformat(), sessions=counts[day], total_minutes=minutes[day])
        for day in sorted(minutes)
    ]
