"""Vacation balances and the request / approve / reject / cancel workflow.

A balance row exists per employee and calendar year.  Requests reserve
days in ``pending``; approval moves them to ``used``; rejection and
cancellation release them.  ``remaining`` is recomputed after every
change as ``available - used - pending``.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Literal

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staffdesk.audit import record_audit
from staffdesk.employees.operations import can_request_vacation, get_employee
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError
from staffdesk.models._time import utcnow
from staffdesk.models.employee import Employee
from staffdesk.models.vacation import VacationBalance, VacationEntry

logger = structlog.get_logger()

VacationType = Literal[
    "annual",
    "sick",
    "personal",
    "unpaid",
    "parental",
    "bereavement",
    "maternity",
    "paternity",
    "other",
]
VacationStatus = Literal["pending", "approved", "rejected", "cancelled"]

ANNUAL_ENTITLEMENT_DAYS = 25
DEFAULT_MAX_CARRYOVER_DAYS = 5
MAX_VACATION_DAYS = 365
MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 1000


def calculate_business_days(start: dt.date, end: dt.date) -> int:
    """Count Monday-Friday days in ``[start, end]``; 0 when ``end`` precedes ``start``."""
    if end < start:
        return 0
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += dt.timedelta(days=1)
    return days


def calculate_annual_entitlement(hire_date: dt.date | None, year: int) -> int:
    """Full entitlement, pro-rated by remaining months when hired during ``year``."""
    if hire_date is None or hire_date.year < year:
        return ANNUAL_ENTITLEMENT_DAYS
    if hire_date.year > year:
        return 0
    months_worked = 12 - (hire_date.month - 1)
    return math.floor(ANNUAL_ENTITLEMENT_DAYS / 12 * months_worked + 0.5)


def validate_vacation_request(
    start: dt.date,
    end: dt.date,
    days: float,
    reason: str | None = None,
    notes: str | None = None,
) -> list[str]:
    errors: list[str] = []
    if end < start:
        errors.append("End date cannot be before start date")
    if days <= 0:
        errors.append("Days must be greater than 0")
    elif days > MAX_VACATION_DAYS:
        errors.append(f"Vacation days cannot exceed {MAX_VACATION_DAYS}")
    if reason and len(reason.strip()) > MAX_REASON_LENGTH:
        errors.append(f"Reason cannot exceed {MAX_REASON_LENGTH} characters")
    if notes and len(notes.strip()) > MAX_NOTES_LENGTH:
        errors.append(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
    return errors


def _recompute_remaining(balance: VacationBalance) -> None:
    balance.remaining = balance.available - balance.used - balance.pending


async def _find_balance(session: AsyncSession, employee_id: int, year: int) -> VacationBalance | None:
    stmt = (
        sa.select(VacationBalance)
        .where(VacationBalance.employee_id == employee_id, VacationBalance.year == year)
        .options(selectinload(VacationBalance.entries))
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_or_create_balance(session: AsyncSession, employee: Employee, year: int) -> VacationBalance:
    balance = await _find_balance(session, employee.id, year)
    if balance is not None:
        return balance

    entitlement = calculate_annual_entitlement(employee.hire_date, year)
    balance = VacationBalance(
        employee_id=employee.id,
        year=year,
        annual_entitlement=entitlement,
        carryover_days=0,
        available=entitlement,
        used=0,
        pending=0,
        remaining=entitlement,
        entries=[],
    )
    session.add(balance)
    await session.flush()
    logger.info("vacation_balance_created", employee_id=employee.id, year=year, entitlement=entitlement)
    return balance


async def get_balance(session: AsyncSession, employee_id: int, year: int) -> VacationBalance:
    balance = await _find_balance(session, employee_id, year)
    if balance is None:
        raise NotFoundError("Vacation balance", f"{employee_id}/{year}")
    return balance


async def request_vacation(
    session: AsyncSession,
    employee_id: int,
    start: dt.date,
    end: dt.date,
    vacation_type: VacationType,
    reason: str | None = None,
    notes: str | None = None,
    operator: str = "anonymous",
) -> VacationEntry:
    days = calculate_business_days(start, end)
    errors = validate_vacation_request(start, end, days, reason, notes)
    if errors:
        raise ValidationFailedError(errors)

    employee = await get_employee(session, employee_id)
    if not can_request_vacation(employee):
        raise ConflictError(f"Employee {employee.employee_number} cannot request vacation (status {employee.status})")

    balance = await get_or_create_balance(session, employee, start.year)
    if vacation_type == "annual" and balance.remaining < days:
        raise ValidationFailedError(
            [f"Insufficient vacation days. Remaining: {balance.remaining:g}, Requested: {days}"]
        )

    entry = VacationEntry(
        start_date=start,
        end_date=end,
        days=days,
        type=vacation_type,
        status="pending",
        reason=reason,
        notes=notes,
        requested_by=operator,
    )
    balance.entries.append(entry)
    balance.pending += days
    _recompute_remaining(balance)
    await session.flush()

    record_audit(
        session,
        "vacation.requested",
        "vacation_entry",
        entry.id,
        operator,
        entity_title=employee.employee_number,
        details={"days": days, "type": vacation_type, "start": start.isoformat(), "end": end.isoformat()},
    )
    await session.commit()
    logger.info("vacation_requested", employee_id=employee_id, entry_id=entry.id, days=days)
    return entry


async def _get_entry(session: AsyncSession, entry_id: int) -> VacationEntry:
    stmt = (
        sa.select(VacationEntry)
        .where(VacationEntry.id == entry_id)
        .options(selectinload(VacationEntry.balance))
    )
    entry = (await session.execute(stmt)).scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Vacation entry", entry_id)
    return entry


async def _decide(
    session: AsyncSession,
    entry_id: int,
    status: VacationStatus,
    operator: str,
    note: str | None,
) -> VacationEntry:
    entry = await _get_entry(session, entry_id)
    if entry.status != "pending":
        raise ConflictError(f"Vacation entry {entry_id} is not pending approval (status {entry.status})")

    balance = entry.balance
    if status == "approved":
        balance.used += entry.days
    balance.pending -= entry.days
    _recompute_remaining(balance)

    entry.status = status
    entry.decided_by = operator
    entry.decided_at = utcnow()
    entry.decision_note = note

    record_audit(
        session,
        f"vacation.{status}",
        "vacation_entry",
        entry.id,
        operator,
        details={"days": entry.days, "note": note},
    )
    await session.commit()
    logger.info("vacation_decided", entry_id=entry_id, status=status, operator=operator)
    return entry


async def approve_vacation(
    session: AsyncSession, entry_id: int, operator: str = "anonymous", note: str | None = None
) -> VacationEntry:
    return await _decide(session, entry_id, "approved", operator, note)


async def reject_vacation(
    session: AsyncSession, entry_id: int, operator: str = "anonymous", note: str | None = None
) -> VacationEntry:
    return await _decide(session, entry_id, "rejected", operator, note)


async def cancel_vacation(
    session: AsyncSession, entry_id: int, operator: str = "anonymous", note: str | None = None
) -> VacationEntry:
    """Cancel a pending or approved entry and give its days back."""
    entry = await _get_entry(session, entry_id)
    if entry.status not in ("pending", "approved"):
        raise ConflictError(f"Vacation entry {entry_id} cannot be cancelled (status {entry.status})")

    balance = entry.balance
    if entry.status == "pending":
        balance.pending -= entry.days
    else:
        balance.used -= entry.days
    _recompute_remaining(balance)

    previous = entry.status
    entry.status = "cancelled"
    entry.decided_by = operator
    entry.decided_at = utcnow()
    entry.decision_note = note

    record_audit(
        session,
        "vacation.cancelled",
        "vacation_entry",
        entry.id,
        operator,
        details={"days": entry.days, "previous_status": previous},
    )
    await session.commit()
    logger.info("vacation_cancelled", entry_id=entry_id, previous_status=previous)
    return entry


async def carry_over_days(
    session: AsyncSession,
    employee_id: int,
    from_year: int,
    to_year: int,
    max_carryover_days: float = DEFAULT_MAX_CARRYOVER_DAYS,
    operator: str = "anonymous",
) -> float:
    """Move unused days (capped) into the next year's balance. Returns the amount carried."""
    previous = await get_balance(session, employee_id, from_year)
    amount = min(previous.remaining, max_carryover_days)
    if amount <= 0:
        return 0

    employee = await get_employee(session, employee_id)
    balance = await get_or_create_balance(session, employee, to_year)
    entitlement = calculate_annual_entitlement(employee.hire_date, to_year)
    balance.annual_entitlement = entitlement
    balance.carryover_days = amount
    balance.available = entitlement + amount
    _recompute_remaining(balance)

    record_audit(
        session,
        "vacation.carryover",
        "vacation_balance",
        balance.id,
        operator,
        entity_title=employee.employee_number,
        details={"from_year": from_year, "to_year": to_year, "days": amount},
    )
    await session.commit()
    logger.info("vacation_carryover", employee_id=employee_id, from_year=from_year, to_year=to_year, days=amount)
    return amount


async def list_entries(
    session: AsyncSession,
    employee_id: int | None = None,
    year: int | None = None,
    status: VacationStatus | None = None,
) -> list[VacationEntry]:
    stmt = sa.select(VacationEntry).join(VacationBalance)
    if employee_id is not None:
        stmt = stmt.where(VacationBalance.employee_id == employee_id)
    if year is not None:
        stmt = stmt.where(VacationBalance.year == year)
    if status is not None:
        stmt = stmt.where(VacationEntry.status == status)
    stmt = stmt.order_by(VacationEntry.start_date.desc(), VacationEntry.id.desc())
    return list((await session.execute(stmt)).scalars().all())
