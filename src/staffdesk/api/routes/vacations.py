"""API routes for vacation balances and requests."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import get_db
from staffdesk.api.schemas import (
    CarryoverRequest,
    VacationBalanceSchema,
    VacationDecisionRequest,
    VacationEntrySchema,
    VacationRequestBody,
)
from staffdesk.employees import vacations
from staffdesk.employees.vacations import VacationStatus

router = APIRouter(prefix="/api/employees", tags=["vacations"])


@router.post("/{employee_id}/vacations", response_model=VacationEntrySchema, status_code=201)
async def request_vacation(
    employee_id: int,
    request: VacationRequestBody,
    db: AsyncSession = Depends(get_db),
) -> VacationEntrySchema:
    """Request leave; business days are counted from the date range."""
    entry = await vacations.request_vacation(
        db,
        employee_id,
        start=request.start_date,
        end=request.end_date,
        vacation_type=request.type,
        reason=request.reason,
        notes=request.notes,
        operator=request.operator,
    )
    return VacationEntrySchema.model_validate(entry)


@router.get("/{employee_id}/vacations", response_model=list[VacationEntrySchema])
async def list_vacations(
    employee_id: int,
    year: int | None = None,
    status: VacationStatus | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[VacationEntrySchema]:
    entries = await vacations.list_entries(db, employee_id=employee_id, year=year, status=status)
    return [VacationEntrySchema.model_validate(e) for e in entries]


@router.get("/{employee_id}/vacation-balance/{year}", response_model=VacationBalanceSchema)
async def get_vacation_balance(
    employee_id: int,
    year: int,
    db: AsyncSession = Depends(get_db),
) -> VacationBalanceSchema:
    return VacationBalanceSchema.model_validate(await vacations.get_balance(db, employee_id, year))


@router.post("/{employee_id}/vacations/carryover")
async def carry_over(
    employee_id: int,
    request: CarryoverRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Carry unused days from one year into the next, capped at ``max_carryover_days``."""
    days = await vacations.carry_over_days(
        db,
        employee_id,
        from_year=request.from_year,
        to_year=request.to_year,
        max_carryover_days=request.max_carryover_days,
        operator=request.operator,
    )
    return {"carryover_days": days}


@router.post("/vacation-entries/{entry_id}/approve", response_model=VacationEntrySchema)
async def approve_vacation(
    entry_id: int,
    request: VacationDecisionRequest,
    db: AsyncSession = Depends(get_db),
) -> VacationEntrySchema:
    entry = await vacations.approve_vacation(db, entry_id, operator=request.operator, note=request.note)
    return VacationEntrySchema.model_validate(entry)


@router.post("/vacation-entries/{entry_id}/reject", response_model=VacationEntrySchema)
async def reject_vacation(
    entry_id: int,
    request: VacationDecisionRequest,
    db: AsyncSession = Depends(get_db),
) -> VacationEntrySchema:
    entry = await vacations.reject_vacation(db, entry_id, operator=request.operator, note=request.note)
    return VacationEntrySchema.model_validate(entry)


@router.post("/vacation-entries/{entry_id}/cancel", response_model=VacationEntrySchema)
async def cancel_vacation(
    entry_id: int,
    request: VacationDecisionRequest,
    db: AsyncSession = Depends(get_db),
) -> VacationEntrySchema:
    entry = await vacations.cancel_vacation(db, entry_id, operator=request.operator, note=request.note)
    return VacationEntrySchema.model_validate(entry)
