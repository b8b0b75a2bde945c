"""API routes for employee targets, KPIs and rankings."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import get_db
from staffdesk.api.schemas import (
    EmployeeKPISchema,
    KPICalculateRequest,
    RankingRequest,
    TargetSchema,
    TargetsRequest,
)
from staffdesk.employees import kpis

router = APIRouter(prefix="/api/employees", tags=["kpis"])


@router.get("/kpis", response_model=list[EmployeeKPISchema])
async def list_kpis(
    year: int | None = None,
    month: int | None = None,
    employee_id: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[EmployeeKPISchema]:
    found = await kpis.list_kpis(db, employee_id=employee_id, year=year, month=month)
    return [EmployeeKPISchema.model_validate(k) for k in found]


@router.post("/kpis/rankings", response_model=list[EmployeeKPISchema])
async def calculate_rankings(
    request: RankingRequest,
    db: AsyncSession = Depends(get_db),
) -> list[EmployeeKPISchema]:
    """Rank every employee's KPI snapshot for the month, best first."""
    ranked = await kpis.calculate_rankings(db, request.year, request.month, request.rank_by)
    return [EmployeeKPISchema.model_validate(k) for k in ranked]


@router.put("/{employee_id}/targets", response_model=TargetSchema)
async def set_targets(
    employee_id: int,
    request: TargetsRequest,
    db: AsyncSession = Depends(get_db),
) -> TargetSchema:
    values = request.model_dump(exclude={"year", "month", "notes", "operator"})
    target = await kpis.set_targets(
        db,
        employee_id,
        request.year,
        request.month,
        operator=request.operator,
        notes=request.notes,
        **values,
    )
    return TargetSchema.model_validate(target)


@router.post("/{employee_id}/kpis/calculate", response_model=EmployeeKPISchema)
async def calculate_kpis(
    employee_id: int,
    request: KPICalculateRequest,
    db: AsyncSession = Depends(get_db),
) -> EmployeeKPISchema:
    kpi = await kpis.calculate_kpis(db, employee_id, **request.model_dump())
    return EmployeeKPISchema.model_validate(kpi)
