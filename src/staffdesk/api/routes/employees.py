"""API routes for employee records."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import PageParams, get_db, page_params
from staffdesk.api.schemas import (
    EmployeeCreate,
    EmployeeSchema,
    EmployeeUpdate,
    OperatorRequest,
    PaginatedResponse,
    page_response,
)
from staffdesk.employees import operations

router = APIRouter(prefix="/api/employees", tags=["employees"])


@router.post("", response_model=EmployeeSchema, status_code=201)
async def create_employee(
    request: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSchema:
    data = request.model_dump(exclude={"operator"}, exclude_none=True)
    employee = await operations.create_employee(db, data, operator=request.operator)
    return EmployeeSchema.model_validate(employee)


@router.get("", response_model=PaginatedResponse[EmployeeSchema])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    paging: PageParams = Depends(page_params),
    search: str | None = Query(default=None, description="Matches name, employee number or email"),
    status: str | None = None,
    department: str | None = None,
) -> PaginatedResponse[EmployeeSchema]:
    employees, total = await operations.list_employees(
        db,
        page=paging.page,
        size=paging.size,
        search=search,
        status=status,
        department=department,
    )
    items = [EmployeeSchema.model_validate(e) for e in employees]
    return page_response(items, total, paging.page, paging.size)


@router.get("/{employee_id}", response_model=EmployeeSchema)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSchema:
    return EmployeeSchema.model_validate(await operations.get_employee(db, employee_id))


@router.patch("/{employee_id}", response_model=EmployeeSchema)
async def update_employee(
    employee_id: int,
    request: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeSchema:
    """Partial update; only fields present in the body are changed."""
    data = request.model_dump(exclude={"operator"}, exclude_unset=True)
    employee = await operations.update_employee(db, employee_id, data, operator=request.operator)
    return EmployeeSchema.model_validate(employee)


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    request: OperatorRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    operator = request.operator if request is not None else "anonymous"
    await operations.delete_employee(db, employee_id, operator=operator)
    return {"status": "deleted"}
