"""API routes for commission rules and commissions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import PageParams, get_db, page_params
from staffdesk.api.schemas import (
    CommissionCancelRequest,
    CommissionCreate,
    CommissionPayRequest,
    CommissionRecalculateRequest,
    CommissionRuleCreate,
    CommissionRuleSchema,
    CommissionSchema,
    OperatorRequest,
    PaginatedResponse,
    page_response,
)
from staffdesk.employees import commissions
from staffdesk.employees.commissions import CommissionStatus

router = APIRouter(prefix="/api/commissions", tags=["commissions"])


@router.post("/rules", response_model=CommissionRuleSchema, status_code=201)
async def create_rule(
    request: CommissionRuleCreate,
    db: AsyncSession = Depends(get_db),
) -> CommissionRuleSchema:
    rule = await commissions.create_rule(
        db,
        request.employee_id,
        request.name,
        request.type,
        rate=request.rate,
        fixed_amount=request.fixed_amount,
        tiers=[t.model_dump() for t in request.tiers] if request.tiers is not None else None,
        operator=request.operator,
    )
    return CommissionRuleSchema.model_validate(rule)


@router.get("/rules", response_model=list[CommissionRuleSchema])
async def list_rules(
    employee_id: int,
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
) -> list[CommissionRuleSchema]:
    rules = await commissions.list_rules(db, employee_id, active_only=active_only)
    return [CommissionRuleSchema.model_validate(r) for r in rules]


@router.post("", response_model=CommissionSchema, status_code=201)
async def create_commission(
    request: CommissionCreate,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    """Calculate a commission with the given rule, or the employee's first active rule."""
    commission = await commissions.create_commission(
        db,
        request.employee_id,
        revenue=request.revenue,
        cost=request.cost,
        rule_id=request.rule_id,
        reference=request.reference,
        operator=request.operator,
    )
    return CommissionSchema.model_validate(commission)


@router.get("", response_model=PaginatedResponse[CommissionSchema])
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    paging: PageParams = Depends(page_params),
    employee_id: int | None = None,
    status: CommissionStatus | None = None,
) -> PaginatedResponse[CommissionSchema]:
    found, total = await commissions.list_commissions(
        db, page=paging.page, size=paging.size, employee_id=employee_id, status=status
    )
    items = [CommissionSchema.model_validate(c) for c in found]
    return page_response(items, total, paging.page, paging.size)


@router.get("/{commission_id}", response_model=CommissionSchema)
async def get_commission(
    commission_id: int,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    return CommissionSchema.model_validate(await commissions.get_commission(db, commission_id))


@router.post("/{commission_id}/approve", response_model=CommissionSchema)
async def approve_commission(
    commission_id: int,
    request: OperatorRequest,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    commission = await commissions.approve_commission(db, commission_id, operator=request.operator)
    return CommissionSchema.model_validate(commission)


@router.post("/{commission_id}/pay", response_model=CommissionSchema)
async def pay_commission(
    commission_id: int,
    request: CommissionPayRequest,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    commission = await commissions.pay_commission(
        db, commission_id, payment_reference=request.payment_reference, operator=request.operator
    )
    return CommissionSchema.model_validate(commission)


@router.post("/{commission_id}/cancel", response_model=CommissionSchema)
async def cancel_commission(
    commission_id: int,
    request: CommissionCancelRequest,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    commission = await commissions.cancel_commission(
        db, commission_id, reason=request.reason, operator=request.operator
    )
    return CommissionSchema.model_validate(commission)


@router.post("/{commission_id}/recalculate", response_model=CommissionSchema)
async def recalculate_commission(
    commission_id: int,
    request: CommissionRecalculateRequest,
    db: AsyncSession = Depends(get_db),
) -> CommissionSchema:
    commission = await commissions.recalculate_commission(
        db, commission_id, revenue=request.revenue, cost=request.cost, operator=request.operator
    )
    return CommissionSchema.model_validate(commission)
