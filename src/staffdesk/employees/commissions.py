"""Commission rules and the commission lifecycle.

Status moves pending -> approved -> paid; any unpaid commission can be
cancelled, and only unpaid commissions can be recalculated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.audit import record_audit
from staffdesk.employees.operations import get_employee
from staffdesk.errors import ConflictError, NotFoundError, ValidationFailedError
from staffdesk.models._time import utcnow
from staffdesk.models.commission import Commission, CommissionRule

logger = structlog.get_logger()

CommissionType = Literal["margin_percentage", "revenue_percentage", "fixed_amount", "tiered"]
CommissionStatus = Literal["pending", "approved", "paid", "cancelled"]


@dataclass
class CommissionCalculation:
    base_amount: float
    margin: float
    margin_percentage: float
    commission_rate: float
    commission_amount: float
    applied_tier: int | None = None


def _round_money(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def validate_rule(rule_type: str, rate: float | None, fixed_amount: float | None, tiers: list | None) -> list[str]:
    errors: list[str] = []
    if rule_type in ("margin_percentage", "revenue_percentage"):
        if rate is None:
            errors.append("Rate is required for percentage rules")
        elif not 0 <= rate <= 100:
            errors.append("Rate must be between 0 and 100")
    elif rule_type == "fixed_amount":
        if fixed_amount is None or fixed_amount < 0:
            errors.append("Fixed amount must be zero or positive")
    elif rule_type == "tiered":
        if not tiers:
            errors.append("Tiered rules need at least one tier")
        for i, tier in enumerate(tiers or []):
            if tier.get("rate") is None or not 0 <= tier["rate"] <= 100:
                errors.append(f"Tier {i + 1}: rate must be between 0 and 100")
            upper = tier.get("max_amount")
            if upper is not None and upper <= tier.get("min_amount", 0):
                errors.append(f"Tier {i + 1}: max_amount must be greater than min_amount")
    else:
        errors.append(f"Unknown commission type: {rule_type}")
    return errors


def apply_commission_rule(rule: CommissionRule, revenue: float, cost: float = 0.0) -> CommissionCalculation:
    """Compute the commission one sale earns under ``rule``.

    Percentage rates are given in percent.  Tiered rules pick the tier
    whose ``[min_amount, max_amount)`` contains the margin.
    """
    margin = revenue - cost
    margin_percentage = margin / revenue * 100 if revenue else 0.0

    if rule.type == "margin_percentage":
        base, rate, tier_index = margin, rule.rate or 0.0, None
        amount = base * rate / 100
    elif rule.type == "revenue_percentage":
        base, rate, tier_index = revenue, rule.rate or 0.0, None
        amount = base * rate / 100
    elif rule.type == "fixed_amount":
        base, rate, tier_index = revenue, 0.0, None
        amount = rule.fixed_amount or 0.0
    elif rule.type == "tiered":
        base, rate, tier_index = margin, 0.0, None
        for i, tier in enumerate(rule.tiers or []):
            upper = tier.get("max_amount")
            if margin >= tier.get("min_amount", 0) and (upper is None or margin < upper):
                rate, tier_index = tier["rate"], i
                break
        amount = base * rate / 100
    else:
        raise ValidationFailedError([f"Unknown commission type: {rule.type}"])

    return CommissionCalculation(
        base_amount=_round_money(base),
        margin=_round_money(margin),
        margin_percentage=_round_money(margin_percentage),
        commission_rate=rate,
        commission_amount=_round_money(max(amount, 0.0)),
        applied_tier=tier_index,
    )


async def create_rule(
    session: AsyncSession,
    employee_id: int,
    name: str,
    rule_type: CommissionType,
    rate: float | None = None,
    fixed_amount: float | None = None,
    tiers: list[dict] | None = None,
    operator: str = "anonymous",
) -> CommissionRule:
    errors = validate_rule(rule_type, rate, fixed_amount, tiers)
    if not name.strip():
        errors.insert(0, "Rule name is required")
    if errors:
        raise ValidationFailedError(errors)

    employee = await get_employee(session, employee_id)
    rule = CommissionRule(
        employee_id=employee.id,
        name=name.strip(),
        type=rule_type,
        rate=rate,
        fixed_amount=fixed_amount,
        tiers=tiers,
        is_active=True,
    )
    session.add(rule)
    await session.flush()
    record_audit(
        session,
        "commission_rule.created",
        "commission_rule",
        rule.id,
        operator,
        entity_title=rule.name,
        details={"type": rule_type, "employee_id": employee.id},
    )
    await session.commit()
    return rule


async def list_rules(session: AsyncSession, employee_id: int, active_only: bool = False) -> list[CommissionRule]:
    stmt = sa.select(CommissionRule).where(CommissionRule.employee_id == employee_id)
    if active_only:
        stmt = stmt.where(CommissionRule.is_active.is_(True))
    stmt = stmt.order_by(CommissionRule.id)
    return list((await session.execute(stmt)).scalars().all())


async def _resolve_rule(session: AsyncSession, employee_id: int, rule_id: int | None) -> CommissionRule:
    if rule_id is not None:
        rule = await session.get(CommissionRule, rule_id)
        if rule is None or rule.employee_id != employee_id:
            raise NotFoundError("Commission rule", rule_id)
        return rule
    rules = await list_rules(session, employee_id, active_only=True)
    if not rules:
        raise NotFoundError("Commission rule", f"employee {employee_id}")
    return rules[0]


def _apply(commission: Commission, calc: CommissionCalculation) -> None:
    commission.base_amount = calc.base_amount
    commission.margin = calc.margin
    commission.margin_percentage = calc.margin_percentage
    commission.commission_rate = calc.commission_rate
    commission.commission_amount = calc.commission_amount
    commission.applied_tier = calc.applied_tier
    commission.calculated_at = utcnow()


async def create_commission(
    session: AsyncSession,
    employee_id: int,
    revenue: float,
    cost: float = 0.0,
    rule_id: int | None = None,
    reference: str | None = None,
    operator: str = "anonymous",
) -> Commission:
    """Calculate and store a commission using ``rule_id`` or the employee's first active rule."""
    if revenue < 0 or cost < 0:
        raise ValidationFailedError(["Revenue and cost cannot be negative"])

    employee = await get_employee(session, employee_id)
    rule = await _resolve_rule(session, employee.id, rule_id)

    commission = Commission(
        employee_id=employee.id,
        rule_id=rule.id,
        reference=reference,
        revenue=revenue,
        cost=cost,
        status="pending",
    )
    _apply(commission, apply_commission_rule(rule, revenue, cost))
    session.add(commission)
    await session.flush()

    record_audit(
        session,
        "commission.created",
        "commission",
        commission.id,
        operator,
        entity_title=f"Commission for {employee.employee_number}",
        description=f"Created commission of {commission.commission_amount:.2f}",
    )
    await session.commit()
    logger.info(
        "commission_created",
        commission_id=commission.id,
        employee_id=employee.id,
        amount=commission.commission_amount,
    )
    return commission


async def get_commission(session: AsyncSession, commission_id: int) -> Commission:
    commission = await session.get(Commission, commission_id)
    if commission is None:
        raise NotFoundError("Commission", commission_id)
    return commission


async def approve_commission(session: AsyncSession, commission_id: int, operator: str = "anonymous") -> Commission:
    commission = await get_commission(session, commission_id)
    if commission.status != "pending":
        raise ConflictError("Commission is not pending approval")
    commission.status = "approved"
    commission.approved_by = operator
    commission.approved_at = utcnow()
    record_audit(session, "commission.approved", "commission", commission.id, operator)
    await session.commit()
    logger.info("commission_approved", commission_id=commission_id, operator=operator)
    return commission


async def pay_commission(
    session: AsyncSession,
    commission_id: int,
    payment_reference: str | None = None,
    operator: str = "anonymous",
) -> Commission:
    commission = await get_commission(session, commission_id)
    if commission.status != "approved":
        raise ConflictError("Commission must be approved before payment")
    commission.status = "paid"
    commission.paid_at = utcnow()
    commission.payment_reference = payment_reference.strip() if payment_reference else None
    record_audit(
        session,
        "commission.paid",
        "commission",
        commission.id,
        operator,
        details={"payment_reference": commission.payment_reference},
    )
    await session.commit()
    logger.info("commission_paid", commission_id=commission_id, operator=operator)
    return commission


async def cancel_commission(
    session: AsyncSession,
    commission_id: int,
    reason: str | None = None,
    operator: str = "anonymous",
) -> Commission:
    commission = await get_commission(session, commission_id)
    if commission.status == "paid":
        raise ConflictError("Cannot cancel a paid commission")
    commission.status = "cancelled"
    commission.cancellation_reason = reason.strip() if reason else None
    record_audit(
        session,
        "commission.cancelled",
        "commission",
        commission.id,
        operator,
        details={"reason": commission.cancellation_reason},
    )
    await session.commit()
    logger.info("commission_cancelled", commission_id=commission_id, operator=operator)
    return commission


async def recalculate_commission(
    session: AsyncSession,
    commission_id: int,
    revenue: float | None = None,
    cost: float | None = None,
    operator: str = "anonymous",
) -> Commission:
    """Re-run the rule, optionally with corrected revenue or cost."""
    commission = await get_commission(session, commission_id)
    if commission.status == "paid":
        raise ConflictError("Cannot recalculate a paid commission")
    rule = await _resolve_rule(session, commission.employee_id, commission.rule_id)

    if revenue is not None:
        commission.revenue = revenue
    if cost is not None:
        commission.cost = cost
    old_amount = commission.commission_amount
    _apply(commission, apply_commission_rule(rule, commission.revenue, commission.cost))

    record_audit(
        session,
        "commission.recalculated",
        "commission",
        commission.id,
        operator,
        description=f"Recalculated commission from {old_amount:.2f} to {commission.commission_amount:.2f}",
    )
    await session.commit()
    return commission


async def list_commissions(
    session: AsyncSession,
    page: int = 1,
    size: int = 20,
    employee_id: int | None = None,
    status: CommissionStatus | None = None,
) -> tuple[list[Commission], int]:
    stmt = sa.select(Commission)
    if employee_id is not None:
        stmt = stmt.where(Commission.employee_id == employee_id)
    if status is not None:
        stmt = stmt.where(Commission.status == status)

    count_stmt = sa.select(sa.func.count()).select_from(stmt.subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = stmt.order_by(Commission.created_at.desc(), Commission.id.desc())
    stmt = stmt.offset((page - 1) * size).limit(size)
    return list((await session.execute(stmt)).scalars().all()), total
