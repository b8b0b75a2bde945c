"""Monthly employee KPIs, targets and rankings.

Quote and order figures come from the sales side and are passed in;
commission figures are read from the commissions table.
"""

from __future__ import annotations

import calendar
import datetime as dt
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Literal

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.audit import record_audit
from staffdesk.employees.operations import get_employee
from staffdesk.errors import ValidationFailedError
from staffdesk.models._time import utcnow
from staffdesk.models.commission import Commission
from staffdesk.models.employee_kpi import EmployeeKPI, EmployeeTarget

logger = structlog.get_logger()

RankBy = Literal["orders", "revenue", "conversion", "commissions"]

RANKING_KEYS = {
    "orders": lambda k: k.orders_processed,
    "revenue": lambda k: k.orders_value,
    "conversion": lambda k: k.conversion_rate,
    "commissions": lambda k: k.commissions_earned,
}


@dataclass
class KPIMetrics:
    quotes_created: int
    quotes_converted: int
    orders_processed: int
    orders_value: float
    average_order_value: float
    conversion_rate: float
    commissions_earned: float
    commissions_paid: float
    commissions_pending: float


def compute_kpi_metrics(
    quotes_created: int,
    quotes_converted: int,
    orders_processed: int,
    orders_value: float,
    commissions: Sequence[Commission],
) -> KPIMetrics:
    """Derive rates and commission totals; cancelled commissions are ignored."""
    live = [c for c in commissions if c.status != "cancelled"]
    return KPIMetrics(
        quotes_created=quotes_created,
        quotes_converted=quotes_converted,
        orders_processed=orders_processed,
        orders_value=orders_value,
        average_order_value=orders_value / orders_processed if orders_processed else 0.0,
        conversion_rate=quotes_converted / quotes_created * 100 if quotes_created else 0.0,
        commissions_earned=sum(c.commission_amount for c in live),
        commissions_paid=sum(c.commission_amount for c in live if c.status == "paid"),
        commissions_pending=sum(c.commission_amount for c in live if c.status != "paid"),
    )


def compute_target_achievement(metrics: KPIMetrics, target: EmployeeTarget) -> dict[str, float]:
    """Percent of each set target reached; unset or zero targets are omitted."""
    achievement: dict[str, float] = {}
    for name, actual, goal in (
        ("quotes", metrics.quotes_created, target.quotes_target),
        ("orders", metrics.orders_processed, target.orders_target),
        ("revenue", metrics.orders_value, target.revenue_target),
        ("conversion", metrics.conversion_rate, target.conversion_target),
        ("commissions", metrics.commissions_earned, target.commissions_target),
    ):
        if goal:
            achievement[name] = actual / goal * 100
    return achievement


def _month_bounds(year: int, month: int) -> tuple[dt.datetime, dt.datetime]:
    if not 1 <= month <= 12:
        raise ValidationFailedError([f"Month must be between 1 and 12, got {month}"])
    last_day = calendar.monthrange(year, month)[1]
    start = dt.datetime(year, month, 1)
    return start, start + dt.timedelta(days=last_day)


async def get_target(session: AsyncSession, employee_id: int, year: int, month: int | None) -> EmployeeTarget | None:
    stmt = sa.select(EmployeeTarget).where(
        EmployeeTarget.employee_id == employee_id,
        EmployeeTarget.year == year,
        EmployeeTarget.month.is_(None) if month is None else EmployeeTarget.month == month,
    )
    return (await session.execute(stmt.order_by(EmployeeTarget.id.desc()))).scalars().first()


async def set_targets(
    session: AsyncSession,
    employee_id: int,
    year: int,
    month: int | None = None,
    operator: str = "anonymous",
    notes: str | None = None,
    **targets: float | None,
) -> EmployeeTarget:
    """Create or replace the targets for one employee and period (``month=None`` for the year)."""
    allowed = {"quotes_target", "orders_target", "revenue_target", "conversion_target", "commissions_target"}
    errors = [f"Unknown target: {name}" for name in targets if name not in allowed]
    errors += [f"{name} cannot be negative" for name, value in targets.items() if value is not None and value < 0]
    if month is not None and not 1 <= month <= 12:
        errors.append(f"Month must be between 1 and 12, got {month}")
    if errors:
        raise ValidationFailedError(errors)

    employee = await get_employee(session, employee_id)
    target = await get_target(session, employee.id, year, month)
    if target is None:
        target = EmployeeTarget(employee_id=employee.id, year=year, month=month)
        session.add(target)
    for name, value in targets.items():
        setattr(target, name, value)
    target.set_by = operator
    target.notes = notes
    await session.flush()

    record_audit(
        session,
        "employee_target.set",
        "employee_target",
        target.id,
        operator,
        entity_title=employee.employee_number,
        details={"year": year, "month": month, **targets},
    )
    await session.commit()
    return target


async def calculate_kpis(
    session: AsyncSession,
    employee_id: int,
    year: int,
    month: int,
    quotes_created: int = 0,
    quotes_converted: int = 0,
    orders_processed: int = 0,
    orders_value: float = 0.0,
) -> EmployeeKPI:
    """Recompute and store the KPI snapshot for one employee and month."""
    start, end = _month_bounds(year, month)
    employee = await get_employee(session, employee_id)

    commissions = (
        await session.execute(
            sa.select(Commission).where(
                Commission.employee_id == employee.id,
                Commission.created_at >= start,
                Commission.created_at < end,
            )
        )
    ).scalars().all()
    metrics = compute_kpi_metrics(quotes_created, quotes_converted, orders_processed, orders_value, commissions)

    target = await get_target(session, employee.id, year, month)
    achievement = compute_target_achievement(metrics, target) if target is not None else None

    stmt = sa.select(EmployeeKPI).where(
        EmployeeKPI.employee_id == employee.id,
        EmployeeKPI.year == year,
        EmployeeKPI.month == month,
    )
    kpi = (await session.execute(stmt)).scalar_one_or_none()
    if kpi is None:
        kpi = EmployeeKPI(employee_id=employee.id, year=year, month=month)
        session.add(kpi)
    for name, value in asdict(metrics).items():
        setattr(kpi, name, value)
    kpi.target_achievement = achievement
    kpi.calculated_at = utcnow()
    await session.commit()

    logger.info("kpis_calculated", employee_id=employee.id, year=year, month=month)
    return kpi


def rank_kpis(kpis: Sequence[EmployeeKPI], rank_by: RankBy = "revenue") -> list[EmployeeKPI]:
    """Sort best first and assign 1-based ranks in place."""
    key = RANKING_KEYS.get(rank_by)
    if key is None:
        raise ValidationFailedError([f"Unknown ranking metric: {rank_by}"])
    ranked = sorted(kpis, key=key, reverse=True)
    for i, kpi in enumerate(ranked):
        kpi.rank = i + 1
        kpi.rank_by = rank_by
    return ranked


async def calculate_rankings(
    session: AsyncSession,
    year: int,
    month: int,
    rank_by: RankBy = "revenue",
) -> list[EmployeeKPI]:
    _month_bounds(year, month)
    stmt = sa.select(EmployeeKPI).where(EmployeeKPI.year == year, EmployeeKPI.month == month)
    ranked = rank_kpis((await session.execute(stmt)).scalars().all(), rank_by)
    await session.commit()
    logger.info("kpi_rankings_calculated", year=year, month=month, rank_by=rank_by, ranked=len(ranked))
    return ranked


async def list_kpis(
    session: AsyncSession,
    employee_id: int | None = None,
    year: int | None = None,
    month: int | None = None,
) -> list[EmployeeKPI]:
    stmt = sa.select(EmployeeKPI)
    if employee_id is not None:
        stmt = stmt.where(EmployeeKPI.employee_id == employee_id)
    if year is not None:
        stmt = stmt.where(EmployeeKPI.year == year)
    if month is not None:
        stmt = stmt.where(EmployeeKPI.month == month)
    stmt = stmt.order_by(EmployeeKPI.year.desc(), EmployeeKPI.month.desc(), EmployeeKPI.rank)
    return list((await session.execute(stmt)).scalars().all())
