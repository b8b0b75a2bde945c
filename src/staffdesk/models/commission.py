"""SQLAlchemy models for commission rules and earned commissions."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


class CommissionRule(Base):
    __tablename__ = "commission_rules"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(sa.String(100))
    type: Mapped[str] = mapped_column(sa.String(32))  # margin_percentage, revenue_percentage, fixed_amount, tiered
    rate: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    fixed_amount: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    tiers: Mapped[list | None] = mapped_column(sa.JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)


class Commission(Base):
    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE"), index=True
    )
    rule_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("commission_rules.id", ondelete="SET NULL"), nullable=True
    )
    reference: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    revenue: Mapped[float] = mapped_column(sa.Float)
    cost: Mapped[float] = mapped_column(sa.Float, default=0.0)
    base_amount: Mapped[float] = mapped_column(sa.Float, default=0.0)
    margin: Mapped[float] = mapped_column(sa.Float, default=0.0)
    margin_percentage: Mapped[float] = mapped_column(sa.Float, default=0.0)
    commission_rate: Mapped[float] = mapped_column(sa.Float, default=0.0)
    commission_amount: Mapped[float] = mapped_column(sa.Float, default=0.0)
    applied_tier: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    status: Mapped[str] = mapped_column(sa.String(16), default="pending")  # pending, approved, paid, cancelled
    approved_by: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    calculated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow, index=True)
