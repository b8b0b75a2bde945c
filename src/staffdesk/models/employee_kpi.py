"""SQLAlchemy models for monthly employee KPIs and targets."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


class EmployeeTarget(Base):
    __tablename__ = "employee_targets"
    __table_args__ = (sa.Index("ix_employee_targets_period", "employee_id", "year", "month"),)

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE")
    )
    year: Mapped[int] = mapped_column(sa.Integer)
    month: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    quotes_target: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    orders_target: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    revenue_target: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    conversion_target: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    commissions_target: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    set_by: Mapped[str] = mapped_column(sa.String, default="anonymous")
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow, onupdate=utcnow)


class EmployeeKPI(Base):
    """Monthly performance snapshot, recomputed on demand."""

    __tablename__ = "employee_kpis"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_employee_kpis_period"),
        sa.Index("ix_employee_kpis_year_month", "year", "month"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE")
    )
    year: Mapped[int] = mapped_column(sa.Integer)
    month: Mapped[int] = mapped_column(sa.Integer)
    quotes_created: Mapped[int] = mapped_column(sa.Integer, default=0)
    quotes_converted: Mapped[int] = mapped_column(sa.Integer, default=0)
    orders_processed: Mapped[int] = mapped_column(sa.Integer, default=0)
    orders_value: Mapped[float] = mapped_column(sa.Float, default=0.0)
    average_order_value: Mapped[float] = mapped_column(sa.Float, default=0.0)
    conversion_rate: Mapped[float] = mapped_column(sa.Float, default=0.0)
    commissions_earned: Mapped[float] = mapped_column(sa.Float, default=0.0)
    commissions_paid: Mapped[float] = mapped_column(sa.Float, default=0.0)
    commissions_pending: Mapped[float] = mapped_column(sa.Float, default=0.0)
    target_achievement: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)
    rank: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    rank_by: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    calculated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
