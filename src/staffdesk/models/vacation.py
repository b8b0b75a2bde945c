"""SQLAlchemy models for vacation balances and requests."""

from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


class VacationBalance(Base):
    """Vacation day account of one employee for one calendar year.

    ``remaining`` is kept equal to ``available - used - pending`` by every
    operation that touches the balance.
    """

    __tablename__ = "vacation_balances"
    __table_args__ = (sa.UniqueConstraint("employee_id", "year", name="uq_vacation_balance_employee_year"),)

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE"), index=True
    )
    year: Mapped[int] = mapped_column(sa.Integer)
    annual_entitlement: Mapped[float] = mapped_column(sa.Float, default=0)
    carryover_days: Mapped[float] = mapped_column(sa.Float, default=0)
    available: Mapped[float] = mapped_column(sa.Float, default=0)
    used: Mapped[float] = mapped_column(sa.Float, default=0)
    pending: Mapped[float] = mapped_column(sa.Float, default=0)
    remaining: Mapped[float] = mapped_column(sa.Float, default=0)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow, onupdate=utcnow)

    entries: Mapped[list[VacationEntry]] = relationship(
        back_populates="balance", cascade="all, delete-orphan", order_by="VacationEntry.id"
    )


class VacationEntry(Base):
    __tablename__ = "vacation_entries"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    balance_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("vacation_balances.id", ondelete="CASCADE"), index=True
    )
    start_date: Mapped[date] = mapped_column(sa.Date)
    end_date: Mapped[date] = mapped_column(sa.Date)
    days: Mapped[float] = mapped_column(sa.Float)
    type: Mapped[str] = mapped_column(sa.String(16))
    status: Mapped[str] = mapped_column(sa.String(16), default="pending")  # pending, approved, rejected, cancelled
    reason: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    requested_by: Mapped[str] = mapped_column(sa.String, default="anonymous")
    decided_by: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    decision_note: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)

    balance: Mapped[VacationBalance] = relationship(back_populates="entries")
