"""SQLAlchemy model for employees."""

from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_number: Mapped[str] = mapped_column(sa.String(32), unique=True, index=True)
    name: Mapped[str] = mapped_column(sa.String(100))
    email: Mapped[str | None] = mapped_column(sa.String(254), nullable=True)
    work_email: Mapped[str | None] = mapped_column(sa.String(254), nullable=True)
    phone: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    work_phone: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    department: Mapped[str | None] = mapped_column(sa.String(100), nullable=True, index=True)
    position: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    status: Mapped[str] = mapped_column(sa.String(16), default="active")  # active, inactive, terminated, on_leave
    work_status: Mapped[str] = mapped_column(sa.String(16), default="offline")  # available, busy, offline
    is_online: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    hire_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    salary: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    office_location: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    office_country: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    office_country_code: Mapped[str | None] = mapped_column(sa.String(2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
