"""SQLAlchemy model for employee work sessions."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


class EmployeeSession(Base):
    __tablename__ = "employee_sessions"
    __table_args__ = (sa.Index("ix_employee_sessions_employee_active", "employee_id", "is_active"),)

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("employees.id", ondelete="CASCADE")
    )
    session_type: Mapped[str] = mapped_column(sa.String(16), default="automatic")  # manual, automatic
    login_time: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    last_activity: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow)
    logout_time: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    device: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(sa.String(64), nullable=True)
