"""SQLAlchemy model for logged AI model invocations."""
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from staffdesk.models._time import utcnow
from staffdesk.models.base import Base


def _new_log_id() -> str:
    return uuid.uuid4().hex


def _new_public_id() -> str:
    return f"log_{uuid.uuid4().hex[:12]}"


class AILog(Base):
    """One AI request with its token usage, cost, latency and outcome.

    Rows are written once by the logging subsystem and never edited;
    ``deleted_at`` marks a soft delete.  Token counts are flattened into
    columns so that stats queries can aggregate them in SQL; everything
    free-form (warnings, tool calls, files, request metadata) lives in
    JSON columns.
    """

    __tablename__ = "ai_logs"
    __table_args__ = (
        sa.Index("ix_ai_logs_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_new_log_id)
    public_id: Mapped[str] = mapped_column(
        sa.String(32), unique=True, index=True, default=_new_public_id
    )
    user_id: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    model_id: Mapped[str] = mapped_column(sa.String, index=True)
    provider: Mapped[str] = mapped_column(sa.String, index=True)
    request_type: Mapped[str] = mapped_column(sa.String(32))
    prompt: Mapped[str] = mapped_column(sa.Text, default="")
    system_prompt: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    response: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    input_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    output_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    reasoning_tokens: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    cached_input_tokens: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)

    cost: Mapped[float] = mapped_column(sa.Float, default=0.0)
    latency_ms: Mapped[int] = mapped_column(sa.Integer, default=0)
    success: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    finish_reason: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    error_message: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    error_type: Mapped[str | None] = mapped_column(sa.String, nullable=True)

    warnings: Mapped[list] = mapped_column(sa.JSON, default=list)
    tool_calls: Mapped[list] = mapped_column(sa.JSON, default=list)
    files: Mapped[list] = mapped_column(sa.JSON, default=list)
    # "metadata" is reserved on declarative classes
    extended_metadata: Mapped[dict] = mapped_column(sa.JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=utcnow, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(sa.String, nullable=True)
