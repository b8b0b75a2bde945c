"""Audit log listing."""

from __future__ import annotations

import sqlalchemy as sa
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import PageParams, get_db, page_params
from staffdesk.api.schemas import AuditLogEntry, PaginatedResponse, page_response
from staffdesk.models.audit_log import AuditLog

router = APIRouter(prefix="/api", tags=["audit"])


@router.get("/audit-log", response_model=PaginatedResponse[AuditLogEntry])
async def list_audit_log(
    db: AsyncSession = Depends(get_db),
    paging: PageParams = Depends(page_params),
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
) -> PaginatedResponse[AuditLogEntry]:
    """Paginated audit log entries, newest first."""
    stmt = sa.select(AuditLog)

    if entity_type is not None:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    if action is not None:
        stmt = stmt.where(AuditLog.action == action)

    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())

    count_stmt = sa.select(sa.func.count()).select_from(stmt.subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    stmt = stmt.offset(paging.offset).limit(paging.size)
    entries = (await db.execute(stmt)).scalars().all()

    items = [AuditLogEntry.model_validate(e) for e in entries]
    return page_response(items, total, paging.page, paging.size)
