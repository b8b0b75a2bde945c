"""Helper for writing audit log entries inside an open transaction."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.models.audit_log import AuditLog


def record_audit(
    session: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: object,
    operator: str,
    entity_title: str | None = None,
    description: str | None = None,
    details: dict | None = None,
) -> AuditLog:
    """Stage an audit entry; it is committed with the caller's change."""
    entry = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        entity_title=entity_title,
        description=description,
        operator=operator,
        details=details,
    )
    session.add(entry)
    return entry
