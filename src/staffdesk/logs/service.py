"""Database-backed operations on AI usage logs.

Queries push the cheap, indexed criteria (user, model, provider, request
type, outcome, date range) into SQL and run the full predicate over the
returned rows, so SQL and in-memory filtering can never disagree.
"""

from __future__ import annotations

import datetime as dt

import sqlalchemy as sa
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.audit import record_audit
from staffdesk.config.settings import get_settings
from staffdesk.errors import NotFoundError, ValidationFailedError
from staffdesk.logs.analytics import LogStats, summarize_logs
from staffdesk.logs.cache import get_log_cache
from staffdesk.logs.criteria import DateRange, FilterCriteria, SortDirective
from staffdesk.logs.export import ExportFile, ExportFormat, render_export
from staffdesk.logs.filtering import filter_logs_client_side
from staffdesk.logs.pagination import Page, paginate
from staffdesk.logs.records import UsageLogInput, UsageLogRecord
from staffdesk.logs.sorting import sort_logs
from staffdesk.models._time import utcnow
from staffdesk.models.ai_log import AILog

logger = structlog.get_logger()

DEFAULT_STATS_WINDOW_DAYS = 30


async def create_log(
    session: AsyncSession,
    data: UsageLogInput,
    operator: str = "system",
) -> UsageLogRecord:
    """Persist one usage log and record the creation in the audit log."""
    row = AILog(
        user_id=data.user_id,
        model_id=data.model_id,
        provider=data.provider,
        request_type=data.request_type,
        prompt=data.prompt,
        system_prompt=data.system_prompt,
        response=data.response,
        input_tokens=data.usage.input_tokens,
        output_tokens=data.usage.output_tokens,
        total_tokens=data.usage.total_tokens,
        reasoning_tokens=data.usage.reasoning_tokens,
        cached_input_tokens=data.usage.cached_input_tokens,
        cost=data.cost,
        latency_ms=data.latency_ms,
        success=data.success,
        finish_reason=data.finish_reason,
        error_message=data.error_message,
        error_type=data.error_type,
        warnings=data.warnings,
        tool_calls=[c.model_dump(mode="json") for c in data.tool_calls],
        files=[f.model_dump(mode="json") for f in data.files],
        extended_metadata=data.metadata.model_dump(mode="json", exclude_none=True),
        created_at=data.created_at or utcnow(),
    )
    session.add(row)
    await session.flush()

    record_audit(
        session,
        "ai_log.created",
        "ai_log",
        row.id,
        operator,
        entity_title=f"{row.provider}/{row.model_id}",
        details={"public_id": row.public_id, "success": row.success},
    )
    await session.commit()
    get_log_cache().invalidate()

    logger.info("ai_log_created", log_id=row.id, provider=row.provider, model_id=row.model_id)
    return UsageLogRecord.from_row(row)


async def _get_row(session: AsyncSession, column: sa.ColumnElement, value: str) -> AILog:
    stmt = sa.select(AILog).where(column == value, AILog.deleted_at.is_(None))
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        raise NotFoundError("AI log", value)
    return row


async def get_log(session: AsyncSession, log_id: str) -> UsageLogRecord:
    return UsageLogRecord.from_row(await _get_row(session, AILog.id, log_id))


async def get_log_by_public_id(session: AsyncSession, public_id: str) -> UsageLogRecord:
    return UsageLogRecord.from_row(await _get_row(session, AILog.public_id, public_id))


def _prefilter(stmt: sa.Select, criteria: FilterCriteria) -> sa.Select:
    if criteria.user_id is not None:
        stmt = stmt.where(AILog.user_id == criteria.user_id)
    if criteria.model_ids:
        stmt = stmt.where(AILog.model_id.in_(criteria.model_ids))
    if criteria.providers:
        stmt = stmt.where(AILog.provider.in_(criteria.providers))
    if criteria.request_types:
        stmt = stmt.where(AILog.request_type.in_(criteria.request_types))
    if criteria.success is not None:
        stmt = stmt.where(AILog.success == criteria.success)
    if criteria.date_range is not None:
        if criteria.date_range.start is not None:
            stmt = stmt.where(AILog.created_at >= criteria.date_range.start)
        if criteria.date_range.end is not None:
            stmt = stmt.where(AILog.created_at <= criteria.date_range.end)
    return stmt


async def load_logs(
    session: AsyncSession,
    criteria: FilterCriteria,
    max_rows: int | None = None,
) -> list[UsageLogRecord]:
    """Live logs matching ``criteria``, newest first.

    Rows are read in batches of ``logs_batch_size`` and filtered as they
    arrive, so every matching record comes back.  ``max_rows`` bounds the
    number of rows read at all; reaching it is logged.
    """
    batch_size = get_settings().logs_batch_size
    stmt = _prefilter(sa.select(AILog).where(AILog.deleted_at.is_(None)), criteria)
    stmt = stmt.order_by(AILog.created_at.desc(), AILog.id)

    matched: list[UsageLogRecord] = []
    scanned = 0
    while max_rows is None or scanned < max_rows:
        limit = batch_size if max_rows is None else min(batch_size, max_rows - scanned)
        rows = (await session.execute(stmt.offset(scanned).limit(limit))).scalars().all()
        matched.extend(filter_logs_client_side((UsageLogRecord.from_row(row) for row in rows), criteria))
        scanned += len(rows)
        if len(rows) < limit:
            break
    else:
        logger.warning("ai_log_scan_capped", max_rows=max_rows, matched=len(matched))
    return matched


async def fetch_for_export(session: AsyncSession, criteria: FilterCriteria) -> list[UsageLogRecord]:
    sort = criteria.sort or SortDirective()
    return sort_logs(await load_logs(session, criteria), sort.field, sort.direction)


async def query_logs(
    session: AsyncSession,
    criteria: FilterCriteria,
    page: int = 1,
    size: int | None = None,
    use_cache: bool = True,
) -> Page[UsageLogRecord]:
    """Filtered, sorted page of logs.  The sorted result set is cached per criteria."""
    size = size or get_settings().logs_page_size

    async def _load() -> list[UsageLogRecord]:
        return await fetch_for_export(session, criteria)

    if use_cache:
        records = await get_log_cache().get_or_load(criteria, _load)
    else:
        records = await _load()
    return paginate(records, size, page)


async def export_logs(
    session: AsyncSession,
    criteria: FilterCriteria,
    fmt: ExportFormat,
    fields: list[str] | None = None,
) -> ExportFile:
    """Fetch and render in one step; a failed fetch raises before anything is rendered."""
    records = await fetch_for_export(session, criteria)
    export = render_export(records, fmt, fields)
    logger.info("ai_logs_exported", format=fmt, records=len(records), filename=export.filename)
    return export


async def delete_log(session: AsyncSession, log_id: str, operator: str = "anonymous") -> None:
    """Soft-delete a single log."""
    row = await _get_row(session, AILog.id, log_id)
    row.deleted_at = utcnow()
    row.deleted_by = operator
    record_audit(
        session,
        "ai_log.deleted",
        "ai_log",
        row.id,
        operator,
        entity_title=f"{row.provider}/{row.model_id}",
    )
    await session.commit()
    get_log_cache().invalidate()
    logger.info("ai_log_deleted", log_id=log_id, operator=operator)


async def cleanup_old_logs(
    session: AsyncSession,
    older_than_days: int,
    operator: str = "system",
) -> int:
    """Soft-delete every live log created more than ``older_than_days`` ago."""
    if older_than_days < 1:
        raise ValidationFailedError(["older_than_days must be at least 1"])

    now = utcnow()
    cutoff = now - dt.timedelta(days=older_than_days)
    result = await session.execute(
        sa.update(AILog)
        .where(AILog.created_at < cutoff, AILog.deleted_at.is_(None))
        .values(deleted_at=now, deleted_by=operator)
    )
    deleted = result.rowcount or 0

    record_audit(
        session,
        "ai_log.cleanup",
        "ai_log",
        "*",
        operator,
        details={"older_than_days": older_than_days, "deleted": deleted},
    )
    await session.commit()
    get_log_cache().invalidate()
    logger.info("ai_logs_cleaned_up", older_than_days=older_than_days, deleted=deleted)
    return deleted


async def get_stats(
    session: AsyncSession,
    start: dt.datetime | None = None,
    end: dt.datetime | None = None,
) -> LogStats:
    """Summary statistics for ``[start, end]``, defaulting to the last 30 days."""
    end = end or utcnow()
    start = start or end - dt.timedelta(days=DEFAULT_STATS_WINDOW_DAYS)
    criteria = FilterCriteria(date_range=DateRange(start=start, end=end))
    return summarize_logs(await load_logs(session, criteria, max_rows=get_settings().logs_max_query))
