"""API routes for browsing, exporting and analysing AI usage logs."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.api.deps import get_db
from staffdesk.api.schemas import ExportRequest, OperatorRequest, PaginatedResponse
from staffdesk.errors import ValidationFailedError
from staffdesk.logs import service
from staffdesk.logs.analytics import (
    CostBreakdown,
    DayBucket,
    LogStats,
    TrendMetric,
    bucket_by_day,
    bucket_by_model_or_provider,
    compute_trend_metrics,
)
from staffdesk.logs.criteria import DateRange, FilterCriteria, NumericRange, SortDirective
from staffdesk.logs.records import UsageLogInput, UsageLogRecord
from staffdesk.models._time import utcnow

router = APIRouter(prefix="/api/ai-logs", tags=["ai-logs"])


def _range(low: float | None, high: float | None) -> NumericRange | None:
    if low is None and high is None:
        return None
    return NumericRange(min=low, max=high)


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return messages


def filter_criteria(
    q: str | None = Query(default=None, description="Case-insensitive text search"),
    user_id: str | None = None,
    model_id: list[str] | None = Query(default=None),
    provider: list[str] | None = Query(default=None),
    request_type: list[str] | None = Query(default=None),
    success: bool | None = None,
    finish_reason: list[str] | None = Query(default=None),
    has_tool_calls: bool | None = None,
    has_files: bool | None = None,
    min_cost: float | None = Query(default=None, ge=0),
    max_cost: float | None = Query(default=None, ge=0),
    min_latency: int | None = Query(default=None, ge=0),
    max_latency: int | None = Query(default=None, ge=0),
    min_tokens: int | None = Query(default=None, ge=0),
    max_tokens: int | None = Query(default=None, ge=0),
    start_date: dt.datetime | None = None,
    end_date: dt.datetime | None = None,
    sort_by: str = "created_at",
    sort_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
) -> FilterCriteria:
    """Build criteria from query parameters, reporting bad combinations as field errors."""
    try:
        return FilterCriteria(
            search=q,
            user_id=user_id,
            model_ids=model_id or [],
            providers=provider or [],
            request_types=request_type or [],
            success=success,
            finish_reasons=finish_reason or [],
            has_tool_calls=has_tool_calls,
            has_files=has_files,
            cost_range=_range(min_cost, max_cost),
            latency_range=_range(min_latency, max_latency),
            token_range=_range(min_tokens, max_tokens),
            date_range=(
                DateRange(start=start_date, end=end_date)
                if start_date is not None or end_date is not None
                else None
            ),
            sort=SortDirective(field=sort_by, direction=sort_dir),
        )
    except ValidationError as exc:
        raise ValidationFailedError(_validation_messages(exc)) from exc


@router.post("", response_model=UsageLogRecord, status_code=201)
async def create_log(
    request: UsageLogInput,
    db: AsyncSession = Depends(get_db),
) -> UsageLogRecord:
    """Ingest one usage log (used by the logging subsystem and seed scripts)."""
    return await service.create_log(db, request)


@router.get("", response_model=PaginatedResponse[UsageLogRecord])
async def list_logs(
    criteria: FilterCriteria = Depends(filter_criteria),
    db: AsyncSession = Depends(get_db),
    page: int = Query(default=1, ge=1),
    size: int | None = Query(default=None, ge=1, le=500, description="Defaults to STAFFDESK_LOGS_PAGE_SIZE"),
) -> PaginatedResponse[UsageLogRecord]:
    """Filtered, sorted, paginated usage logs."""
    result = await service.query_logs(db, criteria, page=page, size=size)
    return PaginatedResponse(
        items=result.items,
        total=result.total_items,
        page=result.page,
        size=result.page_size,
        pages=result.total_pages,
        has_next=result.has_next,
        has_prev=result.has_prev,
    )


@router.post("/export")
async def export_logs(
    request: ExportRequest,
    db: AsyncSession = Depends(get_db),
) -> StreamingResponse:
    """Download the logs matching ``request.criteria`` as CSV or JSON."""
    export = await service.export_logs(db, request.criteria, request.format, request.fields)
    return StreamingResponse(
        iter([export.content.encode("utf-8")]),
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/stats", response_model=LogStats)
async def log_stats(
    db: AsyncSession = Depends(get_db),
    start_date: dt.datetime | None = None,
    end_date: dt.datetime | None = None,
) -> LogStats:
    """Summary statistics, defaulting to the last 30 days."""
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationFailedError(["start_date must not be after end_date"])
    return await service.get_stats(db, start_date, end_date)


@router.get("/analytics/daily", response_model=list[DayBucket])
async def daily_usage(
    criteria: FilterCriteria = Depends(filter_criteria),
    db: AsyncSession = Depends(get_db),
    days: int = Query(default=7, ge=1, le=365),
) -> list[DayBucket]:
    """Per-day request count, cost, tokens, latency and success rate for the trailing window."""
    now = utcnow()
    window_start = dt.datetime.combine(now.date() - dt.timedelta(days=days - 1), dt.time.min)
    criteria = criteria.model_copy(update={"date_range": DateRange(start=window_start, end=now)})
    records = await service.load_logs(db, criteria)
    return bucket_by_day(records, days, now=now)


@router.get("/analytics/cost-breakdown", response_model=list[CostBreakdown])
async def cost_breakdown(
    criteria: FilterCriteria = Depends(filter_criteria),
    db: AsyncSession = Depends(get_db),
) -> list[CostBreakdown]:
    """Cost per provider/model, most expensive first."""
    return bucket_by_model_or_provider(await service.load_logs(db, criteria))


@router.get("/analytics/trends", response_model=list[TrendMetric])
async def trends(
    criteria: FilterCriteria = Depends(filter_criteria),
    db: AsyncSession = Depends(get_db),
    days: int = Query(default=7, ge=1, le=365),
) -> list[TrendMetric]:
    """Compare the last ``days`` days against the period before."""
    now = utcnow()
    period = dt.timedelta(days=days)
    current = await service.load_logs(
        db, criteria.model_copy(update={"date_range": DateRange(start=now - period, end=now)})
    )
    previous = await service.load_logs(
        db,
        criteria.model_copy(
            update={
                "date_range": DateRange(
                    start=now - 2 * period,
                    end=now - period - dt.timedelta(microseconds=1),
                )
            }
        ),
    )
    return compute_trend_metrics(current, previous)


@router.get("/public/{public_id}", response_model=UsageLogRecord)
async def get_log_by_public_id(
    public_id: str,
    db: AsyncSession = Depends(get_db),
) -> UsageLogRecord:
    return await service.get_log_by_public_id(db, public_id)


@router.get("/{log_id}", response_model=UsageLogRecord)
async def get_log(
    log_id: str,
    db: AsyncSession = Depends(get_db),
) -> UsageLogRecord:
    return await service.get_log(db, log_id)


@router.delete("/{log_id}")
async def delete_log(
    log_id: str,
    request: OperatorRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Soft-delete a single log."""
    operator = request.operator if request is not None else "anonymous"
    await service.delete_log(db, log_id, operator=operator)
    return {"status": "deleted"}
