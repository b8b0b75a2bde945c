"""Filter predicate over usage log records.

All active criteria are AND-combined.  A criteria object with no active
field short-circuits: nothing is evaluated and every record is kept.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from staffdesk.logs.criteria import FilterCriteria
from staffdesk.logs.records import UsageLogRecord

Predicate = Callable[[UsageLogRecord], bool]


def _search_text(record: UsageLogRecord) -> str:
    parts = (
        record.prompt,
        record.response or "",
        record.model_id,
        record.provider,
        record.error_message or "",
    )
    return " ".join(parts).lower()


def _build_predicates(criteria: FilterCriteria) -> list[Predicate]:
    """One predicate per active criterion, in a fixed order."""
    checks: list[Predicate] = []

    if criteria.search:
        term = criteria.search.lower()
        checks.append(lambda r: term in _search_text(r))
    if criteria.user_id is not None:
        checks.append(lambda r: r.user_id == criteria.user_id)
    if criteria.model_ids:
        model_ids = set(criteria.model_ids)
        checks.append(lambda r: r.model_id in model_ids)
    if criteria.providers:
        providers = set(criteria.providers)
        checks.append(lambda r: r.provider in providers)
    if criteria.request_types:
        request_types = set(criteria.request_types)
        checks.append(lambda r: r.request_type in request_types)
    if criteria.success is not None:
        checks.append(lambda r: r.success == criteria.success)
    if criteria.finish_reasons:
        reasons = set(criteria.finish_reasons)
        checks.append(lambda r: r.finish_reason in reasons)
    if criteria.has_tool_calls is not None:
        checks.append(lambda r: r.has_tool_calls == criteria.has_tool_calls)
    if criteria.has_files is not None:
        checks.append(lambda r: r.has_files == criteria.has_files)
    if criteria.cost_range is not None:
        checks.append(lambda r: criteria.cost_range.contains(r.cost))
    if criteria.latency_range is not None:
        checks.append(lambda r: criteria.latency_range.contains(r.latency_ms))
    if criteria.token_range is not None:
        checks.append(lambda r: criteria.token_range.contains(r.usage.total_tokens))
    if criteria.date_range is not None:
        checks.append(lambda r: criteria.date_range.contains(r.created_at))

    return checks


def count_active_criteria(criteria: FilterCriteria) -> int:
    """Number of active filters, shown as a badge next to the filter panel."""
    return len(_build_predicates(criteria))


def matches(record: UsageLogRecord, criteria: FilterCriteria) -> bool:
    return all(check(record) for check in _build_predicates(criteria))


def filter_logs_client_side(
    records: Iterable[UsageLogRecord],
    criteria: FilterCriteria,
) -> list[UsageLogRecord]:
    """Keep the records matching ``criteria``, preserving their relative order."""
    checks = _build_predicates(criteria)
    if not checks:
        return list(records)
    return [r for r in records if all(check(r) for check in checks)]
