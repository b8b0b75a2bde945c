"""Comparator and stable sort for usage log records."""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Iterable
from functools import cmp_to_key

from staffdesk.logs.records import UsageLogRecord


def _epoch_ms(value: dt.datetime) -> float:
    return value.replace(tzinfo=dt.UTC).timestamp() * 1000


SORT_KEYS: dict[str, Callable[[UsageLogRecord], float]] = {
    "created_at": lambda r: _epoch_ms(r.created_at),
    "cost": lambda r: r.cost,
    "latency_ms": lambda r: r.latency_ms,
    "total_tokens": lambda r: r.usage.total_tokens,
}


def compare(a: UsageLogRecord, b: UsageLogRecord, field: str, direction: str = "asc") -> int:
    """Return -1, 0 or 1.  Unsupported fields compare every pair as equal."""
    key = SORT_KEYS.get(field)
    if key is None:
        return 0
    diff = key(a) - key(b)
    if direction == "desc":
        diff = -diff
    return (diff > 0) - (diff < 0)


def sort_logs(
    records: Iterable[UsageLogRecord],
    field: str = "created_at",
    direction: str = "desc",
) -> list[UsageLogRecord]:
    return sorted(records, key=cmp_to_key(lambda a, b: compare(a, b, field, direction)))
