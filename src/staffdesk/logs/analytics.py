"""Aggregations over usage log records for the dashboard charts.

Everything here is a pure function of the records passed in.  Rounding
uses round-half-up so the numbers match what the dashboard has always
displayed (``round(x * 100) / 100`` for percentages, nearest integer for
latency).
"""

from __future__ import annotations

import datetime as dt
import math
from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from staffdesk.logs.records import ApplicationCacheHit, ProviderCacheHit, UsageLogRecord

# A relative change smaller than this (in percent) is reported as "stable".
STABLE_THRESHOLD_PERCENT = 5.0

TOKEN_DISTRIBUTION_RANGES: tuple[tuple[str, int, float], ...] = (
    ("0-1k", 0, 1_000),
    ("1k-10k", 1_000, 10_000),
    ("10k-50k", 10_000, 50_000),
    ("50k-100k", 50_000, 100_000),
    ("100k+", 100_000, math.inf),
)

MAX_ERROR_EXAMPLES = 3


def _round_int(value: float) -> int:
    return math.floor(value + 0.5)


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


# --- Daily buckets ---


@dataclass
class DayBucket:
    date: str
    request_count: int
    total_cost: float
    total_tokens: int
    avg_latency_ms: int
    success_rate_percent: float


def bucket_by_day(
    records: Sequence[UsageLogRecord],
    window_days: int,
    now: dt.datetime | None = None,
) -> list[DayBucket]:
    """One bucket per calendar day of the trailing window ending today.

    Days without records are zero-filled, so the result always has
    exactly ``window_days`` entries in chronological order.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be positive, got {window_days}")

    today = (now or dt.datetime.now(dt.UTC).replace(tzinfo=None)).date()
    by_day: dict[dt.date, list[UsageLogRecord]] = defaultdict(list)
    for record in records:
        by_day[record.created_at.date()].append(record)

    buckets: list[DayBucket] = []
    for offset in range(window_days - 1, -1, -1):
        day = today - dt.timedelta(days=offset)
        day_records = by_day.get(day, [])
        count = len(day_records)
        if count:
            avg_latency = _round_int(sum(r.latency_ms for r in day_records) / count)
            success_rate = _round2(sum(1 for r in day_records if r.success) / count * 100)
        else:
            avg_latency = 0
            success_rate = 0.0
        buckets.append(
            DayBucket(
                date=day.isoformat(),
                request_count=count,
                total_cost=sum(r.cost for r in day_records),
                total_tokens=sum(r.usage.total_tokens for r in day_records),
                avg_latency_ms=avg_latency,
                success_rate_percent=success_rate,
            )
        )
    return buckets


# --- Cost breakdown ---


@dataclass
class CostBreakdown:
    key: str
    provider: str
    model_id: str
    total_cost: float
    request_count: int
    percentage: float


def bucket_by_model_or_provider(records: Sequence[UsageLogRecord]) -> list[CostBreakdown]:
    """Group by ``provider/model_id``; each group's share of total cost, most expensive first."""
    groups: dict[str, CostBreakdown] = {}
    for record in records:
        key = f"{record.provider}/{record.model_id}"
        group = groups.get(key)
        if group is None:
            group = groups[key] = CostBreakdown(
                key=key,
                provider=record.provider,
                model_id=record.model_id,
                total_cost=0.0,
                request_count=0,
                percentage=0.0,
            )
        group.total_cost += record.cost
        group.request_count += 1

    total_cost = sum(g.total_cost for g in groups.values())
    for group in groups.values():
        group.percentage = _percent(group.total_cost, total_cost)

    return sorted(groups.values(), key=lambda g: g.total_cost, reverse=True)


# --- Trends ---


@dataclass
class TrendMetric:
    name: str
    value: float
    unit: str
    trend: str  # "up", "down", "stable"
    change_percent: float


def calculate_trend_change(current: float, previous: float) -> float:
    """Percent change from ``previous`` to ``current``; 0 when there is no previous value."""
    if previous == 0:
        return 0
    return (current - previous) / previous * 100


def _trend_direction(change: float, lower_is_better: bool) -> str:
    if abs(change) < STABLE_THRESHOLD_PERCENT:
        return "stable"
    rising = change > 0
    if lower_is_better:
        rising = not rising
    return "up" if rising else "down"


def _period_averages(records: Sequence[UsageLogRecord]) -> tuple[float, float, float]:
    if not records:
        return 0.0, 0.0, 0.0
    count = len(records)
    avg_latency = sum(r.latency_ms for r in records) / count
    success_rate = sum(1 for r in records if r.success) / count * 100
    avg_cost = sum(r.cost for r in records) / count
    return avg_latency, success_rate, avg_cost


def compute_trend_metrics(
    current_records: Sequence[UsageLogRecord],
    previous_records: Sequence[UsageLogRecord],
) -> list[TrendMetric]:
    """Period-over-period latency, success rate and cost.

    Latency and cost are lower-is-better: a rising value is reported as a
    "down" trend.
    """
    cur_latency, cur_success, cur_cost = _period_averages(current_records)
    prev_latency, prev_success, prev_cost = _period_averages(previous_records)

    metrics = []
    for name, unit, current, previous, lower_is_better, value in (
        ("Average Latency", "ms", cur_latency, prev_latency, True, _round_int(cur_latency)),
        ("Success Rate", "%", cur_success, prev_success, False, _round2(cur_success)),
        ("Average Cost", "USD", cur_cost, prev_cost, True, cur_cost),
    ):
        change = calculate_trend_change(current, previous)
        metrics.append(
            TrendMetric(
                name=name,
                value=value,
                unit=unit,
                trend=_trend_direction(change, lower_is_better),
                change_percent=_round2(change),
            )
        )
    return metrics


# --- Summary statistics ---


@dataclass
class ModelUsage:
    model_id: str
    provider: str
    requests: int = 0
    cost: float = 0.0
    tokens: int = 0


@dataclass
class ProviderUsage:
    provider: str
    requests: int = 0
    cost: float = 0.0
    tokens: int = 0
    models_used: list[str] = field(default_factory=list)


@dataclass
class FeatureUsage:
    feature: str
    requests: int = 0
    cost: float = 0.0


@dataclass
class ErrorGroup:
    error_type: str
    count: int = 0
    percentage: float = 0.0
    examples: list[str] = field(default_factory=list)


@dataclass
class LabelCount:
    label: str
    count: int
    percentage: float


@dataclass
class CacheStats:
    application_hits: int = 0
    provider_hits: int = 0
    cached_tokens: int = 0


@dataclass
class LogStats:
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    total_cost: float
    total_tokens: int
    total_input_tokens: int
    total_output_tokens: int
    avg_latency_ms: int
    avg_cost_per_request: float
    models: list[ModelUsage]
    providers: list[ProviderUsage]
    features: list[FeatureUsage]
    errors: list[ErrorGroup]
    finish_reasons: list[LabelCount]
    token_distribution: list[LabelCount]
    cache: CacheStats


def _token_bucket(total_tokens: int) -> str:
    for label, low, high in TOKEN_DISTRIBUTION_RANGES:
        if low <= total_tokens < high:
            return label
    return TOKEN_DISTRIBUTION_RANGES[-1][0]


def summarize_logs(records: Sequence[UsageLogRecord]) -> LogStats:
    total = len(records)
    successful = sum(1 for r in records if r.success)
    total_cost = sum(r.cost for r in records)

    models: dict[str, ModelUsage] = {}
    providers: dict[str, ProviderUsage] = {}
    features: dict[str, FeatureUsage] = {}
    errors: dict[str, ErrorGroup] = {}
    finish_reasons: Counter[str] = Counter()
    token_buckets: Counter[str] = Counter()
    cache = CacheStats()

    for r in records:
        tokens = r.usage.total_tokens

        model = models.setdefault(
            f"{r.provider}/{r.model_id}", ModelUsage(model_id=r.model_id, provider=r.provider)
        )
        model.requests += 1
        model.cost += r.cost
        model.tokens += tokens

        provider = providers.setdefault(r.provider, ProviderUsage(provider=r.provider))
        provider.requests += 1
        provider.cost += r.cost
        provider.tokens += tokens
        if r.model_id not in provider.models_used:
            provider.models_used.append(r.model_id)

        feature = features.setdefault(
            r.metadata.feature or "unknown", FeatureUsage(feature=r.metadata.feature or "unknown")
        )
        feature.requests += 1
        feature.cost += r.cost

        if not r.success:
            group = errors.setdefault(r.error_type or "unknown", ErrorGroup(error_type=r.error_type or "unknown"))
            group.count += 1
            if r.error_message and len(group.examples) < MAX_ERROR_EXAMPLES:
                group.examples.append(r.error_message)

        finish_reasons[r.finish_reason or "unknown"] += 1
        token_buckets[_token_bucket(tokens)] += 1

        hit = r.metadata.cache
        if isinstance(hit, ApplicationCacheHit) and hit.hit:
            cache.application_hits += 1
        elif isinstance(hit, ProviderCacheHit) and hit.hit:
            cache.provider_hits += 1
            cache.cached_tokens += hit.cached_tokens or 0

    failed = total - successful
    for group in errors.values():
        group.percentage = _round2(_percent(group.count, failed))

    return LogStats(
        total_requests=total,
        successful_requests=successful,
        failed_requests=failed,
        success_rate=_round2(_percent(successful, total)),
        total_cost=total_cost,
        total_tokens=sum(r.usage.total_tokens for r in records),
        total_input_tokens=sum(r.usage.input_tokens for r in records),
        total_output_tokens=sum(r.usage.output_tokens for r in records),
        avg_latency_ms=_round_int(sum(r.latency_ms for r in records) / total) if total else 0,
        avg_cost_per_request=total_cost / total if total else 0.0,
        models=sorted(models.values(), key=lambda m: m.requests, reverse=True),
        providers=sorted(providers.values(), key=lambda p: p.requests, reverse=True),
        features=sorted(features.values(), key=lambda f: f.requests, reverse=True),
        errors=sorted(errors.values(), key=lambda e: e.count, reverse=True),
        finish_reasons=[
            LabelCount(label=reason, count=count, percentage=_round2(_percent(count, total)))
            for reason, count in finish_reasons.most_common()
        ],
        token_distribution=[
            LabelCount(
                label=label,
                count=token_buckets[label],
                percentage=_round2(_percent(token_buckets[label], total)),
            )
            for label, _, _ in TOKEN_DISTRIBUTION_RANGES
        ],
        cache=cache,
    )
