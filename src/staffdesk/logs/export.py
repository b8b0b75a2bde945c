"""Flatten usage log records and serialize them to CSV or JSON downloads."""

from __future__ import annotations

import csv
import datetime as dt
import io
import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from staffdesk.logs.records import ApplicationCacheHit, ProviderCacheHit, UsageLogRecord

ExportFormat = Literal["csv", "json"]

MEDIA_TYPES: dict[str, str] = {
    "csv": "text/csv",
    "json": "application/json",
}


def _cache_source(r: UsageLogRecord) -> str:
    hit = r.metadata.cache
    if isinstance(hit, ApplicationCacheHit) and hit.hit:
        return "application"
    if isinstance(hit, ProviderCacheHit) and hit.hit:
        return f"provider:{hit.provider}"
    return ""


def _cached_tokens(r: UsageLogRecord) -> int:
    hit = r.metadata.cache
    if isinstance(hit, ProviderCacheHit):
        return hit.cached_tokens or 0
    return r.usage.cached_input_tokens or 0


# field -> (header label, accessor). Accessors never return None.
EXPORT_FIELDS: dict[str, tuple[str, Callable[[UsageLogRecord], object]]] = {
    "id": ("ID", lambda r: r.id),
    "public_id": ("Public ID", lambda r: r.public_id or ""),
    "user_id": ("User ID", lambda r: r.user_id or ""),
    "model_id": ("Model ID", lambda r: r.model_id),
    "provider": ("Provider", lambda r: r.provider),
    "request_type": ("Request Type", lambda r: r.request_type),
    "prompt": ("Prompt", lambda r: r.prompt),
    "system_prompt": ("System Prompt", lambda r: r.system_prompt or ""),
    "response": ("Response", lambda r: r.response or ""),
    "input_tokens": ("Input Tokens", lambda r: r.usage.input_tokens),
    "output_tokens": ("Output Tokens", lambda r: r.usage.output_tokens),
    "total_tokens": ("Total Tokens", lambda r: r.usage.total_tokens),
    "reasoning_tokens": ("Reasoning Tokens", lambda r: r.usage.reasoning_tokens or 0),
    "cached_input_tokens": ("Cached Tokens", _cached_tokens),
    "cost": ("Cost", lambda r: r.cost),
    "latency_ms": ("Latency (ms)", lambda r: r.latency_ms),
    "success": ("Success", lambda r: r.success),
    "finish_reason": ("Finish Reason", lambda r: r.finish_reason or ""),
    "error_message": ("Error Message", lambda r: r.error_message or ""),
    "error_type": ("Error Type", lambda r: r.error_type or ""),
    "warning_count": ("Warnings", lambda r: len(r.warnings)),
    "tool_call_count": ("Tool Calls", lambda r: len(r.tool_calls)),
    "file_count": ("Files", lambda r: len(r.files)),
    "request_id": ("Request ID", lambda r: r.metadata.request_id or ""),
    "session_id": ("Session ID", lambda r: r.metadata.session_id or ""),
    "feature": ("Feature", lambda r: r.metadata.feature or ""),
    "cache_source": ("Cache Source", _cache_source),
    "created_at": ("Created At", lambda r: r.created_at.isoformat()),
}

DEFAULT_EXPORT_FIELDS: tuple[str, ...] = (
    "id",
    "user_id",
    "model_id",
    "provider",
    "request_type",
    "prompt",
    "response",
    "input_tokens",
    "output_tokens",
    "total_tokens",
    "cost",
    "latency_ms",
    "success",
    "error_message",
    "created_at",
)


def format_for_export(record: UsageLogRecord) -> dict[str, object]:
    """Flatten a record into scalar fields, substituting 0/""/False for missing values."""
    return {name: accessor(record) for name, (_, accessor) in EXPORT_FIELDS.items()}


def _csv_value(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def to_csv(records: Sequence[Mapping[str, object]], fields: Sequence[str]) -> str:
    """Render flat records as CSV with a header row of field labels.

    Values containing commas, quotes or newlines are quoted with inner
    quotes doubled.  Fields without a label use their raw name as header.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow([EXPORT_FIELDS[f][0] if f in EXPORT_FIELDS else f for f in fields])
    for record in records:
        writer.writerow([_csv_value(record.get(f)) for f in fields])
    return buffer.getvalue()


def to_json(records: Sequence[Mapping[str, object]], fields: Sequence[str]) -> str:
    """Pretty-printed JSON array with exactly ``fields`` as keys, in that order."""
    projected = [{f: record.get(f) for f in fields} for record in records]
    return json.dumps(projected, indent=2, ensure_ascii=False)


def export_filename(fmt: ExportFormat, today: dt.date | None = None) -> str:
    today = today or dt.datetime.now(dt.UTC).date()
    return f"ai-logs-{today.isoformat()}.{fmt}"


@dataclass
class ExportFile:
    filename: str
    media_type: str
    content: str


def render_export(
    records: Sequence[UsageLogRecord],
    fmt: ExportFormat,
    fields: Sequence[str] | None = None,
    today: dt.date | None = None,
) -> ExportFile:
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    fields = list(fields or DEFAULT_EXPORT_FIELDS)
    flat = [format_for_export(r) for r in records]
    content = to_csv(flat, fields) if fmt == "csv" else to_json(flat, fields)
    return ExportFile(
        filename=export_filename(fmt, today),
        media_type=MEDIA_TYPES[fmt],
        content=content,
    )
