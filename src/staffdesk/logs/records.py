"""Domain types for AI usage log records.

``UsageLogRecord`` is the read-only view of one logged model invocation
that the filtering, sorting, aggregation and export functions operate on.
It is built from :class:`staffdesk.models.AILog` rows (``from_row``) or
validated from ingest payloads (``UsageLogInput``).
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from staffdesk.models.ai_log import AILog

RequestType = Literal[
    "text_generation",
    "streaming",
    "object_generation",
    "embedding",
    "image_generation",
    "speech",
    "transcription",
    "test",
]

FinishReason = Literal["stop", "length", "content-filter", "tool-calls", "error", "other", "unknown"]


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    """Convert aware datetimes to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(dt.UTC).replace(tzinfo=None)
    return value


class TokenUsage(BaseModel):
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    reasoning_tokens: int | None = None
    cached_input_tokens: int | None = None


class ApplicationCacheHit(BaseModel):
    """Result served from the application's own response cache (cost and latency 0)."""

    kind: Literal["application"] = "application"
    hit: bool = True
    key: str | None = None
    ttl: int | None = None


class ProviderCacheHit(BaseModel):
    """Prompt tokens served from the provider's caching layer."""

    kind: Literal["provider"] = "provider"
    hit: bool = True
    provider: Literal["anthropic", "openai", "other"] = "other"
    cached_tokens: int | None = None
    cache_type: Literal["ephemeral", "persistent", "automatic"] | None = None


CacheHit = Annotated[ApplicationCacheHit | ProviderCacheHit, Field(discriminator="kind")]


class LogMetadata(BaseModel):
    request_id: str | None = None
    trace_id: str | None = None
    session_id: str | None = None
    feature: str | None = None
    cache: CacheHit | None = None


class ToolCall(BaseModel):
    id: str
    name: str
    input: Any = None
    output: Any = None
    provider_executed: bool | None = None


class LogFile(BaseModel):
    direction: Literal["input", "output"]
    media_type: str
    filename: str | None = None
    size_bytes: int | None = None


class UsageLogInput(BaseModel):
    """Payload accepted by ingest. Strings are trimmed, cost and latency must be non-negative."""

    model_config = ConfigDict(protected_namespaces=(), str_strip_whitespace=True)

    user_id: str | None = None
    model_id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    request_type: RequestType = "text_generation"
    prompt: str = ""
    system_prompt: str | None = None
    response: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = Field(default=0.0, ge=0)
    latency_ms: int = Field(default=0, ge=0)
    success: bool = True
    finish_reason: FinishReason | None = None
    warnings: list[Any] = []
    tool_calls: list[ToolCall] = []
    files: list[LogFile] = []
    error_message: str | None = None
    error_type: str | None = None
    metadata: LogMetadata = Field(default_factory=LogMetadata)
    created_at: dt.datetime | None = None

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: dt.datetime | None) -> dt.datetime | None:
        return to_naive_utc(value) if value is not None else None


class UsageLogRecord(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: str
    public_id: str | None = None
    user_id: str | None = None
    created_at: dt.datetime
    model_id: str
    provider: str
    request_type: RequestType
    success: bool
    prompt: str = ""
    system_prompt: str | None = None
    response: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    latency_ms: int = 0
    finish_reason: FinishReason | None = None
    warnings: list[Any] = []
    tool_calls: list[ToolCall] = []
    files: list[LogFile] = []
    error_message: str | None = None
    error_type: str | None = None
    metadata: LogMetadata = Field(default_factory=LogMetadata)

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: dt.datetime) -> dt.datetime:
        return to_naive_utc(value)

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    @property
    def has_files(self) -> bool:
        return len(self.files) > 0

    @classmethod
    def from_row(cls, row: AILog) -> UsageLogRecord:
        return cls(
            id=row.id,
            public_id=row.public_id,
            user_id=row.user_id,
            created_at=row.created_at,
            model_id=row.model_id,
            provider=row.provider,
            request_type=row.request_type,
            success=row.success,
            prompt=row.prompt or "",
            system_prompt=row.system_prompt,
            response=row.response,
            usage=TokenUsage(
                input_tokens=row.input_tokens or 0,
                output_tokens=row.output_tokens or 0,
                total_tokens=row.total_tokens or 0,
                reasoning_tokens=row.reasoning_tokens,
                cached_input_tokens=row.cached_input_tokens,
            ),
            cost=row.cost or 0.0,
            latency_ms=row.latency_ms or 0,
            finish_reason=row.finish_reason,
            warnings=row.warnings or [],
            tool_calls=row.tool_calls or [],
            files=row.files or [],
            error_message=row.error_message,
            error_type=row.error_type,
            metadata=row.extended_metadata or {},
        )
