"""Seed a database with demo employees and AI usage logs.

Creates the tables if they are missing, then inserts a handful of
employees and a few weeks of usage logs across providers, including
failures, tool calls and cache hits, so every dashboard panel has data.

Usage:
    uv run python scripts/seed_demo_data.py [--db DATABASE_URL] [--days 30] [--per-day 20]
"""

import argparse
import asyncio
import datetime as dt
import os
import random

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from staffdesk.employees.operations import create_employee
from staffdesk.logs.records import (
    ApplicationCacheHit,
    LogMetadata,
    ProviderCacheHit,
    TokenUsage,
    ToolCall,
    UsageLogInput,
)
from staffdesk.logs.service import create_log
from staffdesk.models import Base

MODELS = [
    ("anthropic", "claude-sonnet-4", 3.0, 15.0),
    ("anthropic", "claude-haiku-3.5", 0.8, 4.0),
    ("openai", "gpt-4o", 2.5, 10.0),
    ("openai", "gpt-4o-mini", 0.15, 0.6),
    ("google", "gemini-2.0-flash", 0.1, 0.4),
]
FEATURES = ["document_summary", "email_draft", "quote_assistant", "translation"]
EMPLOYEES = [
    {"name": "Anna Schmidt", "department": "Sales", "position": "Account Manager"},
    {"name": "Jonas Weber", "department": "Operations", "position": "Dispatcher"},
    {"name": "Maria O'Neill", "department": "Sales", "position": "Sales Lead"},
]


def _demo_log(rng: random.Random, created_at: dt.datetime) -> UsageLogInput:
    provider, model_id, input_price, output_price = rng.choice(MODELS)
    input_tokens = rng.randint(200, 12_000)
    output_tokens = rng.randint(50, 2_000)
    success = rng.random() > 0.08
    cache = None
    cost = (input_tokens * input_price + output_tokens * output_price) / 1_000_000
    latency = rng.randint(300, 9_000)

    roll = rng.random()
    if roll < 0.05:
        cache = ApplicationCacheHit(key=f"resp:{rng.getrandbits(32):08x}", ttl=3600)
        cost, latency = 0.0, 0
    elif roll < 0.15 and provider in ("anthropic", "openai"):
        cache = ProviderCacheHit(
            provider=provider,
            cached_tokens=input_tokens // 2,
            cache_type="ephemeral" if provider == "anthropic" else "automatic",
        )

    tool_calls = []
    if rng.random() < 0.2:
        tool_calls.append(ToolCall(id=f"call_{rng.getrandbits(24):06x}", name="lookup_customer"))

    return UsageLogInput(
        user_id=f"user_{rng.randint(1, 5)}",
        model_id=model_id,
        provider=provider,
        request_type=rng.choice(["text_generation", "text_generation", "object_generation", "streaming"]),
        prompt=f"Summarize the attached document for customer #{rng.randint(1000, 9999)}",
        response="Here is the summary, as requested." if success else None,
        usage=TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens if success else 0,
            total_tokens=input_tokens + (output_tokens if success else 0),
        ),
        cost=round(cost, 6),
        latency_ms=latency,
        success=success,
        finish_reason=("tool-calls" if tool_calls else "stop") if success else "error",
        tool_calls=tool_calls,
        error_message=None if success else rng.choice(["Rate limit exceeded", "Request timed out"]),
        error_type=None if success else "provider_error",
        metadata=LogMetadata(feature=rng.choice(FEATURES), cache=cache),
        created_at=created_at,
    )


async def seed(db_url: str, days: int, per_day: int, seed_value: int) -> None:
    engine = create_async_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    rng = random.Random(seed_value)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    now = dt.datetime.now(dt.UTC).replace(tzinfo=None)

    async with session_factory() as session:
        for data in EMPLOYEES:
            await create_employee(
                session,
                {
                    **data,
                    "email": data["name"].lower().replace(" ", ".").replace("'", "") + "@example.com",
                    "hire_date": dt.date(now.year - 1, rng.randint(1, 12), 1),
                    "office_location": "Hamburg",
                    "office_country": "Germany",
                    "office_country_code": "DE",
                },
                operator="seed",
            )
        print(f"Inserted {len(EMPLOYEES)} employees")

        inserted = 0
        for day in range(days):
            for _ in range(per_day):
                created_at = now - dt.timedelta(days=day, seconds=rng.randint(0, 86_399))
                await create_log(session, _demo_log(rng, created_at), operator="seed")
                inserted += 1
        print(f"Inserted {inserted} AI usage logs")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument(
        "--db",
        default=os.environ.get("STAFFDESK_DATABASE_URL", "sqlite+aiosqlite:///./staffdesk-demo.db"),
        help="Async database URL",
    )
    parser.add_argument("--days", type=int, default=30)
    parser.add_argument("--per-day", type=int, default=20)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()
    asyncio.run(seed(args.db, args.days, args.per_day, args.seed))


if __name__ == "__main__":
    main()
