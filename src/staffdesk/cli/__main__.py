"""CLI entry point: python -m staffdesk.cli {export,cleanup,serve}"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

import structlog
import uvicorn

from staffdesk.config.settings import get_settings
from staffdesk.db.session import close_db, get_session_factory
from staffdesk.errors import parse_error
from staffdesk.logging_config import configure_logging
from staffdesk.logs.criteria import DateRange, FilterCriteria
from staffdesk.logs.service import cleanup_old_logs, export_logs


async def run_export(
    fmt: str,
    providers: list[str],
    since: datetime | None,
    output_dir: Path,
) -> Path:
    """Export matching logs and write them to ``output_dir``.  Returns the file path."""
    log = structlog.get_logger()
    criteria = FilterCriteria(
        providers=providers,
        date_range=DateRange(start=since) if since is not None else None,
    )

    session_factory = get_session_factory()
    async with session_factory() as session:
        export = await export_logs(session, criteria, fmt)

    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / export.filename
    filepath.write_text(export.content, encoding="utf-8")
    log.info("export_file_written", path=str(filepath), format=fmt)
    return filepath


async def run_cleanup(older_than_days: int) -> int:
    log = structlog.get_logger()
    session_factory = get_session_factory()
    async with session_factory() as session:
        deleted = await cleanup_old_logs(session, older_than_days, operator="cli")
    log.info("cleanup_complete", deleted=deleted, older_than_days=older_than_days)
    return deleted


async def _with_db(coro):
    try:
        return await coro
    finally:
        await close_db()


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="staffdesk.cli",
        description="Staffdesk AI usage log CLI",
    )
    subparsers = parser.add_subparsers(dest="command")

    export_parser = subparsers.add_parser("export", help="Export AI usage logs as CSV or JSON")
    export_parser.add_argument(
        "--format",
        choices=["csv", "json"],
        default="csv",
        help="Output format (default: csv)",
    )
    export_parser.add_argument(
        "--provider",
        action="append",
        default=[],
        help="Only export logs from this provider (repeatable)",
    )
    export_parser.add_argument(
        "--since",
        type=str,
        default=None,
        help="ISO datetime lower bound for created_at (e.g., 2026-02-28T16:00)",
    )
    export_parser.add_argument(
        "--output-dir",
        type=str,
        default=str(settings.export_dir),
        help=f"Output directory (default: {settings.export_dir})",
    )

    cleanup_parser = subparsers.add_parser("cleanup", help="Soft-delete old AI usage logs")
    cleanup_parser.add_argument(
        "--older-than-days",
        type=int,
        default=settings.logs_retention_days,
        help=f"Retention in days (default: {settings.logs_retention_days})",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "serve":
        # the app configures logging itself in its lifespan
        uvicorn.run(
            "staffdesk.api.app:app", host=args.host, port=args.port, reload=args.reload, log_config=None
        )
        return 0

    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    log = structlog.get_logger()

    try:
        if args.command == "export":
            since = datetime.fromisoformat(args.since) if args.since else None
            asyncio.run(_with_db(run_export(args.format, args.provider, since, Path(args.output_dir))))
        elif args.command == "cleanup":
            asyncio.run(_with_db(run_cleanup(args.older_than_days)))
    except Exception as exc:
        log.error(f"{args.command}_failed", **parse_error(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
