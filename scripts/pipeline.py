#!/usr/bin/env python3
"""
CLI tool for the article pipeline.

Usage:
    # Run one collection pass over all topics
    python -m scripts.pipeline collect

    # Back up one day (yesterday by default)
    python -m scripts.pipeline backup --date 2024-01-15

    # Restore a range of days
    python -m scripts.pipeline restore --from 2024-01-10 --to 2024-01-15

    # Show configured sources and stored sources
    python -m scripts.pipeline sources

    # Run the collector loop (continuous)
    python -m scripts.pipeline serve --interval 30
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from newsping.config import get_settings
from newsping.core.logging import configure_logging
from newsping.exceptions import FutureDateError, InvalidRangeError, SnapshotStorageError
from newsping.jobs.daily_backup import yesterday
from newsping.pipeline import Pipeline, create_pipeline

logger = logging.getLogger(__name__)


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


async def open_pipeline(args) -> Pipeline:
    settings = get_settings()
    updates = {}
    if getattr(args, "database_url", None):
        updates["database_url"] = args.database_url
    if getattr(args, "interval", None):
        updates["collect_interval_minutes"] = args.interval
    if updates:
        settings = settings.model_copy(update=updates)

    pipeline = create_pipeline(settings)
    await pipeline.database.create_tables()
    return pipeline


async def cmd_collect(args):
    """Run one collection pass."""
    pipeline = await open_pipeline(args)
    try:
        print(f"Collecting articles with {len(pipeline.collector.fetchers)} fetchers...")
        await pipeline.collector.collect_articles()
        print(f"Stored sources: {', '.join(await pipeline.articles.list_sources()) or '-'}")
    finally:
        await pipeline.database.dispose()
    return 0


async def cmd_backup(args):
    """Back up one day of articles."""
    day = args.date or yesterday()
    pipeline = await open_pipeline(args)
    try:
        count = await pipeline.backup.backup_by_date(day)
    except FutureDateError as e:
        print(f"Invalid date: {e}")
        return 1
    except SnapshotStorageError as e:
        print(f"Backup failed: {e}")
        return 1
    finally:
        await pipeline.database.dispose()

    print(f"Backed up {count} articles for {day.isoformat()}")
    return 0


async def cmd_restore(args):
    """Restore articles from snapshots."""
    pipeline = await open_pipeline(args)
    try:
        results = await pipeline.restore.restore_range(args.from_date, args.to_date)
    except InvalidRangeError as e:
        print(f"Invalid range: {e}")
        return 1
    finally:
        await pipeline.database.dispose()

    print("\n" + "=" * 60)
    print("RESTORE RESULTS")
    print("=" * 60)

    failed = False
    for result in results:
        if result.error:
            failed = True
            print(f"  {result.restored_date}: FAILED ({result.error})")
        else:
            print(f"  {result.restored_date}: {result.restored_article_count} restored")

    if args.output:
        with open(args.output, "w") as f:
            json.dump([r.model_dump(mode="json") for r in results], f, indent=2)
        print(f"\nResults saved to: {args.output}")

    return 1 if failed else 0


async def cmd_sources(args):
    """Show configured fetchers and the sources of stored articles."""
    pipeline = await open_pipeline(args)
    try:
        stored = await pipeline.articles.list_sources()
    finally:
        await pipeline.database.dispose()

    print("\n" + "=" * 50)
    print("FETCHERS")
    print("=" * 50)
    for fetcher in pipeline.collector.fetchers:
        print(f"  {fetcher.name} ({fetcher.config.source_type.value})")

    print("\nStored sources:")
    for source in stored:
        print(f"  {source}")

    return 0


async def cmd_serve(args):
    """Run the collector loop until interrupted."""
    pipeline = await open_pipeline(args)
    collector = pipeline.collector

    print(f"Starting collector (every {collector.interval})")
    print("Press Ctrl+C to stop")

    try:
        await collector.start()

        while collector.is_running:
            await asyncio.sleep(60)

            status = collector.get_status()
            if status["last_run"]:
                logger.debug(f"Last run: {status['last_run']}")

    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\nShutting down...")
    finally:
        await collector.stop()
        await pipeline.database.dispose()

    return 0


def main():
    parser = argparse.ArgumentParser(description="newsping - article pipeline CLI")
    parser.add_argument(
        "--database-url",
        help="Override the configured database URL",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("collect", help="Collect articles for all topics once")

    backup_parser = subparsers.add_parser("backup", help="Back up one day of articles")
    backup_parser.add_argument(
        "--date", "-d",
        type=parse_date,
        help="Day to back up, YYYY-MM-DD (default: yesterday)"
    )

    restore_parser = subparsers.add_parser("restore", help="Restore articles from backups")
    restore_parser.add_argument(
        "--from", "-f",
        dest="from_date",
        type=parse_date,
        required=True,
        help="First day to restore, YYYY-MM-DD"
    )
    restore_parser.add_argument(
        "--to", "-t",
        dest="to_date",
        type=parse_date,
        required=True,
        help="Last day to restore, YYYY-MM-DD"
    )
    restore_parser.add_argument(
        "--output", "-o",
        help="Output file for restore results (JSON)"
    )

    subparsers.add_parser("sources", help="Show fetchers and stored sources")

    serve_parser = subparsers.add_parser("serve", help="Run continuous collector")
    serve_parser.add_argument(
        "--interval", "-i",
        type=int,
        help="Collection interval in minutes (default: from settings)"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()
    configure_logging(settings.log_level, json_logs=False)

    commands = {
        "collect": cmd_collect,
        "backup": cmd_backup,
        "restore": cmd_restore,
        "sources": cmd_sources,
        "serve": cmd_serve,
    }
    try:
        return asyncio.run(commands[args.command](args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
