"""Bulk feed regeneration command-line tool."""

import argparse
import asyncio
import sys


def main() -> None:
    """Main entry point for bulk regeneration."""
    parser = argparse.ArgumentParser(
        description="Regenerate every person's calendar feed in rate-limited groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Regenerate everyone linked from the calendar data database
  notion-calendar-regenerate

  # Smaller groups with a longer pause against a remote server
  notion-calendar-regenerate --batch-size 25 --pause 10 --base-url https://feeds.example.com

  # Regenerate specific people only
  notion-calendar-regenerate 1f2e3d4c5b6a79881f2e3d4c5b6a7988
        """,
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="people processed in parallel per group (default: BATCH_SIZE or 100)",
    )
    parser.add_argument(
        "--pause",
        type=float,
        help="seconds to wait between groups (default: BATCH_PAUSE_SECONDS or 5)",
    )
    parser.add_argument(
        "--base-url",
        help="feed server base URL (default: FEED_BASE_URL or http://127.0.0.1:8080)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging (logs Notion API traffic)",
    )
    parser.add_argument(
        "person_ids",
        nargs="*",
        help="person ids to regenerate (default: everyone in the calendar data database)",
    )

    args = parser.parse_args()

    from notion_calendar_feed.bulk_regenerate import BatchRegenerator
    from notion_calendar_feed.config import FeedConfig
    from notion_calendar_feed.debug import setup_logging, setup_notion_debug_logging

    setup_logging()
    config = FeedConfig.from_env()
    if args.batch_size is not None:
        if args.batch_size < 1:
            print("Error: --batch-size must be at least 1", file=sys.stderr)
            sys.exit(1)
        config.batch_size = args.batch_size
    if args.pause is not None:
        config.batch_pause_seconds = args.pause
    if args.base_url:
        config.feed_base_url = args.base_url.rstrip("/")
    if args.debug:
        config.debug = True
        setup_notion_debug_logging()

    if not args.person_ids and not config.calendar_data_database_id:
        print("Error: CALENDAR_DATA_DATABASE_ID is not set", file=sys.stderr)
        sys.exit(1)

    async def run() -> int:
        async with BatchRegenerator(config) as regenerator:
            report = await regenerator.run(args.person_ids or None)

        print(f"Total time: {report.total_elapsed:.1f}s")
        print(f"Success:    {report.count('success')}")
        print(f"No events:  {report.count('no_events')}")
        print(f"Errors:     {report.count('error')}")
        for result in report.errors:
            print(f"  {result.person_id}: {result.reason} {result.message or ''}".rstrip())

        return 1 if report.errors else 0

    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
