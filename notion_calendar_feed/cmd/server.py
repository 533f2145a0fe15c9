"""Calendar feed server command-line tool."""

import argparse


def main() -> None:
    """Main entry point for the calendar feed server."""
    parser = argparse.ArgumentParser(
        description="Personnel calendar feed server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start server with configuration from the environment
  NOTION_API_KEY=secret_... notion-calendar-feed

  # Start server on a specific port with debug logging
  notion-calendar-feed --port 3000 --debug

Endpoints:
  - Health:   http://localhost:PORT/
  - iCal:     http://localhost:PORT/calendar/{personId}?format=ics
  - Summary:  http://localhost:PORT/calendar/{personId}?format=json
        """,
    )
    parser.add_argument(
        "--addr",
        default="127.0.0.1",
        help="listening address (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="listening port (default: 8080)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging (logs feed requests and Notion API traffic)",
    )

    args = parser.parse_args()

    from notion_calendar_feed.config import FeedConfig
    from notion_calendar_feed.debug import (
        setup_debug_logging,
        setup_logging,
        setup_notion_debug_logging,
    )

    setup_logging()
    config = FeedConfig.from_env()
    if args.debug:
        config.debug = True
    if config.debug:
        setup_debug_logging()
        setup_notion_debug_logging()

    if not config.notion.api_key:
        print("Warning: NOTION_API_KEY is not set; feed requests will fail upstream")

    from notion_calendar_feed.server import create_app

    app = create_app(config)

    # Run with uvicorn
    import uvicorn

    print(f"Calendar feed server listening on {args.addr}:{args.port}")
    print(f"Feeds: http://{args.addr}:{args.port}/calendar/{{personId}}")

    uvicorn.run(
        app,
        host=args.addr,
        port=args.port,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
