"""Edge proxy server command-line tool."""

import argparse
import os
import sys


def main() -> None:
    """Main entry point for the edge proxy server."""
    parser = argparse.ArgumentParser(
        description="Paradise edge proxy (events feed, short links, weather)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start server with the town events feed
  ICS_URL=https://example.org/calendar.ics paradise-edge-server

  # Start server on a specific port with request logging
  paradise-edge-server --port 8787 --debug

Configuration is read from environment variables:
  ICS_URL             iCalendar feed for /api/events (required for events)
  TEMPEST_TOKEN       Tempest API token for /api/weather (required for weather)
  TEMPEST_STATION_ID  Tempest station id (default: 204460)

Endpoints:
  - Events:   http://localhost:PORT/api/events?days=30
  - Links:    http://localhost:PORT/go/<slug>
  - Weather:  http://localhost:PORT/api/weather
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
        default=8787,
        help="listening port (default: 8787)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging (logs requests and responses with formatted JSON)",
    )

    args = parser.parse_args()

    if args.debug:
        from paradise_edge.debug import setup_debug_logging

        setup_debug_logging()

    from paradise_edge.config import EdgeConfig
    from paradise_edge.server import create_app

    try:
        config = EdgeConfig()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    if not config.ics_url:
        print("Warning: ICS_URL is not set; /api/events will answer 500", file=sys.stderr)
    if not config.tempest_token:
        print("Warning: TEMPEST_TOKEN is not set; /api/weather will answer 500", file=sys.stderr)

    app = create_app(config, debug=args.debug)

    import uvicorn

    print(f"Edge proxy listening on {args.addr}:{args.port}")
    print(f"  Events:  http://{args.addr}:{args.port}/api/events?days=30")
    print(f"  Links:   http://{args.addr}:{args.port}/go/<slug>")
    print(f"  Weather: http://{args.addr}:{args.port}/api/weather")

    uvicorn.run(
        app,
        host=args.addr,
        port=args.port,
        log_level=os.getenv("LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
