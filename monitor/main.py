#!/usr/bin/env python3
"""
Spirulina Monitor — Main entry point.

  spirulina-monitor relay       → relay server (POST/GET /sensordata)
  spirulina-monitor dashboard   → dashboard server, polling FEED.kind
"""
import argparse
import logging
import sys

import uvicorn

from monitor.config import DASHBOARD, FEED, LOG_LEVEL, RELAY

log = logging.getLogger("main")


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level  = getattr(logging, level, logging.INFO),
        format = "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt= "%H:%M:%S",
    )


def run_relay(host: str, port: int):
    from monitor.relay import create_relay_app
    log.info(f"Relay listening on http://{host}:{port}")
    uvicorn.run(create_relay_app(), host=host, port=port, log_level="warning")


def run_dashboard(host: str, port: int, feed_kind: str):
    from monitor.feed import get_feed
    from monitor.server import create_app
    feed = get_feed({**FEED, "kind": feed_kind})
    log.info(f"Dashboard on http://{host}:{port} (feed={feed_kind})")
    uvicorn.run(create_app(feed=feed), host=host, port=port, log_level="warning")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="spirulina-monitor")
    sub = parser.add_subparsers(dest="command", required=True)

    p_relay = sub.add_parser("relay", help="run the sensor relay")
    p_relay.add_argument("--host", default=RELAY["host"])
    p_relay.add_argument("--port", type=int, default=RELAY["port"])

    p_dash = sub.add_parser("dashboard", help="run the dashboard backend")
    p_dash.add_argument("--host", default=DASHBOARD["host"])
    p_dash.add_argument("--port", type=int, default=DASHBOARD["port"])
    p_dash.add_argument("--feed", choices=("http", "sim"), default=FEED["kind"])

    args = parser.parse_args(argv)
    setup_logging()
    log.info("Spirulina Monitor starting...")

    try:
        if args.command == "relay":
            run_relay(args.host, args.port)
        else:
            run_dashboard(args.host, args.port, args.feed)
    except KeyboardInterrupt:
        log.info("Shutting down (KeyboardInterrupt)")
    finally:
        log.info("Spirulina Monitor stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
