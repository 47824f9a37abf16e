#!/usr/bin/env python3
"""
feed-relay: push new Telegram channel posts and NGA threads to a push gateway.

Usage:
    python main.py run                  # All configured feeds (for cron)
    python main.py channels             # Telegram channels only
    python main.py threads [--force]    # NGA threads only
    python main.py cursors              # Show stored cursors

Every command accepts --config path.json and -v.
"""

import argparse
import logging
import sys
from pathlib import Path

from config import load_config
from errors import ConfigurationError
from models import RunReport
from pipeline import run_once
from storage import CursorStore, ItemCache, Storage
from transport import RequestsTransport


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y.%m.%d %H:%M:%S",
    )


def cmd_run(config, storage, channels: bool = True, threads: bool = True, force: bool = False) -> RunReport:
    """Run feed pipelines once and print a summary."""
    transport = RequestsTransport(timeout=config.request_timeout)
    try:
        report = run_once(config, storage, transport, channels=channels, threads=threads, force=force or None)
    finally:
        transport.close()

    print(f"Delivered: {report.delivered} items from {len(report.results)} feeds")
    for result in report.failed:
        print(f"  FAILED {result.feed_id}: {result.error}", file=sys.stderr)
    return report


def cmd_cursors(config, storage):
    """Print stored cursors."""
    cursors = CursorStore(storage)
    for cursor in cursors.all():
        print(f"  {cursor.feed_id}: {cursor.last_item_id}")
    print(f"Delivered threads: {ItemCache(storage).count()}")


def cli():
    parser = argparse.ArgumentParser(
        prog="feed-relay",
        description="Relay new channel posts and forum threads to push notifications",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    common.add_argument("--config", type=Path, default=None, help="JSON config file")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    sub.add_parser("run", parents=[common], help="All feeds (for cron)")
    sub.add_parser("channels", parents=[common], help="Telegram channels only")
    threads_parser = sub.add_parser("threads", parents=[common], help="NGA threads only")
    threads_parser.add_argument("--force", action="store_true", help="Push threads even if already delivered")
    sub.add_parser("cursors", parents=[common], help="Show stored cursors")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logging.getLogger("feed-relay").error(f"Invalid configuration: {e}")
        sys.exit(2)
    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    storage = Storage(config.db_path)

    try:
        match args.command:
            case "run":
                report = cmd_run(config, storage)
            case "channels":
                report = cmd_run(config, storage, threads=False)
            case "threads":
                report = cmd_run(config, storage, channels=False, force=args.force)
            case "cursors":
                cmd_cursors(config, storage)
                return
            case _:
                parser.print_help()
                return
    finally:
        storage.close()

    sys.exit(0 if report.ok else 1)


if __name__ == "__main__":
    cli()
