#!/usr/bin/env python3
"""Live Log Categorizer entry point.

Watches a client log and prints one JSON event per classified line on stdout.
"""

import argparse
import json
import logging
import signal
import sys
import threading

from logwatch.categorizer import CategoryEngine
from logwatch.config import load_config, load_yaml_config
from logwatch.errors import ConfigurationError, FileAccessError
from logwatch.models import Event
from logwatch.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live Log Categorizer")
    parser.add_argument(
        "--log-file", default=None,
        help="Path to the client log file to watch",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file for settings and extra rules",
    )
    parser.add_argument(
        "--poll-interval", type=float, default=None,
        help="Seconds between polls (default: 0.25)",
    )
    parser.add_argument(
        "--notify", action="store_true",
        help="Wake up early on filesystem change notifications",
    )
    parser.add_argument(
        "--once", action="store_true",
        help="Classify the lines already in the file and exit",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level for diagnostics on stderr (default: INFO)",
    )
    return parser


def _print_event(event: Event):
    print(json.dumps(event.to_dict(), ensure_ascii=False), flush=True)


def main(argv: list[str] | None = None) -> int:
    args = build_cli_parser().parse_args(argv)

    try:
        config = load_config(args, load_yaml_config(args.config))
        engine = CategoryEngine(extra_rules=config.rules)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [WATCHER] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if not config.log_file:
        print("No log file given (use --log-file or LOG_FILE)", file=sys.stderr)
        return 2

    pipeline = IngestionPipeline(engine=engine, config=config)
    pipeline.subscribe(_print_event)

    try:
        pipeline.start(config.log_file, background=not args.once)
    except FileAccessError as e:
        print(f"Error opening file: {e}", file=sys.stderr)
        return 1

    if args.once:
        try:
            count = pipeline.poll_once()
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            pipeline.stop()
            return 1
        pipeline.stop()
        if count == 0:
            logger.info("No events in %s", config.log_file)
        return 0

    shutdown = threading.Event()

    def _signal_handler(sig, frame):
        logger.info("Shutdown signal received, stopping...")
        shutdown.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    logger.info("Live Log Categorizer running. Press Ctrl+C to stop.")
    while not shutdown.is_set():
        shutdown.wait(1)

    pipeline.stop()
    logger.info("Stats: %s", pipeline.stats.snapshot())
    return 0


if __name__ == "__main__":
    sys.exit(main())
