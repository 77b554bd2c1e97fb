#!/usr/bin/env python3
"""Run the inbound file adapter against a directory from the command line.

Every accepted file is drained and logged by a ``LoggingSink``. Useful for
checking a selection pattern against a real drop folder before wiring the
adapter into a larger pipeline.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.helpers import configure_logging, normalise_path
from domains.file_ingest import ConfigurationError, InboundFileAdapter
from domains.file_ingest.collectors.sinks import LoggingSink


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch a directory and emit a stream message for every new file.",
    )
    parser.add_argument(
        "--watch-dir",
        type=Path,
        required=True,
        help="Directory to watch.",
    )
    parser.add_argument(
        "--regex",
        default=None,
        help="Only forward files whose name matches this regular expression.",
    )
    parser.add_argument(
        "--replay",
        action="store_true",
        help="Also emit files already present when watching starts.",
    )
    parser.add_argument(
        "--flat",
        action="store_true",
        help="Do not descend into subdirectories.",
    )
    parser.add_argument(
        "--name",
        default="file-ingest-watcher",
        help="Step name used in log output.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO).",
    )

    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    """Start the adapter and keep it running until a shutdown signal arrives."""

    try:
        adapter = InboundFileAdapter(
            LoggingSink(),
            {
                "watch_dir": normalise_path(args.watch_dir),
                "only_read_new_files": not args.replay,
                "regex": args.regex,
                "recursive": not args.flat,
            },
            name=args.name,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        await adapter.start()
    except OSError as e:
        logger.error(f"Could not start watcher: {e}")
        return 1

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop_event.set)

    try:
        await stop_event.wait()
        logger.info("Received shutdown signal.")
    finally:
        await adapter.stop()
        await adapter.wait_idle()

    logger.info("File ingest watcher stopped.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
