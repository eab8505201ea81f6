#!/usr/bin/env python3
"""
Canvas Sync - Download course files from Canvas onto the local disk.

Reads ~/.canvassync.json, lists every course the access token can see and
downloads the files that are missing or changed since the last run.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from canvassync.api import CanvasClient, CanvasClientConfig, check_network
from canvassync.config import SyncConfig
from canvassync.core.constants import DEFAULT_DOWNLOAD_WORKERS
from canvassync.errors import AuthorizationError, ConfigError, SyncError
from canvassync.sync import SyncStats, sync_courses
from canvassync.ui import InterruptHandler, SyncProgress, format_summary
from canvassync.ui.colors import get_colors

logger = logging.getLogger("canvassync")


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Canvas Sync - Download course files from Canvas"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ~/.canvassync.json or $CANVAS_SYNC_CONFIG)"
    )
    parser.add_argument(
        "--directory",
        type=Path,
        default=None,
        help="Sync into this directory instead of the configured one"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_DOWNLOAD_WORKERS,
        help=f"Concurrent downloads (default: {DEFAULT_DOWNLOAD_WORKERS})"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every request"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print the summary"
    )
    args = parser.parse_args(argv)
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    return args


async def run_sync(config: SyncConfig, workers: int, quiet: bool = False) -> SyncStats:
    """Run one sync under the Ctrl+C handler."""
    progress = SyncProgress(config.directory, quiet=quiet)
    client_config = CanvasClientConfig(
        url=config.url,
        token=config.token,
        max_connections=workers * 2,
    )

    with InterruptHandler(asyncio.current_task(), progress):
        async with CanvasClient(client_config) as client:
            try:
                return await sync_courses(
                    client,
                    config.directory,
                    ignored_courses=config.ignored_courses,
                    progress=progress,
                    workers=workers,
                )
            finally:
                logger.debug("%d API calls", client.api_calls)
                progress.close()


def main(argv=None) -> int:
    """Entry point."""
    args = parse_args(argv)
    c = get_colors()
    configure_logging(args.verbose)

    try:
        config = SyncConfig.load(args.config)
    except ConfigError as e:
        print(f"{c.RED}Error: {e}{c.RESET}")
        return 1

    if args.directory is not None:
        config.directory = args.directory.expanduser()

    is_online, network_error = check_network(config.url)
    if not is_online:
        print(f"{c.RED}Error: {network_error} ({config.url}){c.RESET}")
        return 1

    if not args.quiet:
        print(f"Syncing {config.url} into {config.directory}")

    try:
        stats = asyncio.run(run_sync(config, args.workers, quiet=args.quiet))
    except (asyncio.CancelledError, KeyboardInterrupt):
        print("Cancelled.")
        return 130
    except AuthorizationError as e:
        print(f"{c.RED}Error: {e}{c.RESET}")
        print("Check that the access token in your config is valid and not expired.")
        return 1
    except (SyncError, OSError) as e:
        print(f"{c.RED}Error: {e}{c.RESET}")
        return 1

    print(f"{c.GREEN}{format_summary(stats.files_synced, stats.bytes_transferred, config.url)}{c.RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
