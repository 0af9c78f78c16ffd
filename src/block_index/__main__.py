"""
Block index node CLI entry point.

Run a node that keeps a bloom-filter cache of who among the subject's
follows blocks whom, and serves lookups over HTTP.

Usage::

    python -m block_index
    python -m block_index --db ./cache.sqlite3 --api-port 5058
    python -m block_index --sync-interval 1800 -v

Options:
    --db              Path to the SQLite database (default: $BLOCK_INDEX_DB_PATH)
    --api-host        Address the API server binds to (default: 127.0.0.1)
    --api-port        Port the API server listens on (default: 5058)
    --no-api          Disable the API server
    --sync-interval   Seconds between scheduled sync passes (default: 3600)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from block_index import config
from block_index.api import ApiServerConfig
from block_index.node import Node, NodeConfig
from block_index.sync import SyncConfig
from block_index.sync.config import SYNC_INTERVAL

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors per level."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the node with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO; one line per block-list page is noise.
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def build_config(args: argparse.Namespace) -> NodeConfig:
    """Translate parsed CLI arguments into a node configuration."""
    api_config = None
    if not args.no_api:
        api_config = ApiServerConfig(host=args.api_host, port=args.api_port)

    return NodeConfig(
        database_path=args.db,
        api_config=api_config,
        sync_config=SyncConfig(sync_interval=args.sync_interval),
        api_url=config.API_URL,
        plc_url=config.PLC_URL,
        default_origin=config.PDS_URL,
    )


async def run_node(node_config: NodeConfig) -> None:
    """
    Run the block index node until interrupted.

    Args:
        node_config: Node configuration.
    """
    node = Node.from_config(node_config)
    logger.info(f"Starting block index node (db={node_config.database_path})")
    await node.run()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Block index node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(config.DB_PATH),
        help=f"Path to the SQLite database (default: {config.DB_PATH})",
    )
    parser.add_argument(
        "--api-host",
        default="127.0.0.1",
        help="Address the API server binds to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--api-port",
        type=int,
        default=5058,
        help="Port the API server listens on (default: 5058)",
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Disable the API server",
    )
    parser.add_argument(
        "--sync-interval",
        type=float,
        default=SYNC_INTERVAL,
        help=f"Seconds between scheduled sync passes (default: {SYNC_INTERVAL:.0f})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args()

    setup_logging(args.verbose, args.no_color)

    try:
        asyncio.run(run_node(build_config(args)))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
