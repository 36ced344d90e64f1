"""
Conditional Order Watchtower - Main Entry Point

Runs the watchtower actions against a node: registers conditional orders
from ComposableCoW events, posts the discrete orders that become tradeable,
and tracks their settlement.

Usage:
    python -m cow_watchtower.main                      # Follow new blocks
    python -m cow_watchtower.main --block 17000000     # Process one block
    python -m cow_watchtower.main --network 100 --dry-run

Environment Variables:
    NETWORK                   Network id: 1, 5, 100 or 31337 (default: 1)
    DATABASE_URL              PostgreSQL connection string
    NODE_URL_{network}        JSON-RPC endpoint (required)
    NODE_USER_{network}       Basic auth user for the node (optional)
    NODE_PASSWORD_{network}   Basic auth password for the node (optional)
    BLOCK_NUMBER              Process only this block, then exit
    POLL_INTERVAL_SECONDS     Interval between head checks (default: 5)
    DRY_RUN                   Set to "true" to log orders instead of posting them
    NOTIFICATIONS_ENABLED     Set to "false" to disable Slack alerts
    SLACK_WEBHOOK_URL         Slack webhook (required when notifications are enabled)
    LOG_LEVEL                 Logging level (DEBUG/INFO/WARNING/ERROR)
    PID_FILE                  Lock file (default: /tmp/cow-watchtower-{network}.pid)
"""

from __future__ import annotations

import argparse
import asyncio
import atexit
import fcntl
import logging
import os
import signal
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional

from cow_watchtower.chain.client import ChainClient
from cow_watchtower.chain.networks import UnsupportedNetworkError, get_network
from cow_watchtower.core import ActionRuntime, ConfigurationError, LocalRunner
from cow_watchtower.storage import Database, DatabaseConfig, StorageRepository

# Configure logging before imports
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def default_pid_file(network: str) -> str:
    return f"/tmp/cow-watchtower-{network}.pid"


class SingletonRunnerError(Exception):
    """Raised when another watchtower for the same network is already running."""
    pass


@contextmanager
def singleton_lock(pid_file: str) -> Generator[None, None, None]:
    """
    Hold an exclusive flock on the network's PID file while the watchtower runs.

    Registry writes are full snapshots, so two runners on the same network
    would overwrite each other's changes.

    Raises:
        SingletonRunnerError: If another instance holds the lock
    """
    pid_path = Path(pid_file)
    # "a+" keeps the holder's PID readable when the lock is taken
    handle = open(pid_path, "a+")
    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        handle.seek(0)
        holder = handle.read().strip() or "unknown"
        handle.close()
        raise SingletonRunnerError(
            f"Another watchtower is already running (PID: {holder}, lock file: {pid_file})"
        )

    handle.truncate(0)
    handle.write(str(os.getpid()))
    handle.flush()

    def release() -> None:
        if handle.closed:
            return
        try:
            pid_path.unlink(missing_ok=True)
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Failed to release lock {pid_file}: {e}")
        finally:
            handle.close()

    atexit.register(release)
    logger.info(f"Acquired singleton lock (PID: {os.getpid()}, file: {pid_file})")
    try:
        yield
    finally:
        release()
        atexit.unregister(release)


@dataclass
class WatchtowerConfig:
    """Complete watchtower configuration."""

    network: str = "1"
    database_url: str = ""

    # Node
    node_url: Optional[str] = None
    node_user: Optional[str] = None
    node_password: Optional[str] = None

    # Runner
    block_number: Optional[int] = None
    poll_interval_seconds: float = 5.0
    dry_run: bool = False

    pid_file: str = ""

    @classmethod
    def from_env(cls, network: Optional[str] = None) -> "WatchtowerConfig":
        """Load configuration from environment variables."""
        network = network or os.environ.get("NETWORK", "1")
        block_number = os.environ.get("BLOCK_NUMBER")

        return cls(
            network=network,
            database_url=os.environ.get("DATABASE_URL", ""),
            node_url=os.environ.get(f"NODE_URL_{network}"),
            node_user=os.environ.get(f"NODE_USER_{network}"),
            node_password=os.environ.get(f"NODE_PASSWORD_{network}"),
            block_number=int(block_number) if block_number else None,
            poll_interval_seconds=float(os.environ.get("POLL_INTERVAL_SECONDS", "5")),
            dry_run=os.environ.get("DRY_RUN", "false").lower() == "true",
            pid_file=os.environ.get("PID_FILE", default_pid_file(network)),
        )

    def validate(self) -> None:
        """
        Raises:
            UnsupportedNetworkError: For an unknown network id
            ConfigurationError: If the node URL is missing
        """
        get_network(self.network)
        if not self.node_url:
            raise ConfigurationError(f"NODE_URL_{self.network} environment variable is required")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Conditional Order Watchtower",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--network",
        type=str,
        help="Network id (overrides NETWORK)",
    )
    parser.add_argument(
        "--block",
        type=int,
        help="Process a single block and exit (overrides BLOCK_NUMBER)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log orders instead of posting them",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level",
    )
    return parser.parse_args()


async def main_async(config: WatchtowerConfig) -> int:
    """Async main function."""
    db = Database(DatabaseConfig(url=config.database_url) if config.database_url else None)
    await db.initialize()

    chain = ChainClient.from_url(config.node_url, config.node_user, config.node_password)
    runtime = ActionRuntime(storage=StorageRepository(db), chain=chain, dry_run=config.dry_run)
    runner = LocalRunner(runtime, config.network, config.poll_interval_seconds)

    try:
        if config.block_number is not None:
            has_errors = await runner.process_block(config.block_number)
            return 1 if has_errors else 0

        loop = asyncio.get_running_loop()
        try:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, runner.stop)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

        await runner.watch()
        return 0
    finally:
        await db.close()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.log_level:
        logging.getLogger().setLevel(getattr(logging, args.log_level))

    config = WatchtowerConfig.from_env(network=args.network)
    if args.block is not None:
        config.block_number = args.block
    if args.dry_run:
        config.dry_run = True

    try:
        config.validate()
    except (UnsupportedNetworkError, ConfigurationError) as e:
        logger.error(str(e))
        return 1

    try:
        with singleton_lock(config.pid_file):
            try:
                return asyncio.run(main_async(config))
            except KeyboardInterrupt:
                return 0
    except SingletonRunnerError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
