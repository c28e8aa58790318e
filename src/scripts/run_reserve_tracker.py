"""
Long-running reserve tracker service.

Loads the pool catalog from Redis, starts one tracker per Raydium AMM v4
pool and keeps their reserve state current until SIGINT/SIGTERM.

Usage:
  uv run python src/scripts/run_reserve_tracker.py
  uv run python src/scripts/run_reserve_tracker.py --network devnet
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.config import DEVNET, MAINNET, ConfigManager, get_config
from src.core.storage import ConnectionError, StorageManager
from src.ledger import GatewayConfig, SolanaLedgerGateway
from src.tracker import ReserveTrackerRegistry
from src.utils.alerts import build_alert_sink
from src.utils.nats import ReservePublisher

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_gateway(config: ConfigManager) -> SolanaLedgerGateway:
    """Ledger gateway for the configured cluster."""
    ledger = config.ledger
    gateway_config = GatewayConfig(
        max_retries=ledger.MAX_RETRY_ATTEMPTS,
        retry_delay=ledger.RETRY_DELAY_SECONDS,
        timeout=ledger.RPC_TIMEOUT_SECONDS,
        reconnect_max_delay=ledger.RECONNECT_MAX_DELAY_SECONDS,
    )
    return SolanaLedgerGateway(
        ledger.get_rpc_url(),
        ledger.get_ws_url(),
        commitment=ledger.COMMITMENT,
        config=gateway_config,
    )


async def build_publisher(config: ConfigManager) -> Optional[ReservePublisher]:
    """Connected reserve publisher, or None when NATS is disabled or unreachable."""
    if not config.nats.NATS_ENABLED:
        return None

    publisher = ReservePublisher(config.nats, network=config.ledger.CATALOG_NETWORK)
    try:
        await publisher.aconnect()
    except Exception as e:
        logger.warning(f"⚠️  NATS unavailable, continuing without reserve stream: {e}")
        return None
    return publisher


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still stops the service
            pass


async def run_service(config: ConfigManager, stop_event: asyncio.Event) -> int:
    """
    Run trackers for every cataloged pool until `stop_event` is set.

    Returns:
        Process exit code
    """
    network = config.ledger.CATALOG_NETWORK
    alert_sink = build_alert_sink(config.alerts)

    try:
        storage = StorageManager(config)
        await storage.initialize()
    except ConnectionError as e:
        logger.error(f"❌ Cannot reach persistence backend: {e}")
        return 1

    gateway = build_gateway(config)
    publisher = await build_publisher(config)
    registry = ReserveTrackerRegistry(
        gateway,
        storage.reserves,
        storage.catalog,
        alert_sink,
        config=config.tracker,
        publisher=publisher,
    )

    try:
        await alert_sink.send_alert(f"Reserve tracker starting on {config.ledger.LEDGER_NETWORK}")

        started = await registry.start_all(network)
        if not started:
            logger.warning(f"⚠️  No trackers running for {network}, waiting for shutdown")
        else:
            logger.info(f"✅ Tracking {len(started)} pools on {config.ledger.LEDGER_NETWORK}")

        await stop_event.wait()
        logger.info("⏹️  Shutdown requested")
        return 0

    finally:
        await registry.stop_all()
        if publisher is not None:
            await publisher.aclose()
        await gateway.close()
        await storage.shutdown()
        logger.info("Reserve tracker stopped")


async def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Raydium AMM v4 reserve tracker")
    parser.add_argument(
        "--network",
        choices=[MAINNET, DEVNET],
        help="Ledger cluster (defaults to LEDGER_NETWORK)",
    )
    args = parser.parse_args()

    logger.info("=" * 80)
    logger.info("Starting Reserve Tracker")
    logger.info("=" * 80)

    try:
        config = get_config(network=args.network)
        stop_event = asyncio.Event()
        install_signal_handlers(stop_event)
        return await run_service(config, stop_event)

    except Exception as e:
        logger.exception(f"💥 Fatal error in reserve tracker: {e}")
        return 1


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)
