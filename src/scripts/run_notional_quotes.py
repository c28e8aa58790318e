"""
Price the notional ladder against a pool's stored reserves.

Reads the pool's reserve state from Redis, sizes the ladder from the latest
traded volume of the reference asset and prints bid/ask sizes per level.

Usage:
  uv run python src/scripts/run_notional_quotes.py --pool 58oQChx4yWmvKdwLLZzBi4ChoCc2fqCUWBkwMihLYQo2
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.config import DEVNET, MAINNET, ConfigManager, get_config
from src.core.storage import ConnectionError, StorageManager
from src.ledger import LedgerGateway
from src.pricing import LadderLevel, LadderQuoter, build_notional_ladder
from src.scripts.run_reserve_tracker import build_gateway

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def quote_pool(
    storage: StorageManager,
    gateway: LedgerGateway,
    config: ConfigManager,
    pool_address: str,
) -> List[LadderLevel]:
    """
    Bid/ask sizes for every ladder notional on one pool.

    Raises:
        LookupError: If the pool has no stored reserves or the reference
            asset has no volume/FX rate
    """
    tracker_config = config.tracker

    state = await storage.reserves.get_reserve_state(pool_address)
    if state is None:
        raise LookupError(f"No reserve state stored for {pool_address}")

    pool_info = state.pool_info
    if pool_info is None:
        # Decimals are only known after a full refresh
        logger.info(f"No pool snapshot stored for {pool_address}, fetching from ledger")
        keys = await gateway.resolve_pool_keys(pool_address)
        pool_info = await gateway.fetch_pool_info(keys)

    asset = tracker_config.LADDER_REFERENCE_ASSET
    fx = await storage.market_data.latest_fx_rate(asset)
    if fx is None:
        raise LookupError(f"No FX rate recorded for {asset}")

    notionals = await build_notional_ladder(storage.market_data, tracker_config)

    quoter = LadderQuoter(
        fee_numerator=tracker_config.FEE_NUMERATOR,
        fee_denominator=tracker_config.FEE_DENOMINATOR,
        slippage_tolerance=tracker_config.SLIPPAGE_TOLERANCE,
    )
    return quoter.quote_ladder(state, pool_info, notionals, fx)


def format_ladder(pool_address: str, levels: List[LadderLevel]) -> None:
    """Log the ladder as a table."""
    logger.info("\n" + "=" * 80)
    logger.info(f"📊 Notional ladder for {pool_address}")
    logger.info(f"  {'notional':>16} {'bid (base out)':>22} {'ask (quote in)':>22}")
    for level in levels:
        bid = "-" if level.bid is None else str(level.bid)
        ask = "-" if level.ask is None else str(level.ask)
        logger.info(f"  {str(level.notional):>16} {bid:>22} {ask:>22}")
        if level.error:
            logger.warning(f"    ⚠️  {level.error}")
    logger.info("=" * 80)


async def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Price the notional ladder for a Raydium AMM v4 pool")
    parser.add_argument("--pool", required=True, help="AMM pool address")
    parser.add_argument(
        "--network",
        choices=[MAINNET, DEVNET],
        help="Ledger cluster (defaults to LEDGER_NETWORK)",
    )
    args = parser.parse_args()

    try:
        config = get_config(network=args.network)
    except Exception as e:
        logger.exception(f"💥 Invalid configuration: {e}")
        return 1

    gateway = build_gateway(config)
    try:
        async with StorageManager(config) as storage:
            levels = await quote_pool(storage, gateway, config, args.pool)
        format_ladder(args.pool, levels)
        return 0

    except ConnectionError as e:
        logger.error(f"❌ Cannot reach persistence backend: {e}")
        return 1
    except LookupError as e:
        logger.error(f"❌ {e}")
        return 1
    except Exception as e:
        logger.exception(f"💥 Unexpected error: {e}")
        return 1
    finally:
        await gateway.close()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
