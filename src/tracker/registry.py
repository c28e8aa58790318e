"""
Registry of per-pool reserve trackers.

Each tracker is independent: a failure while registering or starting one
pool is logged and does not affect the others.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from src.config import TrackerConfig
from src.core.storage.base import PoolCatalogInterface, ReserveStateStorageInterface
from src.ledger import LedgerGateway
from src.pools import ReserveState, TrackedPool
from src.utils.alerts import AlertSink
from src.utils.nats import ReservePublisher

from .reserve_tracker import Clock, ReserveTracker, TrackerLifecycle, utc_now

logger = logging.getLogger(__name__)


class ReserveTrackerRegistry:
    """
    Owns one ReserveTracker per monitored pool.

    Usage:
        registry = ReserveTrackerRegistry(gateway, storage.reserves, storage.catalog, alerts)
        await registry.start_all("solana")
        ...
        await registry.stop_all()
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        reserves: ReserveStateStorageInterface,
        catalog: PoolCatalogInterface,
        alert_sink: AlertSink,
        config: Optional[TrackerConfig] = None,
        publisher: Optional[ReservePublisher] = None,
        clock: Clock = utc_now,
    ):
        self.gateway = gateway
        self.reserves = reserves
        self.catalog = catalog
        self.alert_sink = alert_sink
        self.config = config or TrackerConfig()
        self.publisher = publisher
        self.clock = clock
        self._trackers: Dict[str, ReserveTracker] = {}

    def __len__(self) -> int:
        return len(self._trackers)

    def get(self, address: str) -> Optional[ReserveTracker]:
        return self._trackers.get(address)

    def snapshots(self) -> Dict[str, ReserveState]:
        """Current reserve state of every registered pool."""
        return {address: tracker.snapshot() for address, tracker in self._trackers.items()}

    async def register(self, pool: TrackedPool) -> ReserveTracker:
        """
        Resolve a pool and create its tracker, bootstrapping its state if needed.

        A pool with no persisted state is seeded from a fresh ledger
        snapshot, persisted, and announced through the alert sink.
        """
        existing = self._trackers.get(pool.address)
        if existing is not None:
            logger.warning(f"{pool.label} ({pool.address}) is already registered")
            return existing

        keys = await self.gateway.resolve_pool_keys(pool.address)
        state = await self.reserves.get_reserve_state(pool.address)

        bootstrap = state is None
        if bootstrap:
            logger.info(f"No reserve state stored for {pool.label}, bootstrapping from ledger")
            pool_info = await self.gateway.fetch_pool_info(keys)
            state = ReserveState(
                pool_address=pool.address,
                base_reserve=pool_info.base_reserve,
                quote_reserve=pool_info.quote_reserve,
                timestamp=self.clock(),
                pool_info=pool_info,
            )

        tracker = ReserveTracker(
            pool,
            keys,
            state,
            self.gateway,
            self.reserves,
            config=self.config,
            publisher=self.publisher,
            clock=self.clock,
        )

        if bootstrap and await tracker.reconcile():
            await self.alert_sink.send_alert(f"Liquidity State Updated for: {pool.label}")

        self._trackers[pool.address] = tracker
        return tracker

    async def deregister(self, address: str) -> bool:
        """Stop and forget a pool's tracker."""
        tracker = self._trackers.pop(address, None)
        if tracker is None:
            return False
        await tracker.stop()
        return True

    async def _register_and_start(self, pool: TrackedPool) -> ReserveTracker:
        tracker = await self.register(pool)
        if tracker.lifecycle is TrackerLifecycle.IDLE:
            await tracker.start()
        return tracker

    async def start_all(self, network: str, pools: Optional[List[TrackedPool]] = None) -> List[ReserveTracker]:
        """
        Start a tracker for every cataloged pool of a network.

        Returns:
            Trackers that started successfully
        """
        if pools is None:
            pools = await self.catalog.list_tracked_pools(network)

        unique = {}
        for pool in pools:
            if pool.address in unique:
                logger.warning(f"Pool {pool.address} listed more than once; starting it once")
                continue
            unique[pool.address] = pool
        pools = list(unique.values())

        results = await asyncio.gather(
            *(self._register_and_start(pool) for pool in pools), return_exceptions=True
        )

        started = []
        for pool, result in zip(pools, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to start tracker for {pool.label} ({pool.address}): {result!r}")
                self._trackers.pop(pool.address, None)
                continue
            started.append(result)

        logger.info(f"Started {len(started)}/{len(pools)} trackers on {network}")
        return started

    async def stop_all(self) -> None:
        trackers = list(self._trackers.values())
        self._trackers.clear()
        await asyncio.gather(*(tracker.stop() for tracker in trackers), return_exceptions=True)
        logger.info(f"Stopped {len(trackers)} trackers")
