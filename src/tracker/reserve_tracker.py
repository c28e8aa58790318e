"""
Per-pool reserve tracker.

Keeps one reserve pair per pool, fed by three sources:

1. log notifications, which replace the pair and persist it
2. a reconcile timer, which re-persists the current pair unconditionally
3. a refresh timer, which re-fetches the pool snapshot from the ledger and
   persists it next to the current pair

All three may fire concurrently. The pair update and the persistence call
are serialized per pool by one lock; the ledger fetch of a refresh runs
outside of it. One stop event ends the subscription and both timers.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from src.config import TrackerConfig
from src.core.storage.base import ReserveStateStorageInterface
from src.ledger import DecodeError, LedgerError, LedgerGateway, LogSubscription
from src.pools import LogBatch, PoolKeys, ReserveState, TrackedPool
from src.utils.nats import ReservePublisher
from src.utils.retry import ErrorHandler, RetryPolicy, call_with_retry

from .log_parser import extract_reserves

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackerStatus(Enum):
    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"


class TrackerLifecycle(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ReserveTracker:
    """
    Tracks the reserves of one AMM v4 pool.

    Readers get immutable snapshots through `snapshot()`; only the tracker
    replaces its state.
    """

    def __init__(
        self,
        pool: TrackedPool,
        keys: PoolKeys,
        initial_state: ReserveState,
        gateway: LedgerGateway,
        repository: ReserveStateStorageInterface,
        config: Optional[TrackerConfig] = None,
        publisher: Optional[ReservePublisher] = None,
        clock: Clock = utc_now,
    ):
        if initial_state.pool_address != pool.address:
            raise ValueError(
                f"Initial state belongs to {initial_state.pool_address}, not {pool.address}"
            )

        self.pool = pool
        self.keys = keys
        self.gateway = gateway
        self.repository = repository
        self.config = config or TrackerConfig()
        self.publisher = publisher
        self.clock = clock

        self._state = initial_state
        self._status = TrackerStatus.UNINITIALIZED
        self._lifecycle = TrackerLifecycle.IDLE
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._subscription: Optional[LogSubscription] = None
        self._tasks = []

        self._error_handler = ErrorHandler(logger)
        self._write_policy = RetryPolicy(
            attempts=self.config.RETRY_ATTEMPTS,
            timeout=self.config.WRITE_TIMEOUT_SECONDS,
            base_delay=self.config.RETRY_BASE_DELAY_SECONDS,
            max_delay=self.config.RETRY_MAX_DELAY_SECONDS,
        )

    @property
    def address(self) -> str:
        return self.pool.address

    @property
    def status(self) -> TrackerStatus:
        return self._status

    @property
    def lifecycle(self) -> TrackerLifecycle:
        return self._lifecycle

    def snapshot(self) -> ReserveState:
        """Current reserve state; safe to hold, never mutated."""
        return self._state

    async def start(self) -> None:
        """
        Subscribe to pool logs and start both timers.

        Raises:
            RuntimeError: If the tracker was already started
            LedgerError: If the log subscription cannot be established
        """
        if self._lifecycle is not TrackerLifecycle.IDLE:
            raise RuntimeError(f"Tracker for {self.pool.label} is {self._lifecycle.value}")

        self._subscription = await self.gateway.subscribe_logs(self.address, self.handle_log_batch)
        self._tasks = [
            asyncio.create_task(
                self._run_periodically(self.config.RECONCILE_INTERVAL_SECONDS, self.reconcile),
                name=f"reconcile:{self.address}",
            ),
            asyncio.create_task(
                self._run_periodically(self.config.REFRESH_INTERVAL_SECONDS, self.refresh),
                name=f"refresh:{self.address}",
            ),
        ]
        self._lifecycle = TrackerLifecycle.RUNNING
        logger.info(f"Tracking {self.pool.label} ({self.address})")

    async def stop(self) -> None:
        """Stop the subscription and both timers; nothing keeps running afterwards."""
        if self._lifecycle is TrackerLifecycle.STOPPED:
            return

        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self._subscription is not None:
            await self._subscription.unsubscribe()
            self._subscription = None

        self._lifecycle = TrackerLifecycle.STOPPED
        logger.info(f"Stopped tracking {self.pool.label}")

    async def handle_log_batch(self, batch: LogBatch) -> None:
        """Apply the reserves carried by a log notification, if any."""
        if self._stop_event.is_set():
            return

        try:
            reserves = extract_reserves(batch, self.config.RESERVE_LOG_MARKER)
        except DecodeError as e:
            logger.warning(f"Ignoring malformed reserves for {self.pool.label} ({batch.signature}): {e}")
            return

        if reserves is None:
            return

        base_reserve, quote_reserve = reserves
        async with self._lock:
            self._state = self._state.with_reserves(base_reserve, quote_reserve, self._next_timestamp())
            state = self._state
            await self._persist(state, source="event")

    async def reconcile(self) -> bool:
        """Re-persist the current pair, changed or not."""
        async with self._lock:
            self._state = self._state.with_reserves(
                self._state.base_reserve, self._state.quote_reserve, self._next_timestamp()
            )
            return await self._persist(self._state, source="reconcile")

    async def refresh(self) -> bool:
        """Fetch a fresh pool snapshot and persist it with the current pair."""
        try:
            pool_info = await asyncio.wait_for(
                self.gateway.fetch_pool_info(self.keys),
                timeout=self._fetch_timeout(),
            )
        except (LedgerError, asyncio.TimeoutError) as e:
            logger.error(f"Full refresh of {self.pool.label} failed, retrying next tick: {e!r}")
            return False

        async with self._lock:
            self._state = self._state.with_pool_info(pool_info, self._next_timestamp())
            return await self._persist(self._state, source="refresh")

    def _fetch_timeout(self) -> float:
        # The gateway retries internally; only bound the fetch once that has run out
        budget = self.gateway.call_budget if isinstance(self.gateway, LedgerGateway) else 0.0
        return budget + self.config.FETCH_TIMEOUT_SECONDS

    def _next_timestamp(self) -> datetime:
        # Timestamps never move backwards, even if the wall clock does
        return max(self.clock(), self._state.timestamp)

    async def _persist(self, state: ReserveState, source: str) -> bool:
        try:
            await call_with_retry(
                self.repository.upsert_reserve_state,
                self.address,
                state,
                policy=self._write_policy,
                error_handler=self._error_handler,
                description=f"persist {source} reserves for {self.pool.label}",
            )
        except Exception as e:
            logger.error(f"Could not persist {source} reserves for {self.pool.label}: {e!r}")
            return False

        if self._status is TrackerStatus.UNINITIALIZED:
            self._status = TrackerStatus.SYNCED
            logger.info(f"{self.pool.label} synced at {state.base_reserve}/{state.quote_reserve}")

        if self.publisher is not None:
            await self.publisher.apublish_reserve_update(state)
        return True

    async def _run_periodically(self, interval: float, action: Callable[[], Awaitable[bool]]) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                await action()
            except Exception as e:
                logger.error(f"{action.__name__} for {self.pool.label} raised: {e!r}")
