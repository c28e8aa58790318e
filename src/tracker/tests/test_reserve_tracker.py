"""Tests for the per-pool reserve tracker."""
import asyncio
from datetime import timedelta

import pytest
from unittest.mock import AsyncMock

from src.core.storage import PersistenceError
from src.ledger import FetchError, GatewayConfig, LedgerGateway
from src.pools import LogBatch
from src.tracker import ReserveTracker, TrackerLifecycle, TrackerStatus


@pytest.fixture
def tracker(pool, pool_keys, initial_state, gateway, repository, tracker_config, clock):
    return ReserveTracker(
        pool, pool_keys, initial_state, gateway, repository, config=tracker_config, clock=clock
    )


def reserve_batch(base, quote, **kwargs):
    return LogBatch(
        lines=[
            "Program 675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8 invoke [1]",
            f"Program log: rb, rq: {base}, {quote}",
            "Program 675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8 success",
        ],
        **kwargs,
    )


class HangingGateway(LedgerGateway):
    """Gateway whose RPC never answers; counts attempts made by its retry policy."""

    def __init__(self, config):
        super().__init__(config)
        self.attempts = 0

    async def _hang(self):
        self.attempts += 1
        await asyncio.Event().wait()

    async def resolve_pool_keys(self, address):
        raise NotImplementedError

    async def fetch_pool_info(self, keys):
        return await self._retry_operation(self._hang, description="get_multiple_accounts")

    async def subscribe_logs(self, address, on_batch):
        raise NotImplementedError


class TestLogBatchHandling:
    """Test cases for event-driven updates."""

    @pytest.mark.asyncio
    async def test_marker_line_replaces_pair_and_persists(self, tracker, repository, pool):
        await tracker.handle_log_batch(reserve_batch(1_000_500, 1_999_001))

        state = tracker.snapshot()
        assert state.reserves == (1_000_500, 1_999_001)
        repository.upsert_reserve_state.assert_awaited_once_with(pool.address, state)
        assert tracker.status is TrackerStatus.SYNCED

    @pytest.mark.asyncio
    async def test_unmatched_batch_is_noop(self, tracker, repository, initial_state):
        await tracker.handle_log_batch(LogBatch(lines=["Program log: ray_log: AAAA"]))

        assert tracker.snapshot() is initial_state
        repository.upsert_reserve_state.assert_not_called()
        assert tracker.status is TrackerStatus.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_malformed_batch_is_noop(self, tracker, repository, initial_state):
        await tracker.handle_log_batch(LogBatch(lines=["Program log: rb, rq: abc, 12"]))

        assert tracker.snapshot() is initial_state
        repository.upsert_reserve_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_transaction_is_ignored(self, tracker, repository, initial_state):
        await tracker.handle_log_batch(reserve_batch(1, 2, err={"InstructionError": [0, "Custom"]}))

        assert tracker.snapshot() is initial_state
        repository.upsert_reserve_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_unchanged_values_are_still_written(self, tracker, repository, initial_state):
        await tracker.handle_log_batch(reserve_batch(*initial_state.reserves))

        repository.upsert_reserve_state.assert_awaited_once()
        assert tracker.snapshot().reserves == initial_state.reserves

    @pytest.mark.asyncio
    async def test_structured_reserves(self, tracker):
        await tracker.handle_log_batch(LogBatch(lines=[], reserves=(42, 43)))

        assert tracker.snapshot().reserves == (42, 43)

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_new_pair(self, tracker, repository):
        """A failed write is logged; the pair is kept for the next write."""
        repository.upsert_reserve_state.side_effect = PersistenceError("Hash set failed")

        await tracker.handle_log_batch(reserve_batch(5, 6))

        assert tracker.snapshot().reserves == (5, 6)
        assert repository.upsert_reserve_state.await_count == 3
        assert tracker.status is TrackerStatus.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_transient_write_failure_is_retried(self, tracker, repository):
        repository.upsert_reserve_state.side_effect = [PersistenceError("connection reset"), None]

        await tracker.handle_log_batch(reserve_batch(5, 6))

        assert repository.upsert_reserve_state.await_count == 2
        assert tracker.status is TrackerStatus.SYNCED

    @pytest.mark.asyncio
    async def test_publishes_after_write(
        self, pool, pool_keys, initial_state, gateway, repository, tracker_config, clock
    ):
        publisher = AsyncMock()
        tracker = ReserveTracker(
            pool, pool_keys, initial_state, gateway, repository,
            config=tracker_config, publisher=publisher, clock=clock,
        )

        await tracker.handle_log_batch(reserve_batch(5, 6))

        publisher.apublish_reserve_update.assert_awaited_once_with(tracker.snapshot())


class TestReconcileAndRefresh:
    """Test cases for the timer-driven paths."""

    @pytest.mark.asyncio
    async def test_reconcile_writes_current_pair(self, tracker, repository, initial_state):
        assert await tracker.reconcile()
        assert await tracker.reconcile()

        written = [call.args[1] for call in repository.upsert_reserve_state.await_args_list]
        assert [state.reserves for state in written] == [initial_state.reserves] * 2
        assert written[0].timestamp < written[1].timestamp

    @pytest.mark.asyncio
    async def test_reconcile_failure_returns_false(self, tracker, repository):
        repository.upsert_reserve_state.side_effect = PersistenceError("Hash set failed")

        assert await tracker.reconcile() is False

    @pytest.mark.asyncio
    async def test_refresh_stores_snapshot_without_touching_pair(
        self, tracker, gateway, repository, pool_keys, pool_info
    ):
        await tracker.handle_log_batch(reserve_batch(1_000_700, 1_998_000))

        assert await tracker.refresh()

        gateway.fetch_pool_info.assert_awaited_once_with(pool_keys)
        state = tracker.snapshot()
        assert state.pool_info == pool_info
        assert state.reserves == (1_000_700, 1_998_000)
        assert repository.upsert_reserve_state.await_args.args[1] == state

    @pytest.mark.asyncio
    async def test_refresh_fetch_failure_keeps_state(self, tracker, gateway, repository, initial_state):
        gateway.fetch_pool_info.side_effect = FetchError("get_multiple_accounts failed")

        assert await tracker.refresh() is False

        assert tracker.snapshot() is initial_state
        repository.upsert_reserve_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_lets_gateway_exhaust_its_retries(
        self, pool, pool_keys, initial_state, repository, tracker_config, clock
    ):
        gateway = HangingGateway(
            GatewayConfig(max_retries=3, retry_delay=0.0, max_retry_delay=0.0, timeout=0.05)
        )
        tracker_config.FETCH_TIMEOUT_SECONDS = 0.05
        tracker = ReserveTracker(
            pool, pool_keys, initial_state, gateway, repository, config=tracker_config, clock=clock
        )

        assert await tracker.refresh() is False

        assert gateway.attempts == 3
        assert tracker.snapshot() is initial_state

    @pytest.mark.asyncio
    async def test_timestamps_never_decrease(self, tracker, clock, initial_state):
        clock.now = initial_state.timestamp - timedelta(hours=1)

        await tracker.reconcile()

        assert tracker.snapshot().timestamp == initial_state.timestamp


class TestLifecycle:
    """Test cases for start/stop and concurrency."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, tracker, gateway, pool):
        await tracker.start()

        assert tracker.lifecycle is TrackerLifecycle.RUNNING
        gateway.subscribe_logs.assert_awaited_once_with(pool.address, tracker.handle_log_batch)
        tasks = list(tracker._tasks)
        assert len(tasks) == 2

        await tracker.stop()

        assert tracker.lifecycle is TrackerLifecycle.STOPPED
        assert all(task.done() for task in tasks)
        gateway.subscribe_logs.return_value.unsubscribe.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, tracker):
        await tracker.start()
        try:
            with pytest.raises(RuntimeError):
                await tracker.start()
        finally:
            await tracker.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, tracker, gateway):
        await tracker.start()
        await tracker.stop()
        await tracker.stop()

        gateway.subscribe_logs.return_value.unsubscribe.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_batches_after_stop_are_ignored(self, tracker, repository):
        await tracker.start()
        await tracker.stop()

        await tracker.handle_log_batch(reserve_batch(5, 6))

        repository.upsert_reserve_state.assert_not_called()

    @pytest.mark.asyncio
    async def test_timers_fire(self, tracker, tracker_config, gateway, repository):
        tracker_config.RECONCILE_INTERVAL_SECONDS = 0.01
        tracker_config.REFRESH_INTERVAL_SECONDS = 0.02

        await tracker.start()
        await asyncio.sleep(0.1)
        await tracker.stop()

        assert repository.upsert_reserve_state.await_count >= 2
        assert gateway.fetch_pool_info.await_count >= 1

    @pytest.mark.asyncio
    async def test_writes_are_serialized(self, tracker, repository):
        """Event, reconcile and refresh writes never overlap."""
        in_flight = 0
        max_in_flight = 0

        async def slow_upsert(address, state):
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        repository.upsert_reserve_state.side_effect = slow_upsert

        await asyncio.gather(
            tracker.handle_log_batch(reserve_batch(5, 6)),
            tracker.reconcile(),
            tracker.refresh(),
            tracker.handle_log_batch(reserve_batch(7, 8)),
        )

        assert max_in_flight == 1
        assert repository.upsert_reserve_state.await_count == 4
        assert tracker.snapshot().reserves in {(5, 6), (7, 8)}
