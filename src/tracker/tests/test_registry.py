"""Tests for the tracker registry and bootstrap."""
import pytest
from unittest.mock import AsyncMock

from src.ledger import AccountNotFoundError
from src.pools import ReserveState, TrackedPool
from src.tracker import ReserveTrackerRegistry, TrackerLifecycle, TrackerStatus

OTHER_POOL = "7XawhbbxtsRcQA8KTkHT9f9nc6d69UwqCDh6U5EEbEmX"


@pytest.fixture
def catalog():
    return AsyncMock()


@pytest.fixture
def alert_sink():
    return AsyncMock()


@pytest.fixture
def registry(gateway, repository, catalog, alert_sink, tracker_config, clock):
    return ReserveTrackerRegistry(
        gateway, repository, catalog, alert_sink, config=tracker_config, clock=clock
    )


class TestReserveTrackerRegistry:
    """Test cases for ReserveTrackerRegistry."""

    @pytest.mark.asyncio
    async def test_register_uses_persisted_state(
        self, registry, pool, repository, initial_state, gateway, alert_sink
    ):
        stored = initial_state.with_reserves(1_000_900, 1_998_100, initial_state.timestamp)
        repository.get_reserve_state.return_value = stored

        tracker = await registry.register(pool)

        assert tracker.snapshot() == stored
        assert registry.get(pool.address) is tracker
        gateway.fetch_pool_info.assert_not_called()
        repository.upsert_reserve_state.assert_not_called()
        alert_sink.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_bootstraps_missing_state(
        self, registry, pool, repository, gateway, alert_sink, pool_info, pool_keys
    ):
        repository.get_reserve_state.return_value = None

        tracker = await registry.register(pool)

        gateway.resolve_pool_keys.assert_awaited_once_with(pool.address)
        gateway.fetch_pool_info.assert_awaited_once_with(pool_keys)
        state = tracker.snapshot()
        assert state.reserves == (pool_info.base_reserve, pool_info.quote_reserve)
        assert state.pool_info == pool_info
        repository.upsert_reserve_state.assert_awaited_once_with(pool.address, state)
        assert tracker.status is TrackerStatus.SYNCED
        alert_sink.send_alert.assert_awaited_once_with("Liquidity State Updated for: SOL/USDC")

    @pytest.mark.asyncio
    async def test_bootstrap_write_failure_skips_alert(self, registry, pool, repository, alert_sink):
        repository.get_reserve_state.return_value = None
        repository.upsert_reserve_state.side_effect = Exception("READONLY")

        tracker = await registry.register(pool)

        assert tracker.status is TrackerStatus.UNINITIALIZED
        alert_sink.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_twice_returns_same_tracker(self, registry, pool, repository, initial_state):
        repository.get_reserve_state.return_value = initial_state

        first = await registry.register(pool)
        second = await registry.register(pool)

        assert first is second
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_start_all_from_catalog(self, registry, catalog, pool, repository, initial_state):
        catalog.list_tracked_pools.return_value = [pool]
        repository.get_reserve_state.return_value = initial_state

        started = await registry.start_all("solana")

        catalog.list_tracked_pools.assert_awaited_once_with("solana")
        assert [tracker.address for tracker in started] == [pool.address]
        assert started[0].lifecycle is TrackerLifecycle.RUNNING

        await registry.stop_all()
        assert started[0].lifecycle is TrackerLifecycle.STOPPED
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_one_failing_pool_does_not_block_others(
        self, registry, gateway, pool, repository, initial_state, pool_keys
    ):
        broken = TrackedPool(address=OTHER_POOL, base="RAY", quote="USDC")

        async def resolve(address):
            if address == OTHER_POOL:
                raise AccountNotFoundError(f"Account {address} not found")
            return pool_keys

        gateway.resolve_pool_keys.side_effect = resolve
        repository.get_reserve_state.return_value = initial_state

        started = await registry.start_all("solana", pools=[pool, broken])

        assert [tracker.address for tracker in started] == [pool.address]
        assert registry.get(OTHER_POOL) is None
        await registry.stop_all()

    @pytest.mark.asyncio
    async def test_start_all_starts_duplicate_pool_once(
        self, registry, gateway, pool, repository, initial_state
    ):
        repository.get_reserve_state.return_value = initial_state

        started = await registry.start_all("solana", pools=[pool, pool])

        assert [tracker.address for tracker in started] == [pool.address]
        assert len(registry) == 1
        assert started[0].lifecycle is TrackerLifecycle.RUNNING
        gateway.subscribe_logs.assert_awaited_once()
        await registry.stop_all()

    @pytest.mark.asyncio
    async def test_deregister(self, registry, pool, repository, initial_state):
        repository.get_reserve_state.return_value = initial_state
        await registry.start_all("solana", pools=[pool])
        tracker = registry.get(pool.address)

        assert await registry.deregister(pool.address)
        assert tracker.lifecycle is TrackerLifecycle.STOPPED
        assert not await registry.deregister(pool.address)

    @pytest.mark.asyncio
    async def test_snapshots(self, registry, pool, repository, initial_state):
        repository.get_reserve_state.return_value = initial_state
        await registry.register(pool)

        snapshots = registry.snapshots()

        assert snapshots == {pool.address: initial_state}
        assert isinstance(snapshots[pool.address], ReserveState)
