from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.config import TrackerConfig
from src.pools import PoolInfo, PoolKeys, ReserveState, TrackedPool

POOL = "58oQChx4yWmvKdwLLZzBi4ChoCc2fqCUWBkwMihLYQo2"
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class StepClock:
    """Clock that advances one second per call unless set explicitly."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def tracker_config():
    config = TrackerConfig()
    config.RECONCILE_INTERVAL_SECONDS = 5.0
    config.REFRESH_INTERVAL_SECONDS = 300.0
    config.RESERVE_LOG_MARKER = "rb, rq"
    config.RETRY_ATTEMPTS = 3
    config.RETRY_BASE_DELAY_SECONDS = 0.0
    config.RETRY_MAX_DELAY_SECONDS = 0.0
    config.WRITE_TIMEOUT_SECONDS = 1.0
    config.FETCH_TIMEOUT_SECONDS = 1.0
    return config


@pytest.fixture
def pool():
    return TrackedPool(address=POOL, base="SOL", quote="USDC")


@pytest.fixture
def pool_keys():
    return MagicMock(spec=PoolKeys, id=POOL)


@pytest.fixture
def pool_info():
    return PoolInfo(
        base_reserve=1_000_000,
        quote_reserve=2_000_000,
        base_decimals=9,
        quote_decimals=6,
        fee_numerator=25,
        fee_denominator=10000,
        status=6,
        lp_supply=500,
        start_time=1700000000,
    )


@pytest.fixture
def initial_state():
    return ReserveState(POOL, 1_000_000, 2_000_000, T0)


@pytest.fixture
def gateway(pool_keys, pool_info):
    gateway = AsyncMock()
    gateway.resolve_pool_keys.return_value = pool_keys
    gateway.fetch_pool_info.return_value = pool_info
    gateway.subscribe_logs.return_value = AsyncMock()
    return gateway


@pytest.fixture
def repository():
    return AsyncMock()
