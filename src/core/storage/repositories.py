"""
Redis repositories, one per collection.

Layout:
    liquidity:{address}     hash, one reserve state per pool
    liquidity:index         set of pool addresses with a stored state
    dex_pools:{network}     hash, pool address -> {"base", "quote"} JSON
    volume:{asset}          latest traded volume, {"volume": ..., "ts": ...} JSON
    fx:{asset}              latest price, {"price": ..., "ts": ...} JSON
"""

import json
import logging
from typing import List, Optional

from src.pools import ReserveState, TrackedPool

from .base import (
    DataError,
    MarketDataInterface,
    PersistenceError,
    PoolCatalogInterface,
    ReserveStateStorageInterface,
    StorageError,
)
from .redis import RedisStorage

logger = logging.getLogger(__name__)


class ReserveStateRepository(ReserveStateStorageInterface):
    """Reserve state records keyed by pool address."""

    def __init__(self, redis: RedisStorage, prefix: str = "liquidity"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, address: str) -> str:
        return f"{self.prefix}:{address}"

    @property
    def index_key(self) -> str:
        return f"{self.prefix}:index"

    async def upsert_reserve_state(self, address: str, state: ReserveState) -> None:
        """
        Create or replace the stored reserve state of a pool.

        Snapshot fields from an earlier full refresh are left in place when
        `state` carries no PoolInfo.

        Raises:
            PersistenceError: If the write fails
        """
        if state.pool_address != address:
            raise ValueError(f"State for {state.pool_address} cannot be stored under {address}")

        try:
            await self.redis.hset_mapping(self._key(address), state.to_record())
            await self.redis.sadd(self.index_key, address)
        except StorageError as e:
            raise PersistenceError(f"Failed to persist reserve state for {address}: {e}") from e

        logger.debug(f"Persisted reserves for {address}: {state.base_reserve}/{state.quote_reserve}")

    async def get_reserve_state(self, address: str) -> Optional[ReserveState]:
        record = await self.redis.hgetall(self._key(address))
        if not record:
            return None

        try:
            return ReserveState.from_record(record)
        except (KeyError, ValueError) as e:
            raise DataError(f"Malformed reserve state for {address}: {e}") from e

    async def list_reserve_states(self) -> List[ReserveState]:
        addresses = sorted(await self.redis.smembers(self.index_key))

        states = []
        for address in addresses:
            state = await self.get_reserve_state(address)
            if state is None:
                logger.warning(f"Index lists {address} but no reserve state is stored")
                continue
            states.append(state)
        return states


class PoolCatalogRepository(PoolCatalogInterface):
    """Catalog of monitored pools per network."""

    def __init__(self, redis: RedisStorage, prefix: str = "dex_pools"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, network: str) -> str:
        return f"{self.prefix}:{network}"

    async def list_tracked_pools(self, network: str) -> List[TrackedPool]:
        rows = await self.redis.hgetall(self._key(network))

        pools = []
        for address, raw in sorted(rows.items()):
            try:
                row = json.loads(raw)
                pools.append(TrackedPool(address=address, base=row["base"], quote=row["quote"], network=network))
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed catalog row for {address}: {e}")

        logger.info(f"Loaded {len(pools)} tracked pools for {network}")
        return pools

    async def add_tracked_pool(self, pool: TrackedPool) -> bool:
        """
        Add or update a catalog row.

        Returns:
            bool: True if the pool was not cataloged before
        """
        row = json.dumps({"base": pool.base, "quote": pool.quote})
        created = await self.redis.hset_mapping(self._key(pool.network), {pool.address: row})
        return created > 0


class MarketDataRepository(MarketDataInterface):
    """Latest market statistics per asset."""

    def __init__(self, redis: RedisStorage, volume_prefix: str = "volume", fx_prefix: str = "fx"):
        self.redis = redis
        self.volume_prefix = volume_prefix
        self.fx_prefix = fx_prefix

    async def _latest(self, key: str, field: str) -> Optional[float]:
        value = await self.redis.get(key)
        if value is None:
            return None

        if isinstance(value, dict):
            value = value.get(field)
            if value is None:
                raise DataError(f"{key} has no '{field}' field")

        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise DataError(f"{key} holds a non-numeric {field}: {value!r}") from e

    async def latest_volume(self, asset: str) -> Optional[float]:
        return await self._latest(f"{self.volume_prefix}:{asset}", "volume")

    async def latest_fx_rate(self, asset: str) -> Optional[float]:
        return await self._latest(f"{self.fx_prefix}:{asset}", "price")
