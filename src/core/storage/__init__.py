"""
Storage layer for the reserve tracker.

Redis holds the reserve state of every tracked pool, the pool catalog and
the latest market statistics. Each collection is reached through its own
repository.

Usage:
    from src.core.storage import StorageManager

    async with StorageManager() as storage:
        state = await storage.reserves.get_reserve_state(address)
"""

from .base import ConnectionError, DataError, PersistenceError, StorageBase, StorageError
from .manager import StorageManager
from .redis import RedisStorage
from .repositories import MarketDataRepository, PoolCatalogRepository, ReserveStateRepository

__all__ = [
    "StorageBase",
    "StorageError",
    "ConnectionError",
    "DataError",
    "PersistenceError",
    "RedisStorage",
    "StorageManager",
    "ReserveStateRepository",
    "PoolCatalogRepository",
    "MarketDataRepository",
]
