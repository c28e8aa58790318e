"""
Storage manager that provides unified access to the repositories.
"""

import logging
from typing import Any, Dict, Optional

from src.config import ConfigManager
from .base import ConnectionError
from .redis import RedisStorage
from .repositories import MarketDataRepository, PoolCatalogRepository, ReserveStateRepository

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Unified storage manager for the reserve tracker.
    
    Owns the Redis connection and exposes one repository per collection.
    An unreachable backend is fatal: `initialize` raises instead of
    running without persistence.
    
    Usage:
        async with StorageManager() as storage:
            pools = await storage.catalog.list_tracked_pools('solana')
            await storage.reserves.upsert_reserve_state(address, state)
            volume = await storage.market_data.latest_volume('BTC')
    """
    
    def __init__(self, config: Optional[ConfigManager] = None, redis: Optional[RedisStorage] = None):
        """
        Initialize storage manager.
        
        Args:
            config: Configuration manager instance (creates default if None)
            redis: Redis backend to use instead of one built from config
        """
        self.config = config or ConfigManager()
        self.redis = redis or RedisStorage(self._get_redis_config())

        database = self.config.database
        self.reserves = ReserveStateRepository(self.redis, prefix=database.RESERVE_STATE_PREFIX)
        self.catalog = PoolCatalogRepository(self.redis, prefix=database.POOL_CATALOG_PREFIX)
        self.market_data = MarketDataRepository(
            self.redis, volume_prefix=database.VOLUME_PREFIX, fx_prefix=database.FX_PREFIX
        )
        
        self.is_initialized = False
        
    def _get_redis_config(self) -> Dict[str, Any]:
        """Get Redis configuration from config manager."""
        return self.config.database.get_redis_connection_kwargs()
        
    async def initialize(self) -> None:
        """
        Connect to the backend.

        Raises:
            ConnectionError: If Redis is unreachable
        """
        if self.is_initialized:
            logger.warning("Storage manager already initialized")
            return
            
        try:
            await self.redis.connect()
        except ConnectionError:
            logger.error("Persistence backend unreachable, refusing to start")
            raise

        self.is_initialized = True
        logger.info("Storage manager initialized")
            
    async def shutdown(self) -> None:
        """Close the backend connection."""
        if not self.is_initialized:
            return
            
        try:
            await self.redis.disconnect()
            logger.info("Storage manager shutdown successfully")
        except Exception as e:
            logger.error(f"Error during storage manager shutdown: {e}")
        finally:
            self.is_initialized = False
            
    async def health_check(self) -> Dict[str, bool]:
        """
        Check health of the storage backend.
        
        Returns:
            Dictionary mapping backend name to health status
        """
        results = {'redis': await self.redis.health_check()}
        results['healthy'] = all(results.values())
        return results
        
    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self
        
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.shutdown()
