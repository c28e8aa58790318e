"""
Redis storage implementation for reserve state and market data.
"""

import json
import logging
from typing import Any, Dict, Optional, Set

import redis.asyncio as redis
from redis.asyncio import Redis

from .base import (
    StorageBase,
    ConnectionError,
    DataError
)

logger = logging.getLogger(__name__)


class RedisStorage(StorageBase):
    """
    Redis storage implementation.
    
    Features:
    - JSON-decoded reads of market data keys
    - Hash records for per-pool reserve state
    - Sets for key indexes
    """
    
    def __init__(self, config: Dict[str, Any], client: Optional[Redis] = None):
        """
        Initialize Redis storage.
        
        Args:
            config: Configuration with keys:
                - host: Redis host
                - port: Redis port
                - password: Redis password (optional)
                - db: Redis database number (default: 0)
                - decode_responses: Whether to decode responses (default: True)
                - socket_timeout: Socket timeout in seconds (default: 5)
                - connection_pool_kwargs: Additional connection pool arguments
            client: Pre-built client, used instead of opening a pool
        """
        super().__init__(config)
        self.client: Optional[Redis] = client
        
    async def connect(self) -> None:
        """Establish connection to Redis."""
        try:
            if self.client is None:
                # Build connection pool kwargs
                pool_kwargs = {
                    'host': self.config.get('host', 'localhost'),
                    'port': self.config.get('port', 6379),
                    'db': self.config.get('db', 0),
                    'decode_responses': self.config.get('decode_responses', True),
                    'socket_timeout': self.config.get('socket_timeout', 5),
                    **self.config.get('connection_pool_kwargs', {})
                }

                # Only add password if it's actually set
                password = self.config.get('password')
                if password is not None:
                    pool_kwargs['password'] = password

                pool = redis.ConnectionPool(**pool_kwargs)
                self.client = redis.Redis(connection_pool=pool)
            
            # Test connection
            await self.client.ping()
            
            self.is_connected = True
            logger.info("Redis connection established")
            
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise ConnectionError(f"Redis connection failed: {e}")
            
    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            
        self.is_connected = False
        logger.info("Redis connection closed")
        
    async def health_check(self) -> bool:
        """Check Redis connection health."""
        if not self.client:
            return False
            
        try:
            response = await self.client.ping()
            return response is True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False
            
    def _require_client(self) -> Redis:
        if not self.client:
            raise ConnectionError("Not connected to Redis")
        return self.client

    # Key-value reads

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a value, JSON-decoded when possible.
        
        Args:
            key: Key
            
        Returns:
            Value or None if not found
        """
        client = self._require_client()
            
        try:
            value = await client.get(key)
            
            if value is None:
                return None
                
            # Try to deserialize JSON
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value
                
        except Exception as e:
            logger.error(f"Failed to get key {key}: {e}")
            raise DataError(f"Get failed: {e}")
            
    # Hash and set operations

    async def hset_mapping(self, key: str, mapping: Dict[str, str]) -> int:
        """
        Write several fields of a hash at once.

        Returns:
            int: Number of fields that were newly created
        """
        client = self._require_client()

        try:
            return await client.hset(key, mapping=mapping)

        except Exception as e:
            logger.error(f"Failed to write hash {key}: {e}")
            raise DataError(f"Hash set failed: {e}")

    async def hgetall(self, key: str) -> Dict[str, str]:
        """Get every field of a hash, empty if the key does not exist."""
        client = self._require_client()

        try:
            return await client.hgetall(key)

        except Exception as e:
            logger.error(f"Failed to read hash {key}: {e}")
            raise DataError(f"Hash get failed: {e}")

    async def sadd(self, key: str, *members: str) -> int:
        client = self._require_client()

        try:
            return await client.sadd(key, *members)

        except Exception as e:
            logger.error(f"Failed to add to set {key}: {e}")
            raise DataError(f"Set add failed: {e}")

    async def smembers(self, key: str) -> Set[str]:
        client = self._require_client()

        try:
            return await client.smembers(key)

        except Exception as e:
            logger.error(f"Failed to read set {key}: {e}")
            raise DataError(f"Set read failed: {e}")
