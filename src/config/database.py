"""
Database configuration for raydiumReserves.
"""

from dataclasses import dataclass
from typing import Optional

from .base import BaseConfig


@dataclass
class DatabaseConfig(BaseConfig):
    """Redis connection and key layout configuration."""

    # Redis Configuration
    REDIS_HOST: str = BaseConfig.get_env("REDIS_HOST", "localhost")
    REDIS_PORT: int = BaseConfig.get_env_int("REDIS_PORT", 6379)
    REDIS_PASSWORD: Optional[str] = BaseConfig.get_env("REDIS_PASSWORD") or None
    REDIS_DB: int = BaseConfig.get_env_int("REDIS_DB", 0)

    CONNECTION_TIMEOUT: int = BaseConfig.get_env_int("CONNECTION_TIMEOUT", 30)

    # Key Naming
    RESERVE_STATE_PREFIX: str = BaseConfig.get_env("RESERVE_STATE_PREFIX", "liquidity")
    POOL_CATALOG_PREFIX: str = BaseConfig.get_env("POOL_CATALOG_PREFIX", "dex_pools")
    VOLUME_PREFIX: str = BaseConfig.get_env("VOLUME_PREFIX", "volume")
    FX_PREFIX: str = BaseConfig.get_env("FX_PREFIX", "fx")

    def get_redis_connection_kwargs(self) -> dict:
        """Get Redis connection parameters."""
        kwargs = {
            "host": self.REDIS_HOST,
            "port": self.REDIS_PORT,
            "db": self.REDIS_DB,
            "decode_responses": True,
            "socket_timeout": self.CONNECTION_TIMEOUT,
            "socket_connect_timeout": self.CONNECTION_TIMEOUT,
        }

        # Only add password if it's actually set and not empty/whitespace
        if self.REDIS_PASSWORD and self.REDIS_PASSWORD.strip():
            kwargs["password"] = self.REDIS_PASSWORD.strip()

        return kwargs
