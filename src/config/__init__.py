"""
Configuration management for raydiumReserves.

Use get_config() to access all configuration settings.

Example:
    from src.config import get_config

    config = get_config()

    # Ledger endpoints
    rpc_url = config.ledger.get_rpc_url()

    # Redis settings
    redis_kwargs = config.database.get_redis_connection_kwargs()

    # Tracker timers
    interval = config.tracker.RECONCILE_INTERVAL_SECONDS
"""

from .alerts import AlertConfig
from .base import BaseConfig, ConfigError
from .database import DatabaseConfig
from .ledger import DEVNET, MAINNET, LedgerConfig
from .manager import ConfigManager, get_config, reload_config
from .nats_config import NatsConfig
from .tracker import TrackerConfig

__all__ = [
    "AlertConfig",
    "BaseConfig",
    "ConfigError",
    "DatabaseConfig",
    "LedgerConfig",
    "MAINNET",
    "DEVNET",
    "NatsConfig",
    "TrackerConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
