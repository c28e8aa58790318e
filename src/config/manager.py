"""
Configuration manager for raydiumReserves.

This module provides a centralized way to access all configuration settings
across the application. It combines all configuration classes into a single
easy-to-use interface.
"""

import logging
from typing import Dict, Any
from .base import BaseConfig, ConfigError
from .database import DatabaseConfig
from .ledger import LedgerConfig
from .nats_config import NatsConfig
from .tracker import TrackerConfig
from .alerts import AlertConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Centralized configuration manager that combines all configuration classes.

    This class provides easy access to all configuration settings and ensures
    that configurations are properly initialized and validated.
    """

    def __init__(self, environment: str = None, network: str = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, dev, staging, production)
            network: Override the ledger network (mainnet-beta, devnet)
        """
        self._environment = environment
        self._network = network
        self._base_config = None
        self._database_config = None
        self._ledger_config = None
        self._nats_config = None
        self._tracker_config = None
        self._alert_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        """Initialize all configuration objects."""
        try:
            # Initialize base configuration first
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment

            self._database_config = DatabaseConfig()
            self._ledger_config = LedgerConfig()
            if self._network:
                self._ledger_config.LEDGER_NETWORK = self._network
            self._nats_config = NatsConfig()
            self._tracker_config = TrackerConfig()
            self._alert_config = AlertConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        """Get base configuration."""
        return self._base_config

    @property
    def database(self) -> DatabaseConfig:
        """Get database configuration."""
        return self._database_config

    @property
    def ledger(self) -> LedgerConfig:
        """Get ledger configuration."""
        return self._ledger_config

    @property
    def nats(self) -> NatsConfig:
        """Get NATS configuration."""
        return self._nats_config

    @property
    def tracker(self) -> TrackerConfig:
        """Get tracker and pricing configuration."""
        return self._tracker_config

    @property
    def alerts(self) -> AlertConfig:
        """Get alert configuration."""
        return self._alert_config

    def get_nats_publishing_config(self) -> Dict[str, Any]:
        """
        Get NATS publishing configuration for reserve updates.

        Returns:
            NATS configuration dictionary
        """
        return {
            "enabled": self.nats.NATS_ENABLED,
            "url": self.nats.get_nats_url(self.environment),
            "stream_name": self.nats.STREAM_NAME,
            "subjects": self.nats.reserve_subjects,
            "connection_params": self.nats.connection_params,
        }

    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Returns:
            True if all configurations are valid

        Raises:
            ConfigError: If any configuration is invalid
        """
        try:
            self.ledger.get_network_config()

            if self.tracker.REFRESH_INTERVAL_SECONDS < self.tracker.RECONCILE_INTERVAL_SECONDS:
                raise ConfigError(
                    "REFRESH_INTERVAL_SECONDS must not be shorter than RECONCILE_INTERVAL_SECONDS"
                )

            if self.alerts.ALERTS_ENABLED and not self.alerts.telegram_configured:
                logger.warning("Alerts enabled but TG_TOKEN/TG_GROUP not set, alerts will only be logged")

            logger.info("Configuration validation successful")
            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigError(f"Configuration validation failed: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert all configurations to dictionary format."""
        return {
            "environment": self.environment,
            "base": self.base.to_dict() if self.base else {},
            "database": self.database.to_dict() if self.database else {},
            "ledger": self.ledger.to_dict() if self.ledger else {},
            "nats": self.nats.to_dict() if self.nats else {},
            "tracker": self.tracker.to_dict() if self.tracker else {},
        }

    def __repr__(self) -> str:
        """String representation of the configuration manager."""
        return f"ConfigManager(environment={self.environment}, network={self.ledger.LEDGER_NETWORK})"


# Global configuration manager instance
_config_manager = None


def get_config(environment: str = None, network: str = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        network: Override ledger network
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment, network=network)
        _config_manager.validate_configuration()

    return _config_manager


def reload_config(environment: str = None, network: str = None) -> ConfigManager:
    """
    Reload the global configuration manager.

    Args:
        environment: Override environment
        network: Override ledger network

    Returns:
        New ConfigManager instance
    """
    return get_config(environment=environment, network=network, force_reload=True)
