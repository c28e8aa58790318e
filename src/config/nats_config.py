"""
NATS configuration for raydiumReserves.
"""

from dataclasses import dataclass
from typing import Dict, List

from .base import BaseConfig


@dataclass
class NatsConfig(BaseConfig):
    """NATS messaging configuration."""

    # NATS Connection Settings
    NATS_ENABLED: bool = BaseConfig.get_env_bool("NATS_ENABLED", False)
    NATS_URL_LOCAL: str = BaseConfig.get_env("NATS_URL_LOCAL", "nats://localhost:4222")
    NATS_URL_DEV: str = BaseConfig.get_env("NATS_URL_DEV", "nats://nats:4222")
    NATS_URL_PRODUCTION: str = BaseConfig.get_env(
        "NATS_URL_PRODUCTION", "nats://nats-server:4222"
    )

    # Connection Parameters
    NATS_TIMEOUT: int = BaseConfig.get_env_int("NATS_TIMEOUT", 30)
    NATS_MAX_RECONNECT_ATTEMPTS: int = BaseConfig.get_env_int(
        "NATS_MAX_RECONNECT_ATTEMPTS", 60
    )
    NATS_RECONNECT_TIME_WAIT: int = BaseConfig.get_env_int(
        "NATS_RECONNECT_TIME_WAIT", 2
    )

    # JetStream Configuration
    STREAM_NAME: str = BaseConfig.get_env("STREAM_NAME", "RESERVE_UPDATES")
    SUBJECT_PREFIX: str = BaseConfig.get_env("NATS_SUBJECT_PREFIX", "reserves")

    @property
    def nats_urls(self) -> Dict[str, str]:
        """Get NATS URLs for different environments."""
        return {
            "local": self.NATS_URL_LOCAL,
            "dev": self.NATS_URL_DEV,
            "staging": self.NATS_URL_DEV,  # Use dev for staging
            "production": self.NATS_URL_PRODUCTION,
        }

    def get_nats_url(self, environment: str = None) -> str:
        """Get NATS URL for the current or specified environment."""
        env = environment or self.ENVIRONMENT
        return self.nats_urls.get(env, self.NATS_URL_LOCAL)

    @property
    def reserve_subjects(self) -> List[str]:
        """Subjects captured by the reserve update stream."""
        return [f"{self.SUBJECT_PREFIX}.>"]

    def get_reserve_subject(self, network: str, pool_address: str) -> str:
        """Get the subject a pool's reserve updates are published on."""
        return f"{self.SUBJECT_PREFIX}.{network.lower()}.{pool_address}"

    def get_pool_from_subject(self, subject: str) -> str:
        """Extract the pool address from a reserve subject."""
        if subject.startswith(f"{self.SUBJECT_PREFIX}."):
            return subject.split(".")[-1]
        return None

    @property
    def connection_params(self) -> Dict:
        """Get NATS connection parameters."""
        return {
            "servers": [self.get_nats_url()],
            "max_reconnect_attempts": self.NATS_MAX_RECONNECT_ATTEMPTS,
            "reconnect_time_wait": self.NATS_RECONNECT_TIME_WAIT,
            "allow_reconnect": True,
            "connect_timeout": self.NATS_TIMEOUT,
        }
