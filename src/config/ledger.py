"""
Ledger (Solana cluster) configuration for raydiumReserves.
"""

from dataclasses import dataclass
from typing import Dict

from .base import BaseConfig, ConfigError

MAINNET = "mainnet-beta"
DEVNET = "devnet"
COMMITMENT_LEVELS = ["processed", "confirmed", "finalized"]


@dataclass
class LedgerConfig(BaseConfig):
    """Cluster endpoints and RPC behaviour for the Solana ledger."""

    # Cluster selector (production / test ledger)
    LEDGER_NETWORK: str = BaseConfig.get_env("LEDGER_NETWORK", MAINNET)

    # RPC endpoints
    MAINNET_RPC_URL: str = BaseConfig.get_env(
        "MAINNET_RPC_URL", "https://api.mainnet-beta.solana.com"
    )
    MAINNET_WS_URL: str = BaseConfig.get_env(
        "MAINNET_WS_URL", "wss://api.mainnet-beta.solana.com"
    )
    DEVNET_RPC_URL: str = BaseConfig.get_env("DEVNET_RPC_URL", "https://api.devnet.solana.com")
    DEVNET_WS_URL: str = BaseConfig.get_env("DEVNET_WS_URL", "wss://api.devnet.solana.com")

    COMMITMENT: str = BaseConfig.get_env_choice(
        "LEDGER_COMMITMENT", "confirmed", COMMITMENT_LEVELS
    )

    # Request settings
    RPC_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("RPC_TIMEOUT_SECONDS", 10.0)
    MAX_RETRY_ATTEMPTS: int = BaseConfig.get_env_int("MAX_RETRY_ATTEMPTS", 3)
    RETRY_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_DELAY_SECONDS", 1.0)
    RECONNECT_MAX_DELAY_SECONDS: float = BaseConfig.get_env_float(
        "RECONNECT_MAX_DELAY_SECONDS", 60.0
    )

    # Network name used by the pool catalog
    CATALOG_NETWORK: str = BaseConfig.get_env("CATALOG_NETWORK", "solana")

    @property
    def supported_networks(self) -> Dict[str, Dict]:
        """Get configuration for all supported clusters."""
        return {
            MAINNET: {
                "rpc_url": self.MAINNET_RPC_URL,
                "ws_url": self.MAINNET_WS_URL,
                "explorer_url": "https://solscan.io",
            },
            DEVNET: {
                "rpc_url": self.DEVNET_RPC_URL,
                "ws_url": self.DEVNET_WS_URL,
                "explorer_url": "https://solscan.io/?cluster=devnet",
            },
        }

    def get_network_config(self, network: str = None) -> Dict:
        """Get configuration for a specific cluster (defaults to LEDGER_NETWORK)."""
        network = network or self.LEDGER_NETWORK
        if network not in self.supported_networks:
            raise ValueError(f"Unsupported network: {network}")
        return self.supported_networks[network]

    def get_rpc_url(self, network: str = None) -> str:
        """Get RPC URL for a cluster."""
        return self.get_network_config(network)["rpc_url"]

    def get_ws_url(self, network: str = None) -> str:
        """Get websocket URL for a cluster."""
        return self.get_network_config(network)["ws_url"]

    def _validate_config(self):
        super()._validate_config()
        if self.LEDGER_NETWORK not in (MAINNET, DEVNET):
            raise ConfigError(f"Invalid ledger network: {self.LEDGER_NETWORK}")
        if self.RPC_TIMEOUT_SECONDS <= 0:
            raise ConfigError("RPC_TIMEOUT_SECONDS must be positive")
