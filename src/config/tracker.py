"""
Reserve tracking and pricing configuration for raydiumReserves.
"""

from dataclasses import dataclass

from .base import BaseConfig, ConfigError


@dataclass
class TrackerConfig(BaseConfig):
    """Timers, retry bounds and pricing parameters."""

    # Reconciliation timers
    RECONCILE_INTERVAL_SECONDS: float = BaseConfig.get_env_float(
        "RECONCILE_INTERVAL_SECONDS", 5.0
    )
    REFRESH_INTERVAL_SECONDS: float = BaseConfig.get_env_float(
        "REFRESH_INTERVAL_SECONDS", 300.0
    )

    # Legacy text marker emitted by the AMM program alongside reserves
    RESERVE_LOG_MARKER: str = BaseConfig.get_env("RESERVE_LOG_MARKER", "rb, rq")

    # Timeouts and capped retry for every external call. FETCH_TIMEOUT_SECONDS
    # is the grace a full refresh gets on top of the gateway's own retry budget.
    WRITE_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("WRITE_TIMEOUT_SECONDS", 5.0)
    FETCH_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("FETCH_TIMEOUT_SECONDS", 15.0)
    RETRY_ATTEMPTS: int = BaseConfig.get_env_int("TRACKER_RETRY_ATTEMPTS", 3)
    RETRY_BASE_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_BASE_DELAY_SECONDS", 0.5)
    RETRY_MAX_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_MAX_DELAY_SECONDS", 5.0)

    # Constant-product fee (Raydium AMM v4 swap fee: 25 / 10000)
    FEE_NUMERATOR: int = BaseConfig.get_env_int("FEE_NUMERATOR", 25)
    FEE_DENOMINATOR: int = BaseConfig.get_env_int("FEE_DENOMINATOR", 10000)
    SLIPPAGE_TOLERANCE: str = BaseConfig.get_env("SLIPPAGE_TOLERANCE", "0.01")

    # Notional ladder
    LADDER_REFERENCE_ASSET: str = BaseConfig.get_env("LADDER_REFERENCE_ASSET", "BTC")
    LADDER_VOLUME_COEFFICIENT: int = BaseConfig.get_env_int(
        "LADDER_VOLUME_COEFFICIENT", 1000000
    )
    LADDER_LEVELS: int = BaseConfig.get_env_int("LADDER_LEVELS", 4)
    LADDER_FIRST: int = BaseConfig.get_env_int("LADDER_FIRST", 1)
    LADDER_SECOND: int = BaseConfig.get_env_int("LADDER_SECOND", 2)

    def _validate_config(self):
        super()._validate_config()
        if self.RECONCILE_INTERVAL_SECONDS <= 0 or self.REFRESH_INTERVAL_SECONDS <= 0:
            raise ConfigError("Reconciliation intervals must be positive")
        if self.RETRY_ATTEMPTS < 1:
            raise ConfigError("TRACKER_RETRY_ATTEMPTS must be at least 1")
        if not 0 <= self.FEE_NUMERATOR < self.FEE_DENOMINATOR:
            raise ConfigError(
                f"Invalid fee {self.FEE_NUMERATOR}/{self.FEE_DENOMINATOR}"
            )
        if self.LADDER_LEVELS < 0 or self.LADDER_FIRST <= 0 or self.LADDER_SECOND <= 0:
            raise ConfigError("Ladder levels must be >= 0 and seeds positive")
        if self.LADDER_VOLUME_COEFFICIENT <= 0:
            raise ConfigError("LADDER_VOLUME_COEFFICIENT must be positive")
