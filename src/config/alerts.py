"""
Alert (Telegram) configuration for raydiumReserves.
"""

from dataclasses import dataclass
from typing import Optional

from .base import BaseConfig

TELEGRAM_API_URL = "https://api.telegram.org"


@dataclass
class AlertConfig(BaseConfig):
    """Chat notification settings."""

    ALERTS_ENABLED: bool = BaseConfig.get_env_bool("ALERTS_ENABLED", False)
    TG_TOKEN: Optional[str] = BaseConfig.get_env("TG_TOKEN") or None
    TG_GROUP: Optional[str] = BaseConfig.get_env("TG_GROUP") or None
    ALERT_TIMEOUT_SECONDS: float = BaseConfig.get_env_float("ALERT_TIMEOUT_SECONDS", 10.0)

    @property
    def telegram_url(self) -> Optional[str]:
        """sendMessage endpoint for the configured bot."""
        if not self.TG_TOKEN:
            return None
        return f"{TELEGRAM_API_URL}/bot{self.TG_TOKEN}/sendMessage"

    @property
    def telegram_configured(self) -> bool:
        return bool(self.TG_TOKEN and self.TG_GROUP)
