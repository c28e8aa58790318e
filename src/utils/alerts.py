"""
Best-effort operator notifications.

Alerts never raise into the caller: a failed send is logged and dropped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from src.config import AlertConfig

logger = logging.getLogger(__name__)


class AlertSink(ABC):
    """Destination for operator notifications."""

    @abstractmethod
    async def send_alert(self, message: str) -> bool:
        """
        Deliver a text notification.

        Returns:
            bool: True if the notification was delivered
        """
        pass


class LoggingAlertSink(AlertSink):
    """Writes alerts to the log, used when no chat is configured."""

    async def send_alert(self, message: str) -> bool:
        logger.info(f"ALERT: {message}")
        return True


class TelegramAlertSink(AlertSink):
    """Sends alerts to a Telegram chat through the bot API."""

    def __init__(self, token: str, chat_id: str, timeout: float = 10.0, api_url: Optional[str] = None):
        self.chat_id = chat_id
        self.timeout = timeout
        self.url = api_url or f"https://api.telegram.org/bot{token}/sendMessage"

    def _post(self, message: str) -> requests.Response:
        response = requests.post(
            self.url,
            json={"chat_id": self.chat_id, "text": message},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def send_alert(self, message: str) -> bool:
        try:
            await asyncio.to_thread(self._post, message)
        except requests.RequestException as e:
            logger.warning(f"Telegram alert failed: {e}")
            return False
        except Exception as e:
            logger.error(f"Telegram alert failed unexpectedly: {e!r}")
            return False

        logger.debug(f"Telegram alert sent: {message}")
        return True


def build_alert_sink(config: AlertConfig) -> AlertSink:
    """Telegram when enabled and configured, log output otherwise."""
    if config.ALERTS_ENABLED and config.telegram_configured:
        return TelegramAlertSink(
            config.TG_TOKEN,
            config.TG_GROUP,
            timeout=config.ALERT_TIMEOUT_SECONDS,
            api_url=config.telegram_url,
        )

    if config.ALERTS_ENABLED:
        logger.warning("Alerts enabled but TG_TOKEN/TG_GROUP missing, logging alerts instead")
    return LoggingAlertSink()
