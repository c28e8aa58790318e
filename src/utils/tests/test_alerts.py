"""Tests for alert sinks."""
import pytest
import requests
from unittest.mock import MagicMock, patch

from src.config import AlertConfig
from src.utils.alerts import LoggingAlertSink, TelegramAlertSink, build_alert_sink


class TestTelegramAlertSink:
    """Test cases for TelegramAlertSink."""

    @pytest.fixture
    def sink(self):
        return TelegramAlertSink("123:abc", "-100200", timeout=2.0)

    @patch('src.utils.alerts.requests.post')
    @pytest.mark.asyncio
    async def test_send(self, mock_post, sink):
        mock_post.return_value = MagicMock(status_code=200)

        assert await sink.send_alert("Liquidity State Updated for: SOL/USDC")

        mock_post.assert_called_once_with(
            "https://api.telegram.org/bot123:abc/sendMessage",
            json={"chat_id": "-100200", "text": "Liquidity State Updated for: SOL/USDC"},
            timeout=2.0,
        )

    @patch('src.utils.alerts.requests.post')
    @pytest.mark.asyncio
    async def test_send_failure_is_swallowed(self, mock_post, sink):
        """A failed send is reported, never raised."""
        mock_post.side_effect = requests.ConnectionError("unreachable")

        assert await sink.send_alert("hello") is False

    @patch('src.utils.alerts.requests.post')
    @pytest.mark.asyncio
    async def test_http_error_is_swallowed(self, mock_post, sink):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        mock_post.return_value = response

        assert await sink.send_alert("hello") is False

    @pytest.mark.asyncio
    async def test_unexpected_error_is_swallowed(self, sink):
        error = RuntimeError("cannot schedule new futures after shutdown")
        with patch('src.utils.alerts.asyncio.to_thread', side_effect=error):
            assert await sink.send_alert("hello") is False


class TestBuildAlertSink:
    """Test cases for build_alert_sink."""

    def test_telegram_when_configured(self):
        config = AlertConfig()
        config.ALERTS_ENABLED = True
        config.TG_TOKEN = "123:abc"
        config.TG_GROUP = "-100200"

        sink = build_alert_sink(config)

        assert isinstance(sink, TelegramAlertSink)
        assert sink.url == "https://api.telegram.org/bot123:abc/sendMessage"

    def test_logging_when_credentials_missing(self):
        config = AlertConfig()
        config.ALERTS_ENABLED = True
        config.TG_TOKEN = None

        assert isinstance(build_alert_sink(config), LoggingAlertSink)

    def test_logging_when_disabled(self):
        config = AlertConfig()
        config.ALERTS_ENABLED = False

        assert isinstance(build_alert_sink(config), LoggingAlertSink)

    @pytest.mark.asyncio
    async def test_logging_sink(self):
        assert await LoggingAlertSink().send_alert("started")
