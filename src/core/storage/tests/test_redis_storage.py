"""Tests for the Redis backend with a mocked client."""
import pytest
from unittest.mock import AsyncMock

from src.core.storage import ConnectionError, DataError, RedisStorage


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.ping.return_value = True
    return client


@pytest.fixture
def storage(mock_client):
    return RedisStorage({}, client=mock_client)


class TestRedisStorage:
    """Test cases for RedisStorage."""

    @pytest.mark.asyncio
    async def test_connect_pings(self, storage, mock_client):
        await storage.connect()

        mock_client.ping.assert_awaited_once()
        assert storage.is_connected

    @pytest.mark.asyncio
    async def test_connect_failure_raises(self, storage, mock_client):
        mock_client.ping.side_effect = OSError("Connection refused")

        with pytest.raises(ConnectionError):
            await storage.connect()
        assert not storage.is_connected

    @pytest.mark.asyncio
    async def test_operations_require_connection(self):
        storage = RedisStorage({})

        with pytest.raises(ConnectionError):
            await storage.get("volume:BTC")

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, storage, mock_client):
        mock_client.get.return_value = '{"volume": 12.5}'

        assert await storage.get("volume:BTC") == {"volume": 12.5}

    @pytest.mark.asyncio
    async def test_get_returns_plain_strings(self, storage, mock_client):
        mock_client.get.return_value = "not json"

        assert await storage.get("key") == "not json"

    @pytest.mark.asyncio
    async def test_hset_mapping(self, storage, mock_client):
        mock_client.hset.return_value = 2

        assert await storage.hset_mapping("liquidity:abc", {"a": "1", "b": "2"}) == 2
        mock_client.hset.assert_awaited_once_with("liquidity:abc", mapping={"a": "1", "b": "2"})

    @pytest.mark.asyncio
    async def test_client_errors_become_data_errors(self, storage, mock_client):
        mock_client.hgetall.side_effect = Exception("READONLY")

        with pytest.raises(DataError):
            await storage.hgetall("liquidity:abc")

    @pytest.mark.asyncio
    async def test_health_check(self, storage, mock_client):
        assert await storage.health_check()

        mock_client.ping.side_effect = Exception("down")
        assert not await storage.health_check()

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self, storage, mock_client):
        await storage.connect()
        await storage.disconnect()

        mock_client.aclose.assert_awaited_once()
        assert not storage.is_connected
