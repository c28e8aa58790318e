"""Tests for the reserve update publisher."""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock

from src.config import NatsConfig
from src.pools import ReserveState
from src.utils.nats import ReservePublisher

POOL = "58oQChx4yWmvKdwLLZzBi4ChoCc2fqCUWBkwMihLYQo2"


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def publisher(client):
    return ReservePublisher(NatsConfig(), network="solana", client=client)


@pytest.fixture
def state():
    return ReserveState(POOL, 1000, 2000, datetime(2024, 5, 1, tzinfo=timezone.utc))


class TestReservePublisher:
    """Test cases for ReservePublisher."""

    @pytest.mark.asyncio
    async def test_aconnect_registers_stream(self, publisher, client):
        await publisher.aconnect()

        client.aconnect.assert_awaited_once()
        client.aregister_new_stream.assert_awaited_once_with("RESERVE_UPDATES", ["reserves.>"])

    @pytest.mark.asyncio
    async def test_publish_reserve_update(self, publisher, client, state):
        assert await publisher.apublish_reserve_update(state)

        client.apublish.assert_awaited_once_with(
            f"reserves.solana.{POOL}",
            {
                "type": "reserve_update",
                "data": {
                    "address": POOL,
                    "base_reserve": "1000",
                    "quote_reserve": "2000",
                    "ts": "2024-05-01T00:00:00+00:00",
                },
            },
            msg_id=f"{POOL}:2024-05-01T00:00:00+00:00:1000:2000",
        )

    @pytest.mark.asyncio
    async def test_publish_failure_is_not_raised(self, publisher, client, state):
        client.apublish.side_effect = ConnectionError("JetStream not initialized")

        assert await publisher.apublish_reserve_update(state) is False
