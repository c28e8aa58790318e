"""
NATS publisher for reserve updates.

Every persisted reserve state is also announced on
`reserves.<network>.<pool>` for consumers that prefer a stream over
polling Redis. Publishing is best effort: Redis stays the source of truth.
"""

import logging
from typing import Optional

from src.config import NatsConfig
from src.pools import ReserveState

from .client import NatsClientJS

logger = logging.getLogger(__name__)


class ReservePublisher:
    """
    Publisher for reserve state updates to NATS/JetStream.
    """

    def __init__(self, config: Optional[NatsConfig] = None, network: str = "solana",
                 client: Optional[NatsClientJS] = None):
        """
        Initialize the reserve publisher.

        Args:
            config: NATS configuration (defaults from environment)
            network: Network segment of the published subjects
            client: Pre-built client, mainly for tests
        """
        self.config = config or NatsConfig()
        self.network = network
        self.nats_client = client or NatsClientJS(
            self.config.get_nats_url(),
            connect_timeout=self.config.NATS_TIMEOUT,
            max_reconnect_attempts=self.config.NATS_MAX_RECONNECT_ATTEMPTS,
            reconnect_time_wait=self.config.NATS_RECONNECT_TIME_WAIT,
        )
        self.stream_name = self.config.STREAM_NAME
        self.subjects = self.config.reserve_subjects

    async def aconnect(self):
        """Connect to NATS and setup JetStream"""
        await self.nats_client.aconnect()
        await self.nats_client.aregister_new_stream(self.stream_name, self.subjects)
        logger.info("ReservePublisher connected and stream registered")

    async def aclose(self):
        """Close NATS connection"""
        await self.nats_client.aclose()
        logger.info("ReservePublisher connection closed")

    @staticmethod
    def _message_id(state: ReserveState) -> str:
        # Identical states collapse to one stream message
        return (
            f"{state.pool_address}:{state.timestamp.isoformat()}:"
            f"{state.base_reserve}:{state.quote_reserve}"
        )

    async def apublish_reserve_update(self, state: ReserveState) -> bool:
        """
        Publish one reserve update.

        Returns:
            bool: True if the message was accepted by the server
        """
        subject = self.config.get_reserve_subject(self.network, state.pool_address)
        message = {
            "type": "reserve_update",
            "data": state.to_record(include_pool_info=False),
        }

        try:
            await self.nats_client.apublish(subject, message, msg_id=self._message_id(state))
        except Exception as e:
            logger.warning(f"Failed to publish reserve update on {subject}: {e}")
            return False

        logger.debug(f"Published reserve update on {subject}")
        return True
