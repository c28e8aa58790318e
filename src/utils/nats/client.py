import json
import logging
from typing import Any, List, Optional

import nats
from nats.aio.client import Client as NATS
from nats.js.client import JetStreamContext
from nats.js.errors import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RECONNECT_ATTEMPTS = 60
DEFAULT_RECONNECT_TIME_WAIT = 2


def dumps(msg: Any) -> str:
    """Serialize message to JSON string"""
    return json.dumps(msg)


def loads(data: str) -> Any:
    """Deserialize JSON string to Python object"""
    return json.loads(data)


class NatsClient:
    """
    A simple NATS client for JSON-encoded messages.
    Methods starting with 'a' execute asynchronously.
    """

    def __init__(
        self,
        url: str,
        connect_timeout: float = DEFAULT_TIMEOUT,
        max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
        reconnect_time_wait: float = DEFAULT_RECONNECT_TIME_WAIT,
    ):
        self.url = url
        self.connect_timeout = connect_timeout
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_time_wait = reconnect_time_wait
        self.nc: Optional[NATS] = None

    @property
    def is_connected(self) -> bool:
        return self.nc is not None and self.nc.is_connected

    # Connection methods
    async def aconnect(self):
        """Asynchronously connect to NATS server"""
        logger.info(f"Connecting to NATS at {self.url}")
        self.nc = await nats.connect(
            servers=[self.url],
            connect_timeout=self.connect_timeout,
            allow_reconnect=True,
            max_reconnect_attempts=self.max_reconnect_attempts,
            reconnect_time_wait=self.reconnect_time_wait,
        )
        logger.info(f"Connected to NATS at {self.url}")

    async def aclose(self):
        """Asynchronously close connection to NATS server"""
        if self.nc:
            await self.nc.close()
            self.nc = None

    # Publishing methods
    async def apublish(self, subject: str, msg: Any):
        """Asynchronously publish a message to a subject"""
        if not self.nc:
            raise ConnectionError("Not connected to NATS server")
        enc_msg = dumps(msg).encode()
        await self.nc.publish(subject, enc_msg)


class NatsClientJS(NatsClient):
    """
    A NATS client with JetStream support for persistent messaging.
    Extends NatsClient with stream management.
    """

    def __init__(self, url: str, **kwargs):
        super().__init__(url, **kwargs)
        self.js: Optional[JetStreamContext] = None
        self._streams = set()

    async def aconnect(self):
        """Connect to NATS and initialize JetStream context"""
        await super().aconnect()
        self.js = self.nc.jetstream()
        logger.info("JetStream context initialized")

    async def _stream_exists(self, stream_name: str) -> bool:
        """Check if a JetStream stream exists"""
        try:
            await self.js.stream_info(stream_name)
            return True
        except NotFoundError:
            return False

    async def aregister_new_stream(self, stream_name: str, subjects: List[str], no_ack: bool = True):
        """Register a new JetStream stream"""
        if not await self._stream_exists(stream_name):
            await self.js.add_stream(name=stream_name, subjects=subjects, no_ack=no_ack)
            logger.info(f"Registered stream: {stream_name} with subjects: {subjects}")
        self._streams.add(stream_name)

    async def apublish(self, subject: str, msg: Any, msg_id: Optional[str] = None):
        """
        Publish a message to JetStream.

        A `msg_id` lets the server drop duplicates inside the stream's
        deduplication window.
        """
        if not self.js:
            raise ConnectionError("JetStream not initialized")
        enc_msg = dumps(msg).encode()
        headers = {"Nats-Msg-Id": msg_id} if msg_id else None
        await self.js.publish(subject, enc_msg, headers=headers)
