"""
NATS client utilities for raydiumReserves.

This module provides NATS messaging with JetStream support for
publishing reserve updates.
"""

from .client import NatsClient, NatsClientJS, dumps, loads
from .reserve_publisher import ReservePublisher

__all__ = ["NatsClient", "NatsClientJS", "ReservePublisher", "dumps", "loads"]
