"""
Ledger gateway interface.

The reserve tracker only consumes the shapes defined here; the concrete
RPC transport and account-layout decoding live in the implementations.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from src.pools import LogBatch, PoolInfo, PoolKeys
from src.utils.retry import ErrorHandler, RetryPolicy, call_with_retry

from .errors import AccountNotFoundError, DecodeError

logger = logging.getLogger(__name__)

LogBatchHandler = Callable[[LogBatch], Awaitable[None]]


@dataclass
class GatewayConfig:
    """Configuration for ledger calls."""

    max_retries: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    timeout: float = 10.0
    reconnect_max_delay: float = 60.0

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=self.max_retries,
            timeout=self.timeout,
            base_delay=self.retry_delay,
            max_delay=self.max_retry_delay,
        )


class LogSubscription(ABC):
    """Handle for an active log subscription."""

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivering batches and release the underlying connection."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        pass


class LedgerGateway(ABC):
    """
    Abstract base class for ledger access.

    Provides the retry plumbing shared by implementations.
    """

    def __init__(self, config: Optional[GatewayConfig] = None):
        self.config = config or GatewayConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(
            self.logger, non_retryable=(DecodeError, AccountNotFoundError)
        )

    @abstractmethod
    async def resolve_pool_keys(self, address: str) -> PoolKeys:
        """
        Resolve the pool descriptor for a pool address.

        Raises:
            DecodeError: If the account layout is unexpected
            FetchError: If the RPC call fails
        """
        pass

    @abstractmethod
    async def fetch_pool_info(self, keys: PoolKeys) -> PoolInfo:
        """
        Fetch an authoritative snapshot of the pool.

        Raises:
            DecodeError: If the account layout is unexpected
            FetchError: If the RPC call fails
        """
        pass

    @abstractmethod
    async def subscribe_logs(self, address: str, on_batch: LogBatchHandler) -> LogSubscription:
        """
        Deliver log notifications mentioning `address` to `on_batch`.

        Returns:
            Handle used to stop the subscription
        """
        pass

    async def close(self) -> None:
        """Release gateway resources."""
        pass

    @property
    def call_budget(self) -> float:
        """Worst-case duration of one retried RPC call, backoff included."""
        return self.config.retry_policy.budget

    async def _retry_operation(self, operation, *args, description: Optional[str] = None, **kwargs):
        """Run an RPC operation with timeout and capped exponential backoff."""
        return await call_with_retry(
            operation,
            *args,
            policy=self.config.retry_policy,
            error_handler=self.error_handler,
            description=description,
            **kwargs,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
