"""
Timeout and capped-retry utilities for external calls.

Every ledger fetch and storage write goes through
`call_with_retry`, which bounds each attempt with `asyncio.wait_for` and
backs off exponentially between attempts, never past `max_delay`.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds applied to one external call."""

    attempts: int = 3
    timeout: float = 10.0
    base_delay: float = 0.5
    max_delay: float = 5.0

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def budget(self) -> float:
        """Worst-case wall time of every attempt plus the backoff between them."""
        delays = sum(
            min(self.base_delay * (2 ** attempt) * 2, self.max_delay)
            for attempt in range(self.attempts - 1)
        )
        return self.attempts * self.timeout + delays


class ErrorHandler:
    """
    Centralized error handling for external calls.

    Provides classification, logging, and backoff decisions for errors
    raised by the ledger gateway and storage.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        non_retryable: Tuple[Type[BaseException], ...] = (),
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.non_retryable = non_retryable

    def classify_error(self, error: BaseException) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if self.non_retryable and isinstance(error, self.non_retryable):
            return 'decode'

        if isinstance(error, (asyncio.TimeoutError, TimeoutError, OSError)):
            return 'network'

        if isinstance(error, (ValueError, TypeError)):
            return 'validation'

        error_str = str(error).lower()

        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429']):
            return 'rate_limit'

        if any(keyword in error_str for keyword in ['connection', 'timeout', 'network', 'dns']):
            return 'network'

        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        """
        Determine if an error should trigger another attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            max_retries: Maximum number of attempts allowed

        Returns:
            True if operation should be retried
        """
        if attempt + 1 >= max_retries:
            return False

        return self.classify_error(error) in ('network', 'rate_limit', 'unknown')

    def get_retry_delay(
        self, error: BaseException, attempt: int, base_delay: float = 1.0, max_delay: float = 60.0
    ) -> float:
        """
        Calculate the delay before the next attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            base_delay: Delay of the first retry
            max_delay: Upper bound for any delay

        Returns:
            Delay in seconds before retry
        """
        error_category = self.classify_error(error)
        delay = base_delay * (2 ** attempt)

        if error_category == 'rate_limit':
            delay *= 2
        elif error_category == 'unknown':
            delay *= 1.5

        return min(delay, max_delay)

    def log_error(self, error: BaseException, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        if error_category in ('validation', 'decode'):
            self.logger.warning(f"{context.get('operation', 'call')} rejected: {error!r}", extra=log_data)
        elif error_category == 'rate_limit':
            self.logger.info(f"{context.get('operation', 'call')} rate limited", extra=log_data)
        else:
            self.logger.warning(
                f"{context.get('operation', 'call')} failed "
                f"(attempt {context.get('attempt')}/{context.get('max_retries')}): {error!r}",
                extra=log_data,
            )


async def call_with_retry(
    operation: Callable[..., Awaitable[Any]],
    *args,
    policy: RetryPolicy = RetryPolicy(),
    error_handler: Optional[ErrorHandler] = None,
    description: Optional[str] = None,
    **kwargs,
) -> Any:
    """
    Await `operation(*args, **kwargs)` with a per-attempt timeout and capped backoff.

    Raises the last error once attempts are exhausted or the error is not
    retryable. Cancellation is never swallowed.
    """
    handler = error_handler or ErrorHandler(logger)
    name = description or getattr(operation, "__name__", str(operation))

    for attempt in range(policy.attempts):
        try:
            return await asyncio.wait_for(operation(*args, **kwargs), timeout=policy.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            handler.log_error(
                e,
                {
                    "attempt": attempt + 1,
                    "max_retries": policy.attempts,
                    "operation": name,
                },
            )

            if not handler.should_retry(e, attempt, policy.attempts):
                raise

            delay = handler.get_retry_delay(e, attempt, policy.base_delay, policy.max_delay)
            handler.logger.info(
                f"Retrying {name} in {delay:.2f}s... (attempt {attempt + 1}/{policy.attempts})"
            )
            await asyncio.sleep(delay)
