"""Ledger access for Raydium AMM v4 pools."""

from .base import GatewayConfig, LedgerGateway, LogBatchHandler, LogSubscription
from .errors import (
    AccountNotFoundError,
    DecodeError,
    FetchError,
    LedgerError,
    RateLimitError,
    SubscriptionError,
)
from .solana_gateway import SolanaLedgerGateway, SolanaLogSubscription

__all__ = [
    "GatewayConfig",
    "LedgerGateway",
    "LogBatchHandler",
    "LogSubscription",
    "SolanaLedgerGateway",
    "SolanaLogSubscription",
    "LedgerError",
    "DecodeError",
    "FetchError",
    "RateLimitError",
    "AccountNotFoundError",
    "SubscriptionError",
]
