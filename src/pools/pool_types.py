"""
Core types for pool tracking and pricing.

Domain models shared by the ledger gateway, the reserve tracker, storage
and the pricing engine. Addresses are kept as base58 strings so that only
the ledger package depends on the Solana SDK types.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PoolKeys:
    """
    On-chain addresses of an AMM v4 pool and its paired order-book market.

    Resolved once per pool and reused for the pool's lifetime.
    """

    id: str
    base_mint: str
    quote_mint: str
    lp_mint: str
    version: int
    program_id: str
    authority: str
    open_orders: str
    target_orders: str
    base_vault: str
    quote_vault: str
    withdraw_queue: str
    lp_vault: str
    market_version: int
    market_program_id: str
    market_id: str
    market_authority: str
    market_base_vault: str
    market_quote_vault: str
    market_bids: str
    market_asks: str
    market_event_queue: str


@dataclass(frozen=True)
class PoolInfo:
    """
    Authoritative pool snapshot, produced only by a full refresh.

    Attributes:
        base_reserve: Base token reserve in smallest units
        quote_reserve: Quote token reserve in smallest units
        base_decimals: Base mint decimals
        quote_decimals: Quote mint decimals
        fee_numerator: Swap fee numerator
        fee_denominator: Swap fee denominator
        status: Pool status code
        lp_supply: Outstanding LP tokens
        start_time: Pool open time (unix seconds)
    """

    base_reserve: int
    quote_reserve: int
    base_decimals: int
    quote_decimals: int
    fee_numerator: int
    fee_denominator: int
    status: int
    lp_supply: int
    start_time: int

    def to_record(self) -> Dict[str, str]:
        """Flatten into string fields for storage."""
        return {
            "snapshot_base_reserve": str(self.base_reserve),
            "snapshot_quote_reserve": str(self.quote_reserve),
            "base_decimals": str(self.base_decimals),
            "quote_decimals": str(self.quote_decimals),
            "fee_numerator": str(self.fee_numerator),
            "fee_denominator": str(self.fee_denominator),
            "status": str(self.status),
            "lp_supply": str(self.lp_supply),
            "start_time": str(self.start_time),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional["PoolInfo"]:
        """Rebuild from a stored record, None when no snapshot was stored."""
        if "snapshot_base_reserve" not in record:
            return None
        return cls(
            base_reserve=int(record["snapshot_base_reserve"]),
            quote_reserve=int(record["snapshot_quote_reserve"]),
            base_decimals=int(record["base_decimals"]),
            quote_decimals=int(record["quote_decimals"]),
            fee_numerator=int(record["fee_numerator"]),
            fee_denominator=int(record["fee_denominator"]),
            status=int(record["status"]),
            lp_supply=int(record["lp_supply"]),
            start_time=int(record["start_time"]),
        )


@dataclass(frozen=True)
class ReserveState:
    """
    Persisted reserve view of one pool.

    Instances are immutable; the tracker replaces its state on every update
    so readers always hold a consistent snapshot.
    """

    pool_address: str
    base_reserve: int
    quote_reserve: int
    timestamp: datetime
    pool_info: Optional[PoolInfo] = None

    def __post_init__(self):
        if self.base_reserve < 0 or self.quote_reserve < 0:
            raise ValueError(
                f"Reserves must be non-negative, got {self.base_reserve}/{self.quote_reserve}"
            )

    @property
    def reserves(self) -> Tuple[int, int]:
        return self.base_reserve, self.quote_reserve

    def with_reserves(self, base_reserve: int, quote_reserve: int, timestamp: datetime) -> "ReserveState":
        return replace(
            self, base_reserve=base_reserve, quote_reserve=quote_reserve, timestamp=timestamp
        )

    def with_pool_info(self, pool_info: PoolInfo, timestamp: datetime) -> "ReserveState":
        return replace(self, pool_info=pool_info, timestamp=timestamp)

    def to_record(self, include_pool_info: bool = True) -> Dict[str, str]:
        """
        Serialize into a flat string mapping.

        Reserves are stored as decimal strings to keep full integer precision.
        """
        record = {
            "address": self.pool_address,
            "base_reserve": str(self.base_reserve),
            "quote_reserve": str(self.quote_reserve),
            "ts": self.timestamp.isoformat(),
        }
        if include_pool_info and self.pool_info is not None:
            record.update(self.pool_info.to_record())
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ReserveState":
        timestamp = datetime.fromisoformat(record["ts"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            pool_address=record["address"],
            base_reserve=int(record["base_reserve"]),
            quote_reserve=int(record["quote_reserve"]),
            timestamp=timestamp,
            pool_info=PoolInfo.from_record(record),
        )


@dataclass(frozen=True)
class TrackedPool:
    """Catalog row for a monitored pool."""

    address: str
    base: str
    quote: str
    network: str = "solana"

    @property
    def label(self) -> str:
        return f"{self.base}/{self.quote}"


@dataclass(frozen=True)
class LogBatch:
    """
    One log notification for a pool.

    Attributes:
        lines: Program log lines in emission order
        signature: Transaction signature
        slot: Slot the notification was observed at
        err: Transaction error, None on success
        reserves: Structured (base, quote) reserve record when the gateway
            could decode one; text scanning of `lines` is the fallback
    """

    lines: List[str]
    signature: Optional[str] = None
    slot: Optional[int] = None
    err: Optional[Any] = None
    reserves: Optional[Tuple[int, int]] = None

    @property
    def failed(self) -> bool:
        return self.err is not None
