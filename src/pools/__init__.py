"""
Pool domain types shared across the ledger, tracker, storage and pricing packages.
"""

from .pool_types import LogBatch, PoolInfo, PoolKeys, ReserveState, TrackedPool

__all__ = ["LogBatch", "PoolInfo", "PoolKeys", "ReserveState", "TrackedPool"]
