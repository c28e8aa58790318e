"""
Base classes and interfaces for storage implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from src.pools import ReserveState, TrackedPool

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class ConnectionError(StorageError):
    """Raised when connection to storage backend fails."""
    pass


class DataError(StorageError):
    """Raised when data operations fail."""
    pass


class PersistenceError(StorageError):
    """Raised when a reserve state write cannot be completed."""
    pass


class StorageBase(ABC):
    """
    Abstract base class for storage implementations.
    All storage backends must implement these methods.
    """
    
    def __init__(self, config: Dict[str, Any]):
        """
        Initialize storage backend with configuration.
        
        Args:
            config: Configuration dictionary for the storage backend
        """
        self.config = config
        self.is_connected = False
        
    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the storage backend."""
        pass
        
    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the storage backend."""
        pass
        
    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the storage backend is healthy and accessible.
        
        Returns:
            bool: True if healthy, False otherwise
        """
        pass
        
    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self
        
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()


class ReserveStateStorageInterface(ABC):
    """Interface for reserve state persistence, keyed by pool address."""

    @abstractmethod
    async def upsert_reserve_state(self, address: str, state: ReserveState) -> None:
        """Create or replace the reserve state of a pool."""
        pass

    @abstractmethod
    async def get_reserve_state(self, address: str) -> Optional[ReserveState]:
        """Retrieve the reserve state of a pool, None if never written."""
        pass

    @abstractmethod
    async def list_reserve_states(self) -> List[ReserveState]:
        """Get reserve states of every pool written so far."""
        pass


class PoolCatalogInterface(ABC):
    """Interface for the catalog of monitored pools."""

    @abstractmethod
    async def list_tracked_pools(self, network: str) -> List[TrackedPool]:
        """Get all pools monitored on a network."""
        pass

    @abstractmethod
    async def add_tracked_pool(self, pool: TrackedPool) -> bool:
        """Add a pool to the catalog."""
        pass


class MarketDataInterface(ABC):
    """Interface for market statistics consumed by the pricing layer."""

    @abstractmethod
    async def latest_volume(self, asset: str) -> Optional[float]:
        """Most recent traded volume of an asset."""
        pass

    @abstractmethod
    async def latest_fx_rate(self, asset: str) -> Optional[float]:
        """Most recent price of an asset in the notional currency."""
        pass

