"""
Notional ladder generation.

Probe sizes grow along a Fibonacci-style recurrence seeded by two terms and
are scaled by a base size derived from the recent traded volume of a
reference asset.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union

from src.config import TrackerConfig
from src.core.storage.base import MarketDataInterface

logger = logging.getLogger(__name__)

Number = Union[int, Decimal]


def fibonacci_terms(levels: int, first: Number, second: Number) -> List[Number]:
    """
    First `levels` terms of term[i] = term[i-1] + term[i-2].

    >>> fibonacci_terms(4, 1, 2)
    [1, 2, 3, 5]
    """
    terms = [first, second][:levels]
    while len(terms) < levels:
        terms.append(terms[-1] + terms[-2])
    return terms


def base_size_from_volume(volume: Union[float, Decimal, str], coefficient: Number) -> Decimal:
    """Base order size: recent traded volume divided by the volume coefficient."""
    if coefficient <= 0:
        raise ValueError(f"Volume coefficient must be positive, got {coefficient}")
    volume = Decimal(str(volume))
    if volume < 0:
        raise ValueError(f"Volume must be non-negative, got {volume}")
    return volume / Decimal(coefficient)


@dataclass(frozen=True)
class NotionalLadderGenerator:
    """Deterministic ladder of order sizes; holds parameters only."""

    levels: int
    first: Number = 1
    second: Number = 2

    def __post_init__(self):
        if self.levels < 0:
            raise ValueError(f"levels must be non-negative, got {self.levels}")
        if self.first <= 0 or self.second <= 0:
            raise ValueError(f"Seed terms must be positive, got {self.first}, {self.second}")

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "NotionalLadderGenerator":
        return cls(levels=config.LADDER_LEVELS, first=config.LADDER_FIRST, second=config.LADDER_SECOND)

    def terms(self) -> List[Number]:
        """Unscaled ladder."""
        return fibonacci_terms(self.levels, self.first, self.second)

    def generate(self, base_size: Union[Number, str]) -> List[Decimal]:
        """Ladder scaled by `base_size`."""
        base_size = Decimal(str(base_size))
        return [base_size * term for term in self.terms()]


async def build_notional_ladder(
    market_data: MarketDataInterface,
    config: Optional[TrackerConfig] = None,
) -> List[Decimal]:
    """
    Ladder sized from the latest traded volume of the configured reference asset.

    Raises:
        LookupError: If no volume is recorded for the reference asset
    """
    config = config or TrackerConfig()
    asset = config.LADDER_REFERENCE_ASSET

    volume = await market_data.latest_volume(asset)
    if volume is None:
        raise LookupError(f"No traded volume recorded for {asset}")

    base_size = base_size_from_volume(volume, config.LADDER_VOLUME_COEFFICIENT)
    ladder = NotionalLadderGenerator.from_config(config).generate(base_size)
    logger.info(f"Notional ladder for {asset} (base size {base_size}): {ladder}")
    return ladder
