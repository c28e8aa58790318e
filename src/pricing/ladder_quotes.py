"""
Bid/ask quotes for a notional ladder against one pool.

A bid spends the notional in quote tokens and reports the base received
after slippage. An ask buys notional/fx base tokens and reports the quote
tokens to pay after slippage. Amounts are converted between UI and raw
units with the pool's decimals.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import List, Optional, Sequence, Union

from src.pools import PoolInfo, ReserveState

from .quote_engine import SlippageLike, UnpriceableMarket, quote_given_input, quote_given_output

logger = logging.getLogger(__name__)


def to_raw_amount(amount: Union[Decimal, int, str], decimals: int) -> int:
    """UI amount to smallest units, rounding down."""
    scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: int, decimals: int) -> Decimal:
    """Smallest units to UI amount."""
    return Decimal(raw) / (Decimal(10) ** decimals)


@dataclass(frozen=True)
class LadderLevel:
    """
    Quotes for one notional.

    Attributes:
        notional: Size in quote-token UI units
        bid: Base received for `notional` quote in, None if unpriceable
        ask: Quote paid for `notional / fx` base out, None if unpriceable
        error: Why a side could not be priced
    """

    notional: Decimal
    bid: Optional[Decimal]
    ask: Optional[Decimal]
    error: Optional[str] = None


class LadderQuoter:
    """Prices notional ladders against a reserve snapshot."""

    def __init__(
        self,
        fee_numerator: int = 25,
        fee_denominator: int = 10000,
        slippage_tolerance: SlippageLike = "0.01",
    ):
        self.fee_numerator = fee_numerator
        self.fee_denominator = fee_denominator
        self.slippage_tolerance = slippage_tolerance

    def quote_level(
        self,
        state: ReserveState,
        pool_info: PoolInfo,
        notional: Decimal,
        fx: Union[Decimal, float, str],
    ) -> LadderLevel:
        fx = Decimal(str(fx))
        if fx <= 0:
            raise ValueError(f"FX rate must be positive, got {fx}")

        errors = []
        bid = ask = None

        try:
            quote = quote_given_input(
                state.quote_reserve,
                state.base_reserve,
                to_raw_amount(notional, pool_info.quote_decimals),
                self.fee_numerator,
                self.fee_denominator,
                self.slippage_tolerance,
            )
            bid = from_raw_amount(quote.min_amount_out, pool_info.base_decimals)
        except UnpriceableMarket as e:
            errors.append(f"bid: {e}")

        try:
            quote = quote_given_output(
                state.quote_reserve,
                state.base_reserve,
                to_raw_amount(Decimal(notional) / fx, pool_info.base_decimals),
                self.fee_numerator,
                self.fee_denominator,
                self.slippage_tolerance,
            )
            ask = from_raw_amount(quote.max_amount_in, pool_info.quote_decimals)
        except UnpriceableMarket as e:
            errors.append(f"ask: {e}")

        if errors:
            logger.warning(f"Unpriceable ladder level {notional} for {state.pool_address}: {errors}")
        return LadderLevel(
            notional=Decimal(notional),
            bid=bid,
            ask=ask,
            error="; ".join(errors) or None,
        )

    def quote_ladder(
        self,
        state: ReserveState,
        pool_info: PoolInfo,
        notionals: Sequence[Decimal],
        fx: Union[Decimal, float, str],
    ) -> List[LadderLevel]:
        return [self.quote_level(state, pool_info, notional, fx) for notional in notionals]
