"""Constant-product pricing and notional ladders."""

from .ladder_quotes import LadderLevel, LadderQuoter, from_raw_amount, to_raw_amount
from .notional_ladder import (
    NotionalLadderGenerator,
    base_size_from_volume,
    build_notional_ladder,
    fibonacci_terms,
)
from .quote_engine import (
    Quote,
    QuoteError,
    UnpriceableMarket,
    quote_given_input,
    quote_given_output,
    to_fraction,
)

__all__ = [
    "Quote",
    "QuoteError",
    "UnpriceableMarket",
    "quote_given_input",
    "quote_given_output",
    "to_fraction",
    "NotionalLadderGenerator",
    "base_size_from_volume",
    "build_notional_ladder",
    "fibonacci_terms",
    "LadderLevel",
    "LadderQuoter",
    "to_raw_amount",
    "from_raw_amount",
]
