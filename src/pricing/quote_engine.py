"""
Constant-product swap quotes for AMM v4 pools.

All amounts are integers in smallest units. Every forward division rounds
down; the reverse path rounds the required input up so a quote never
under-states what the pool will charge. Prices are exact rationals; floats
appear only in display helpers.
"""

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Union

SlippageLike = Union[Fraction, Decimal, int, float, str]


class QuoteError(Exception):
    """Base exception for quote computation."""
    pass


class UnpriceableMarket(QuoteError):
    """Raised when reserves cannot price the requested trade."""
    pass


@dataclass(frozen=True)
class Quote:
    """
    Result of one swap quote.

    Attributes:
        amount_in: Input amount including the fee
        amount_out: Output amount
        fee: Fee charged on the input
        current_price: Pre-trade spot price, output per input
        execution_price: Realized price net of fee, None for an empty trade
        price_impact: Relative distance of execution from spot price
        min_amount_out: Worst acceptable output (forward quotes)
        max_amount_in: Worst acceptable input (reverse quotes)
    """

    amount_in: int
    amount_out: int
    fee: int
    current_price: Fraction
    execution_price: Optional[Fraction]
    price_impact: Fraction
    min_amount_out: Optional[int] = None
    max_amount_in: Optional[int] = None

    @property
    def amount_in_net(self) -> int:
        return self.amount_in - self.fee

    @property
    def price_impact_percent(self) -> float:
        """Price impact in percent, for display only."""
        return float(self.price_impact * 100)


def to_fraction(value: SlippageLike) -> Fraction:
    """Exact rational from a ratio given as str, Decimal, int, float or Fraction."""
    if isinstance(value, bool):
        raise TypeError("Slippage must be a number, not bool")
    if isinstance(value, float):
        # Use the shortest repr so 0.01 means 1/100, not its binary expansion
        value = repr(value)
    try:
        return Fraction(value)
    except (ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Invalid ratio: {value!r}") from e


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _check_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def _validate(
    reserve_in: int,
    reserve_out: int,
    amount_name: str,
    amount: int,
    fee_numerator: int,
    fee_denominator: int,
    slippage_tolerance: SlippageLike,
) -> Fraction:
    _check_amount("reserve_in", reserve_in)
    _check_amount("reserve_out", reserve_out)
    _check_amount(amount_name, amount)
    _check_amount("fee_numerator", fee_numerator)
    _check_amount("fee_denominator", fee_denominator)
    if fee_denominator == 0:
        raise ValueError("fee_denominator must be positive")
    if fee_numerator >= fee_denominator:
        raise ValueError(f"Fee {fee_numerator}/{fee_denominator} must be below 100%")

    slippage = to_fraction(slippage_tolerance)
    if slippage < 0:
        raise ValueError(f"slippage_tolerance must be non-negative, got {slippage}")

    if reserve_in == 0 or reserve_out == 0:
        raise UnpriceableMarket(f"Empty reserves: in={reserve_in}, out={reserve_out}")
    return slippage


def _price_impact(execution_price: Fraction, current_price: Fraction) -> Fraction:
    return abs(execution_price - current_price) / current_price


def quote_given_input(
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_numerator: int = 25,
    fee_denominator: int = 10000,
    slippage_tolerance: SlippageLike = "0.01",
) -> Quote:
    """
    Quote the output of selling `amount_in` into the pool.

    Raises:
        UnpriceableMarket: If either reserve is zero
        ValueError: On negative amounts, an invalid fee or negative slippage
    """
    slippage = _validate(
        reserve_in, reserve_out, "amount_in", amount_in,
        fee_numerator, fee_denominator, slippage_tolerance,
    )
    current_price = Fraction(reserve_out, reserve_in)

    if amount_in == 0:
        return Quote(
            amount_in=0,
            amount_out=0,
            fee=0,
            current_price=current_price,
            execution_price=None,
            price_impact=Fraction(0),
            min_amount_out=0,
        )

    fee = amount_in * fee_numerator // fee_denominator
    amount_in_net = amount_in - fee
    amount_out = reserve_out * amount_in_net // (reserve_in + amount_in_net)
    min_amount_out = amount_out * slippage.denominator // (slippage.denominator + slippage.numerator)

    execution_price = Fraction(amount_out, amount_in_net)
    return Quote(
        amount_in=amount_in,
        amount_out=amount_out,
        fee=fee,
        current_price=current_price,
        execution_price=execution_price,
        price_impact=_price_impact(execution_price, current_price),
        min_amount_out=min_amount_out,
    )


def quote_given_output(
    reserve_in: int,
    reserve_out: int,
    amount_out: int,
    fee_numerator: int = 25,
    fee_denominator: int = 10000,
    slippage_tolerance: SlippageLike = "0.01",
) -> Quote:
    """
    Quote the input required to buy `amount_out` from the pool.

    The returned `amount_in`, sold through `quote_given_input`, yields at
    least `amount_out`.

    Raises:
        UnpriceableMarket: If either reserve is zero or `amount_out` would
            drain the output reserve
        ValueError: On negative amounts, an invalid fee or negative slippage
    """
    slippage = _validate(
        reserve_in, reserve_out, "amount_out", amount_out,
        fee_numerator, fee_denominator, slippage_tolerance,
    )
    if amount_out >= reserve_out:
        raise UnpriceableMarket(
            f"Requested {amount_out} but only {reserve_out} is available"
        )
    current_price = Fraction(reserve_out, reserve_in)

    if amount_out == 0:
        return Quote(
            amount_in=0,
            amount_out=0,
            fee=0,
            current_price=current_price,
            execution_price=None,
            price_impact=Fraction(0),
            max_amount_in=0,
        )

    required_net = _ceil_div(reserve_in * amount_out, reserve_out - amount_out)
    amount_in = _ceil_div(required_net * fee_denominator, fee_denominator - fee_numerator)
    fee = amount_in * fee_numerator // fee_denominator
    max_amount_in = _ceil_div(
        amount_in * (slippage.denominator + slippage.numerator), slippage.denominator
    )

    execution_price = Fraction(amount_out, amount_in - fee)
    return Quote(
        amount_in=amount_in,
        amount_out=amount_out,
        fee=fee,
        current_price=current_price,
        execution_price=execution_price,
        price_impact=_price_impact(execution_price, current_price),
        max_amount_in=max_amount_in,
    )
