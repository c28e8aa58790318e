"""Tests for ladder bid/ask quoting."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.pools import PoolInfo, ReserveState
from src.pricing import (
    LadderQuoter,
    from_raw_amount,
    quote_given_input,
    quote_given_output,
    to_raw_amount,
)

POOL = "58oQChx4yWmvKdwLLZzBi4ChoCc2fqCUWBkwMihLYQo2"
BASE_RESERVE = 1_000 * 10**9      # 1,000 SOL
QUOTE_RESERVE = 150_000 * 10**6   # 150,000 USDC


@pytest.fixture
def pool_info():
    return PoolInfo(
        base_reserve=BASE_RESERVE,
        quote_reserve=QUOTE_RESERVE,
        base_decimals=9,
        quote_decimals=6,
        fee_numerator=25,
        fee_denominator=10000,
        status=6,
        lp_supply=0,
        start_time=0,
    )


@pytest.fixture
def state():
    return ReserveState(POOL, BASE_RESERVE, QUOTE_RESERVE, datetime(2024, 5, 1, tzinfo=timezone.utc))


class TestAmountConversion:
    """Test cases for UI/raw conversions."""

    def test_to_raw_rounds_down(self):
        assert to_raw_amount(Decimal("1.2345678"), 6) == 1_234_567
        assert to_raw_amount("10", 9) == 10 * 10**9

    def test_from_raw(self):
        assert from_raw_amount(1_500_000, 6) == Decimal("1.5")


class TestLadderQuoter:
    """Test cases for LadderQuoter."""

    def test_quote_level(self, state, pool_info):
        quoter = LadderQuoter(25, 10000, "0.01")

        level = quoter.quote_level(state, pool_info, Decimal("10"), "65000")

        bid = quote_given_input(QUOTE_RESERVE, BASE_RESERVE, 10 * 10**6, 25, 10000, "0.01")
        ask = quote_given_output(
            QUOTE_RESERVE, BASE_RESERVE, to_raw_amount(Decimal("10") / Decimal("65000"), 9),
            25, 10000, "0.01",
        )
        assert level.notional == Decimal("10")
        assert level.bid == from_raw_amount(bid.min_amount_out, 9)
        assert level.ask == from_raw_amount(ask.max_amount_in, 6)
        assert level.error is None

    def test_quote_ladder(self, state, pool_info):
        levels = LadderQuoter().quote_ladder(
            state, pool_info, [Decimal(10), Decimal(20), Decimal(30), Decimal(50)], 65000.0
        )

        assert [level.notional for level in levels] == [10, 20, 30, 50]
        bids = [level.bid for level in levels]
        assert bids == sorted(bids)

    def test_unpriceable_sides_are_reported(self, pool_info):
        empty = ReserveState(POOL, 0, 0, datetime(2024, 5, 1, tzinfo=timezone.utc))

        level = LadderQuoter().quote_level(empty, pool_info, Decimal(10), "150")

        assert level.bid is None
        assert level.ask is None
        assert "bid:" in level.error and "ask:" in level.error

    def test_ask_larger_than_pool(self, state, pool_info):
        """Buying more base than the pool holds prices the bid only."""
        level = LadderQuoter().quote_level(state, pool_info, Decimal(10**6), "1")

        assert level.bid is not None
        assert level.ask is None
        assert level.error.startswith("ask:")

    def test_invalid_fx(self, state, pool_info):
        with pytest.raises(ValueError):
            LadderQuoter().quote_level(state, pool_info, Decimal(10), 0)
