"""
Binary account layouts for Raydium AMM v4 pools and their order-book markets.

Field order follows the on-chain account structs. All integers are
little-endian; public keys are raw 32-byte values.
"""

from construct import (
    Bytes,
    BytesInteger,
    ConstructError,
    Container,
    Int64ul,
    Padding,
    Struct,
)

from .errors import DecodeError

PUBKEY = Bytes(32)
Int128ul = BytesInteger(16, swapped=True)

LIQUIDITY_STATE_LAYOUT_V4 = Struct(
    "status" / Int64ul,
    "nonce" / Int64ul,
    "max_order" / Int64ul,
    "depth" / Int64ul,
    "base_decimal" / Int64ul,
    "quote_decimal" / Int64ul,
    "state" / Int64ul,
    "reset_flag" / Int64ul,
    "min_size" / Int64ul,
    "vol_max_cut_ratio" / Int64ul,
    "amount_wave_ratio" / Int64ul,
    "base_lot_size" / Int64ul,
    "quote_lot_size" / Int64ul,
    "min_price_multiplier" / Int64ul,
    "max_price_multiplier" / Int64ul,
    "system_decimal_value" / Int64ul,
    "min_separate_numerator" / Int64ul,
    "min_separate_denominator" / Int64ul,
    "trade_fee_numerator" / Int64ul,
    "trade_fee_denominator" / Int64ul,
    "pnl_numerator" / Int64ul,
    "pnl_denominator" / Int64ul,
    "swap_fee_numerator" / Int64ul,
    "swap_fee_denominator" / Int64ul,
    "base_need_take_pnl" / Int64ul,
    "quote_need_take_pnl" / Int64ul,
    "quote_total_pnl" / Int64ul,
    "base_total_pnl" / Int64ul,
    "pool_open_time" / Int64ul,
    "punish_pc_amount" / Int64ul,
    "punish_coin_amount" / Int64ul,
    "orderbook_to_init_time" / Int64ul,
    "swap_base_in_amount" / Int128ul,
    "swap_quote_out_amount" / Int128ul,
    "swap_base2quote_fee" / Int64ul,
    "swap_quote_in_amount" / Int128ul,
    "swap_base_out_amount" / Int128ul,
    "swap_quote2base_fee" / Int64ul,
    "base_vault" / PUBKEY,
    "quote_vault" / PUBKEY,
    "base_mint" / PUBKEY,
    "quote_mint" / PUBKEY,
    "lp_mint" / PUBKEY,
    "open_orders" / PUBKEY,
    "market_id" / PUBKEY,
    "market_program_id" / PUBKEY,
    "target_orders" / PUBKEY,
    "withdraw_queue" / PUBKEY,
    "lp_vault" / PUBKEY,
    "owner" / PUBKEY,
    "lp_reserve" / Int64ul,
    Padding(24),
)

MARKET_STATE_LAYOUT_V3 = Struct(
    Padding(5),
    "account_flags" / Int64ul,
    "own_address" / PUBKEY,
    "vault_signer_nonce" / Int64ul,
    "base_mint" / PUBKEY,
    "quote_mint" / PUBKEY,
    "base_vault" / PUBKEY,
    "base_deposits_total" / Int64ul,
    "base_fees_accrued" / Int64ul,
    "quote_vault" / PUBKEY,
    "quote_deposits_total" / Int64ul,
    "quote_fees_accrued" / Int64ul,
    "quote_dust_threshold" / Int64ul,
    "request_queue" / PUBKEY,
    "event_queue" / PUBKEY,
    "bids" / PUBKEY,
    "asks" / PUBKEY,
    "base_lot_size" / Int64ul,
    "quote_lot_size" / Int64ul,
    "fee_rate_bps" / Int64ul,
    "referrer_rebates_accrued" / Int64ul,
    Padding(7),
)

# Leading fields of an SPL token account (165 bytes on chain)
SPL_ACCOUNT_LAYOUT = Struct(
    "mint" / PUBKEY,
    "owner" / PUBKEY,
    "amount" / Int64ul,
)


def _parse(layout: Struct, data: bytes, name: str, exact: bool = True) -> Container:
    expected = layout.sizeof()
    if exact and len(data) != expected:
        raise DecodeError(f"{name}: expected {expected} bytes, got {len(data)}")
    if len(data) < expected:
        raise DecodeError(f"{name}: expected at least {expected} bytes, got {len(data)}")
    try:
        return layout.parse(data)
    except ConstructError as e:
        raise DecodeError(f"{name}: {e}") from e


def decode_liquidity_state(data: bytes) -> Container:
    """Decode an AMM v4 pool account."""
    return _parse(LIQUIDITY_STATE_LAYOUT_V4, data, "liquidity state v4")


def decode_market_state(data: bytes) -> Container:
    """Decode an order-book market v3 account."""
    return _parse(MARKET_STATE_LAYOUT_V3, data, "market state v3")


def decode_token_amount(data: bytes) -> int:
    """Balance of an SPL token account in smallest units."""
    return _parse(SPL_ACCOUNT_LAYOUT, data, "spl token account", exact=False).amount
