"""
Solana ledger gateway for Raydium AMM v4 pools.

Resolves pool descriptors by decoding the pool and market accounts,
builds PoolInfo snapshots from the pool state and vault balances, and
streams program logs mentioning a pool over the websocket API.
"""

import asyncio
import logging
from typing import List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.websocket_api import connect
from solders.account import Account
from solders.pubkey import Pubkey
from solders.rpc.config import RpcTransactionLogsFilterMentions

from src.pools import LogBatch, PoolInfo, PoolKeys

from .base import GatewayConfig, LedgerGateway, LogBatchHandler, LogSubscription
from .errors import (
    AccountNotFoundError,
    DecodeError,
    FetchError,
    RateLimitError,
    SubscriptionError,
)
from .layouts import decode_liquidity_state, decode_market_state, decode_token_amount

logger = logging.getLogger(__name__)

AMM_V4_VERSION = 4
MARKET_V3_VERSION = 3
AMM_AUTHORITY_SEED = b"amm authority"


def to_pubkey(address: str) -> Pubkey:
    """Parse a base58 address, raising DecodeError on malformed input."""
    try:
        return Pubkey.from_string(address)
    except Exception as e:
        raise DecodeError(f"Invalid address {address!r}: {e}") from e


def _wrap_rpc_error(operation: str, error: Exception) -> FetchError:
    message = f"{operation} failed: {error}"
    if "429" in str(error) or "too many requests" in str(error).lower():
        return RateLimitError(message)
    return FetchError(message)


def derive_amm_authority(program_id: Pubkey) -> Pubkey:
    authority, _ = Pubkey.find_program_address([AMM_AUTHORITY_SEED], program_id)
    return authority


def derive_market_authority(market_id: Pubkey, nonce: int, market_program_id: Pubkey) -> Pubkey:
    try:
        return Pubkey.create_program_address(
            [bytes(market_id), nonce.to_bytes(8, "little")], market_program_id
        )
    except Exception as e:
        raise DecodeError(f"Cannot derive market authority for {market_id}: {e}") from e


class SolanaLogSubscription(LogSubscription):
    """
    Websocket log subscription for one pool.

    The listener reconnects with capped exponential backoff until
    `unsubscribe` is called.
    """

    def __init__(
        self,
        ws_url: str,
        pubkey: Pubkey,
        handler: LogBatchHandler,
        commitment: Commitment,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
    ):
        self.ws_url = ws_url
        self.pubkey = pubkey
        self.handler = handler
        self.commitment = commitment
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.subscription_id: Optional[int] = None
        self._stop = asyncio.Event()
        self._connected = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, timeout: float) -> None:
        """Start listening and wait up to `timeout` for the first connection."""
        self._task = asyncio.create_task(self._run(), name=f"logs:{self.pubkey}")
        try:
            await asyncio.wait_for(self._connected.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Log subscription for {self.pubkey} not confirmed after {timeout}s, "
                f"will keep reconnecting"
            )

    async def unsubscribe(self) -> None:
        self._stop.set()
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Log subscription for {self.pubkey} closed")

    async def _run(self) -> None:
        delay = self.base_delay
        while not self._stop.is_set():
            try:
                async with connect(self.ws_url) as websocket:
                    await websocket.logs_subscribe(
                        RpcTransactionLogsFilterMentions(self.pubkey),
                        commitment=self.commitment,
                    )
                    first_resp = await websocket.recv()
                    self.subscription_id = first_resp[0].result
                    self._connected.set()
                    delay = self.base_delay
                    logger.info(f"Subscribed to logs for {self.pubkey} (id={self.subscription_id})")

                    async for messages in websocket:
                        for message in messages:
                            await self._dispatch(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Log stream for {self.pubkey} dropped: {e!r}")
            finally:
                self.subscription_id = None

            if self._stop.is_set():
                break

            logger.info(f"Reconnecting log stream for {self.pubkey} in {delay:.1f}s")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            delay = min(delay * 2, self.max_delay)

    async def _dispatch(self, message) -> None:
        try:
            value = message.result.value
            batch = LogBatch(
                lines=list(value.logs),
                signature=str(value.signature),
                slot=message.result.context.slot,
                err=value.err,
            )
        except AttributeError:
            logger.debug(f"Ignoring non-log message on {self.pubkey}: {message!r}")
            return

        try:
            await self.handler(batch)
        except Exception as e:
            # A failing consumer must not tear down the stream
            logger.error(f"Log handler for {self.pubkey} raised: {e!r}")


class SolanaLedgerGateway(LedgerGateway):
    """
    Ledger gateway backed by solana-py's async RPC and websocket clients.
    """

    def __init__(
        self,
        rpc_url: str,
        ws_url: str,
        commitment: str = "confirmed",
        config: Optional[GatewayConfig] = None,
        client: Optional[AsyncClient] = None,
    ):
        super().__init__(config)
        self.rpc_url = rpc_url
        self.ws_url = ws_url
        self.commitment = Commitment(commitment)
        self.client = client or AsyncClient(rpc_url, commitment=self.commitment, timeout=self.config.timeout)

    async def close(self) -> None:
        await self.client.close()

    async def resolve_pool_keys(self, address: str) -> PoolKeys:
        pool_id = to_pubkey(address)

        account = await self._get_account(pool_id)
        state = decode_liquidity_state(bytes(account.data))

        market_id = Pubkey(state.market_id)
        market_program_id = Pubkey(state.market_program_id)
        market_account = await self._get_account(market_id)
        market = decode_market_state(bytes(market_account.data))

        program_id = account.owner
        withdraw_queue = Pubkey(state.withdraw_queue)
        lp_vault = Pubkey(state.lp_vault)

        keys = PoolKeys(
            id=str(pool_id),
            base_mint=str(Pubkey(state.base_mint)),
            quote_mint=str(Pubkey(state.quote_mint)),
            lp_mint=str(Pubkey(state.lp_mint)),
            version=AMM_V4_VERSION,
            program_id=str(program_id),
            authority=str(derive_amm_authority(program_id)),
            open_orders=str(Pubkey(state.open_orders)),
            target_orders=str(Pubkey(state.target_orders)),
            base_vault=str(Pubkey(state.base_vault)),
            quote_vault=str(Pubkey(state.quote_vault)),
            withdraw_queue=str(withdraw_queue),
            lp_vault=str(lp_vault),
            market_version=MARKET_V3_VERSION,
            market_program_id=str(market_program_id),
            market_id=str(market_id),
            market_authority=str(
                derive_market_authority(market_id, market.vault_signer_nonce, market_program_id)
            ),
            market_base_vault=str(Pubkey(market.base_vault)),
            market_quote_vault=str(Pubkey(market.quote_vault)),
            market_bids=str(Pubkey(market.bids)),
            market_asks=str(Pubkey(market.asks)),
            market_event_queue=str(Pubkey(market.event_queue)),
        )
        self.logger.info(f"Resolved pool keys for {address} (market {keys.market_id})")
        return keys

    async def fetch_pool_info(self, keys: PoolKeys) -> PoolInfo:
        pool_id, base_vault, quote_vault = (
            to_pubkey(keys.id), to_pubkey(keys.base_vault), to_pubkey(keys.quote_vault)
        )
        pool_account, base_account, quote_account = await self._get_multiple_accounts(
            [pool_id, base_vault, quote_vault]
        )

        state = decode_liquidity_state(bytes(pool_account.data))
        base_balance = decode_token_amount(bytes(base_account.data))
        quote_balance = decode_token_amount(bytes(quote_account.data))

        # Vault balances still hold fees owed to the protocol
        base_reserve = base_balance - state.base_need_take_pnl
        quote_reserve = quote_balance - state.quote_need_take_pnl
        if base_reserve < 0 or quote_reserve < 0:
            raise DecodeError(
                f"Negative reserves for {keys.id}: {base_reserve}/{quote_reserve}"
            )

        return PoolInfo(
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_decimals=state.base_decimal,
            quote_decimals=state.quote_decimal,
            fee_numerator=state.swap_fee_numerator,
            fee_denominator=state.swap_fee_denominator,
            status=state.status,
            lp_supply=state.lp_reserve,
            start_time=state.pool_open_time,
        )

    async def subscribe_logs(self, address: str, on_batch: LogBatchHandler) -> LogSubscription:
        subscription = SolanaLogSubscription(
            ws_url=self.ws_url,
            pubkey=to_pubkey(address),
            handler=on_batch,
            commitment=self.commitment,
            base_delay=self.config.retry_delay,
            max_delay=self.config.reconnect_max_delay,
        )
        try:
            await subscription.start(timeout=self.config.timeout)
        except Exception as e:
            await subscription.unsubscribe()
            raise SubscriptionError(f"Failed to subscribe to logs for {address}: {e}") from e
        return subscription

    async def _get_account(self, pubkey: Pubkey) -> Account:
        async def _call():
            try:
                resp = await self.client.get_account_info(pubkey, commitment=self.commitment)
            except Exception as e:
                raise _wrap_rpc_error(f"get_account_info({pubkey})", e) from e
            if resp.value is None:
                raise AccountNotFoundError(f"Account {pubkey} not found")
            return resp.value

        return await self._retry_operation(_call, description=f"get_account_info {pubkey}")

    async def _get_multiple_accounts(self, pubkeys: List[Pubkey]) -> List[Account]:
        async def _call():
            try:
                resp = await self.client.get_multiple_accounts(pubkeys, commitment=self.commitment)
            except Exception as e:
                raise _wrap_rpc_error("get_multiple_accounts", e) from e
            missing = [str(key) for key, value in zip(pubkeys, resp.value) if value is None]
            if missing:
                raise AccountNotFoundError(f"Accounts not found: {missing}")
            return list(resp.value)

        return await self._retry_operation(_call, description="get_multiple_accounts")
