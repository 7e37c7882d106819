"""
harbour_sdk.client
==================

High-level façade over the queue engine.

- `reconstruct_queue`   -> pending transactions with their collected signatures
- `get_safe_configuration` -> owners / threshold / nonce (+ display fields)
- `fetch_safe_queue`    -> configuration read followed by reconstruction from
                           the Safe's current nonce
- `get_transactions`    -> single-nonce view

Harbour lives on one chain (Gnosis Chain by default) while the Safe may live
on another; pass `safe_rpc` for configuration reads when they differ.

    from harbour_sdk import HarbourClient
    with HarbourClient.for_safe_chain("https://eth.llamarpc.com") as client:
        groups = client.fetch_safe_queue("0xSafe...", chain_id=1)

The client holds no state between calls apart from its RPC connections.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from .config import HarbourSettings, get_settings
from .contracts.multicall import AsyncBatchCallExecutor, BatchCallExecutor
from .contracts.safe import AsyncSafeReader, SafeReader
from .logging import get_logger
from .queue.assembler import AsyncQueueAssembler, QueueAssembler, find_group
from .queue.quorum import encode_authorization, is_executable
from .rpc.http import AsyncRpcClient, RpcClient
from .types.core import NonceGroup, QueueEntry, SafeConfiguration

log = get_logger(__name__)


def _rpc_from_settings(settings: HarbourSettings, url: Optional[str] = None) -> RpcClient:
    return RpcClient(
        url=url or settings.rpc_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        headers=settings.http_headers(),
    )


def _async_rpc_from_settings(settings: HarbourSettings, url: Optional[str] = None) -> AsyncRpcClient:
    return AsyncRpcClient(
        url=url or settings.rpc_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        headers=settings.http_headers(),
    )


class HarbourClient:
    """
    Synchronous client.

    Parameters
    ----------
    settings : HarbourSettings | None
        Defaults to `get_settings()` (environment / `.env`).
    rpc : RpcClient | None
        Client for the Harbour chain. Built from settings when omitted.
    safe_rpc : RpcClient | None
        Client for the Safe's chain, used by configuration reads. Falls back to
        `rpc` (Safe and Harbour on the same chain).

    Clients created here are closed by `close()`; injected ones are left open.
    """

    # Re-exported for callers that only hold a client.
    is_executable = staticmethod(is_executable)
    encode_authorization = staticmethod(encode_authorization)

    def __init__(
        self,
        settings: Optional[HarbourSettings] = None,
        rpc: Optional[RpcClient] = None,
        safe_rpc: Optional[RpcClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owned: List[RpcClient] = []
        if rpc is None:
            rpc = _rpc_from_settings(self.settings)
            self._owned.append(rpc)
        self.rpc = rpc
        self.safe_rpc = safe_rpc or rpc
        self.executor = BatchCallExecutor(rpc, multicall_address=self.settings.multicall_address)
        self.safe_executor = (
            self.executor
            if self.safe_rpc is rpc
            else BatchCallExecutor(self.safe_rpc, multicall_address=self.settings.multicall_address)
        )

    @classmethod
    def for_safe_chain(cls, safe_rpc_url: str, settings: Optional[HarbourSettings] = None) -> "HarbourClient":
        """Client whose configuration reads go to *safe_rpc_url*."""
        settings = settings or get_settings()
        safe_rpc = _rpc_from_settings(settings, safe_rpc_url)
        client = cls(settings=settings, safe_rpc=safe_rpc)
        client._owned.append(safe_rpc)
        return client

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "HarbourClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        while self._owned:
            self._owned.pop().close()

    # --- queue -----------------------------------------------------------

    def _assembler(self, safe_address: str, chain_id: int) -> QueueAssembler:
        return QueueAssembler(
            self.executor,
            safe_address,
            chain_id,
            harbour_address=self.settings.address,
            page_size=self.settings.page_size,
        )

    def reconstruct_queue(
        self,
        safe_address: str,
        chain_id: int,
        owners: Sequence[str],
        start_nonce: int,
        nonce_window: Optional[int] = None,
    ) -> List[NonceGroup]:
        """
        Pending transactions for nonces `[start_nonce, start_nonce + window)`.
        Either returns the complete result or raises (`TransportError`,
        `RpcError`, `AbiError`).
        """
        window = self.settings.max_nonces if nonce_window is None else nonce_window
        return self._assembler(safe_address, chain_id).assemble(owners, start_nonce, window)

    def get_transactions(
        self, safe_address: str, chain_id: int, owners: Sequence[str], nonce: int
    ) -> List[QueueEntry]:
        """Competing entries for a single nonce (empty list when none)."""
        group = find_group(self.reconstruct_queue(safe_address, chain_id, owners, nonce, 1), nonce)
        return list(group.entries) if group else []

    # --- safe ------------------------------------------------------------

    def get_safe_configuration(self, safe_address: str) -> SafeConfiguration:
        return SafeReader(self.safe_executor).get_configuration(safe_address)

    def fetch_safe_queue(
        self, safe_address: str, chain_id: int, max_nonces: Optional[int] = None
    ) -> List[NonceGroup]:
        """Read the Safe's owners and nonce, then reconstruct from that nonce on."""
        config = self.get_safe_configuration(safe_address)
        return self.reconstruct_queue(safe_address, chain_id, config.owners, config.nonce, max_nonces)


class AsyncHarbourClient:
    """
    Asynchronous client. Same surface as `HarbourClient`, plus an optional
    `timeout` on reconstruction: expiry (or cancelling the awaiting task)
    aborts the whole pass and no partial queue is returned.
    """

    is_executable = staticmethod(is_executable)
    encode_authorization = staticmethod(encode_authorization)

    def __init__(
        self,
        settings: Optional[HarbourSettings] = None,
        rpc: Optional[AsyncRpcClient] = None,
        safe_rpc: Optional[AsyncRpcClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owned: List[AsyncRpcClient] = []
        if rpc is None:
            rpc = _async_rpc_from_settings(self.settings)
            self._owned.append(rpc)
        self.rpc = rpc
        self.safe_rpc = safe_rpc or rpc
        self.executor = AsyncBatchCallExecutor(rpc, multicall_address=self.settings.multicall_address)
        self.safe_executor = (
            self.executor
            if self.safe_rpc is rpc
            else AsyncBatchCallExecutor(self.safe_rpc, multicall_address=self.settings.multicall_address)
        )

    async def __aenter__(self) -> "AsyncHarbourClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        while self._owned:
            await self._owned.pop().aclose()

    async def reconstruct_queue(
        self,
        safe_address: str,
        chain_id: int,
        owners: Sequence[str],
        start_nonce: int,
        nonce_window: Optional[int] = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[NonceGroup]:
        window = self.settings.max_nonces if nonce_window is None else nonce_window
        assembler = AsyncQueueAssembler(
            self.executor,
            safe_address,
            chain_id,
            harbour_address=self.settings.address,
            page_size=self.settings.page_size,
        )
        try:
            return await asyncio.wait_for(assembler.assemble(owners, start_nonce, window), timeout)
        except asyncio.TimeoutError:
            log.info("queue.reconstruct_timeout", safe=assembler.safe_address, timeout=timeout)
            raise

    async def get_transactions(
        self, safe_address: str, chain_id: int, owners: Sequence[str], nonce: int, *, timeout: Optional[float] = None
    ) -> List[QueueEntry]:
        groups = await self.reconstruct_queue(safe_address, chain_id, owners, nonce, 1, timeout=timeout)
        group = find_group(groups, nonce)
        return list(group.entries) if group else []

    async def get_safe_configuration(self, safe_address: str) -> SafeConfiguration:
        return await AsyncSafeReader(self.safe_executor).get_configuration(safe_address)

    async def fetch_safe_queue(
        self,
        safe_address: str,
        chain_id: int,
        max_nonces: Optional[int] = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[NonceGroup]:
        config = await self.get_safe_configuration(safe_address)
        return await self.reconstruct_queue(
            safe_address, chain_id, config.owners, config.nonce, max_nonces, timeout=timeout
        )


__all__ = ["HarbourClient", "AsyncHarbourClient"]
