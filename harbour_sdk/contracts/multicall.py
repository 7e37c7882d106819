from __future__ import annotations

"""
Batch call executor on top of Multicall3.

Many independent read-only calls travel in a single `eth_call` to
`aggregate3((address target, bool allowFailure, bytes callData)[])`, which
returns `(bool success, bytes returnData)[]` in input order.

Failure model
-------------
- A reverting or unreachable target with `allow_failure=True` yields
  `CallResult(success=False)` for that slot only; siblings decode normally.
- If the round trip itself fails, the RPC client raises `TransportError`
  (or `RpcError` for a node-side error) and the whole batch fails.
- No retries happen here.
"""

from dataclasses import dataclass
from typing import List, Protocol, Sequence

from ..config import MULTICALL_ADDRESS
from ..errors import AbiError
from ..logging import get_logger
from ..utils.bytes import BytesLike, normalize_address
from .abi import Function

log = get_logger(__name__)

AGGREGATE3 = Function(
    "aggregate3",
    ("(address,bool,bytes)[]",),
    ("(bool,bytes)[]",),
)


class EthCaller(Protocol):
    def eth_call(self, to: str, data: BytesLike, block: str | int = "latest") -> bytes: ...


class AsyncEthCaller(Protocol):
    async def eth_call(self, to: str, data: BytesLike, block: str | int = "latest") -> bytes: ...


@dataclass(frozen=True)
class Call:
    target: str
    call_data: bytes
    allow_failure: bool = True


@dataclass(frozen=True)
class CallResult:
    success: bool
    return_data: bytes = b""

    @property
    def has_data(self) -> bool:
        """True when the call succeeded and returned something to decode."""
        return self.success and len(self.return_data) > 0


def encode_aggregate3(calls: Sequence[Call]) -> bytes:
    return AGGREGATE3.encode(
        [(normalize_address(c.target), bool(c.allow_failure), bytes(c.call_data)) for c in calls]
    )


def decode_aggregate3(data: BytesLike, expected: int) -> List[CallResult]:
    (items,) = AGGREGATE3.decode(data)
    if len(items) != expected:
        raise AbiError(
            f"aggregate3 returned {len(items)} results for {expected} calls",
            function=AGGREGATE3.name,
        )
    return [CallResult(success=bool(ok), return_data=bytes(ret)) for ok, ret in items]


def _log_batch(results: Sequence[CallResult]) -> None:
    failed = [i for i, r in enumerate(results) if not r.success]
    if failed:
        log.debug("multicall.slot_failed", failed=len(failed), indices=failed[:16], size=len(results))
    log.debug("multicall.batch", size=len(results))


class BatchCallExecutor:
    """Synchronous executor: one `eth_call` per `execute()`."""

    def __init__(
        self,
        rpc: EthCaller,
        *,
        multicall_address: str = MULTICALL_ADDRESS,
        block: str | int = "latest",
    ) -> None:
        self._rpc = rpc
        self._address = normalize_address(multicall_address)
        self._block = block

    @property
    def multicall_address(self) -> str:
        return self._address

    def execute(self, calls: Sequence[Call]) -> List[CallResult]:
        if not calls:
            return []
        raw = self._rpc.eth_call(self._address, encode_aggregate3(calls), self._block)
        results = decode_aggregate3(raw, len(calls))
        _log_batch(results)
        return results


class AsyncBatchCallExecutor:
    """Asynchronous twin of `BatchCallExecutor`."""

    def __init__(
        self,
        rpc: AsyncEthCaller,
        *,
        multicall_address: str = MULTICALL_ADDRESS,
        block: str | int = "latest",
    ) -> None:
        self._rpc = rpc
        self._address = normalize_address(multicall_address)
        self._block = block

    @property
    def multicall_address(self) -> str:
        return self._address

    async def execute(self, calls: Sequence[Call]) -> List[CallResult]:
        if not calls:
            return []
        raw = await self._rpc.eth_call(self._address, encode_aggregate3(calls), self._block)
        results = decode_aggregate3(raw, len(calls))
        _log_batch(results)
        return results


__all__ = [
    "AGGREGATE3",
    "Call",
    "CallResult",
    "EthCaller",
    "AsyncEthCaller",
    "encode_aggregate3",
    "decode_aggregate3",
    "BatchCallExecutor",
    "AsyncBatchCallExecutor",
]
