"""
In-memory chain used by the test-suite.

`FakeChain` plays Multicall3, Harbour and any number of Safes behind a single
`eth_call(to, data, block)` entry point. Calldata is decoded with the same
`Function` descriptors the SDK uses, so a test exercises the real encoders
and decoders end to end without a node.

    chain = FakeChain()
    alice = FakeSigner(1)
    chain.submit(alice, tx)                  # store tx + signature
    executor = BatchCallExecutor(chain.rpc())
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from eth_keys import keys

from harbour_sdk.config import HARBOUR_ADDRESS, MULTICALL_ADDRESS
from harbour_sdk.contracts.harbour import RETRIEVE_SIGNATURES, RETRIEVE_TRANSACTION
from harbour_sdk.contracts.multicall import AGGREGATE3
from harbour_sdk.contracts.safe import (FALLBACK_HANDLER_SLOT, GET_MODULES_PAGINATED,
                                        GET_OWNERS, GET_STORAGE_AT, GET_THRESHOLD,
                                        GUARD_SLOT, NONCE, SENTINEL_ADDRESS,
                                        SINGLETON_SLOT)
from harbour_sdk.errors import JsonRpcCode, RpcError, TransportError
from harbour_sdk.tx.hash import safe_tx_hash
from harbour_sdk.types.core import (FullSafeTransaction, HarbourSignature,
                                    build_safe_transaction)
from harbour_sdk.utils.bytes import ZERO_ADDRESS, normalize_address

SAFE = "0x1111111111111111111111111111111111111111"
CHAIN_ID = 11155111


class Revert(Exception):
    """Simulated revert of a sub-call."""


class FakeSigner:
    """Deterministic secp256k1 key; `FakeSigner(n)` uses the private key n."""

    def __init__(self, seed: int) -> None:
        self.key = keys.PrivateKey(int(seed).to_bytes(32, "big"))
        self.address = normalize_address(self.key.public_key.to_checksum_address())

    def sign(self, tx_hash: bytes) -> HarbourSignature:
        sig = self.key.sign_msg_hash(tx_hash)
        return HarbourSignature.from_rsv(sig.r, sig.s, sig.v, tx_hash=tx_hash, signer=self.address)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"FakeSigner({self.address})"


@dataclass
class FakeSafe:
    owners: List[str]
    threshold: int
    nonce: int = 0
    fallback_handler: str = ZERO_ADDRESS
    guard: str = ZERO_ADDRESS
    singleton: str = "0x41675C099F32341bf84BFc5382aF534df5C7461a"
    modules: List[str] = field(default_factory=list)


def make_tx(nonce: int, *, to: str = "0x2222222222222222222222222222222222222222", value: int = 0,
            data: bytes = b"", safe: str = SAFE, chain_id: int = CHAIN_ID) -> FullSafeTransaction:
    return build_safe_transaction(chain_id=chain_id, safe_address=safe, to=to, value=value, data=data, nonce=nonce)


class FakeChain:
    def __init__(
        self,
        *,
        harbour_address: str = HARBOUR_ADDRESS,
        multicall_address: str = MULTICALL_ADDRESS,
    ) -> None:
        self.harbour_address = normalize_address(harbour_address)
        self.multicall_address = normalize_address(multicall_address)
        # (signer, safe, chain_id, nonce) -> [(r, vs, txHash)]
        self.signatures: Dict[Tuple[str, str, int, int], List[Tuple[bytes, bytes, bytes]]] = {}
        # safeTxHash -> stored transaction
        self.transactions: Dict[bytes, FullSafeTransaction] = {}
        self.safes: Dict[str, FakeSafe] = {}
        # failure injection
        self.transport_down = False
        self.revert_if: Optional[Callable[[str, bytes], bool]] = None
        self.reverting_signers: Set[str] = set()
        self.reverting_hashes: Set[bytes] = set()
        # observation
        self.round_trips = 0
        self.batch_sizes: List[int] = []
        self.signature_page_requests: List[Tuple[str, int, int, int]] = []

    # --- seeding -----------------------------------------------------------

    def add_safe(self, address: str, safe: FakeSafe) -> None:
        self.safes[normalize_address(address)] = safe

    def store_transaction(self, tx: FullSafeTransaction) -> bytes:
        h = safe_tx_hash(tx)
        # content addressed: the first submission wins, later ones are identical
        self.transactions.setdefault(h, tx)
        return h

    def add_signature(self, sig: HarbourSignature, *, safe: str, chain_id: int, nonce: int) -> None:
        key = (normalize_address(sig.signer), normalize_address(safe), int(chain_id), int(nonce))
        self.signatures.setdefault(key, []).append((sig.r, sig.vs, sig.tx_hash))

    def submit(self, signer: FakeSigner, tx: FullSafeTransaction, *, store: bool = True) -> HarbourSignature:
        """Sign *tx* with *signer* and record it the way `enqueueTransaction` would."""
        h = safe_tx_hash(tx)
        if store:
            self.store_transaction(tx)
        sig = signer.sign(h)
        self.add_signature(sig, safe=tx.safe_address, chain_id=tx.chain_id, nonce=tx.nonce)
        return sig

    # --- rpc ---------------------------------------------------------------

    def rpc(self) -> "FakeRpc":
        return FakeRpc(self)

    def async_rpc(self) -> "AsyncFakeRpc":
        return AsyncFakeRpc(self)

    def eth_call(self, to: str, data: bytes, block="latest") -> bytes:  # noqa: ANN001
        if self.transport_down:
            raise TransportError(method="eth_call", data="connection refused")
        if normalize_address(to) != self.multicall_address:
            raise RpcError(code=JsonRpcCode.EXECUTION_REVERTED, message="execution reverted", method="eth_call")
        self.round_trips += 1
        (calls,) = AGGREGATE3.decode_input(data)
        self.batch_sizes.append(len(calls))
        out = []
        for target, allow_failure, call_data in calls:
            try:
                out.append((True, self._dispatch(normalize_address(target), bytes(call_data))))
            except Revert:
                if not allow_failure:
                    raise RpcError(
                        code=JsonRpcCode.EXECUTION_REVERTED,
                        message="execution reverted: Multicall3: call failed",
                        method="eth_call",
                    )
                out.append((False, b""))
        return AGGREGATE3.encode_output(out)

    # --- contracts ---------------------------------------------------------

    def _dispatch(self, target: str, call_data: bytes) -> bytes:
        if self.revert_if is not None and self.revert_if(target, call_data):
            raise Revert()
        selector = call_data[:4]
        if target == self.harbour_address:
            if selector == RETRIEVE_SIGNATURES.selector:
                return self._retrieve_signatures(call_data)
            if selector == RETRIEVE_TRANSACTION.selector:
                return self._retrieve_transaction(call_data)
            raise Revert()
        if target in self.safes:
            return self._safe_call(self.safes[target], selector, call_data)
        # no code at target: empty return
        return b""

    def _retrieve_signatures(self, call_data: bytes) -> bytes:
        signer, safe, chain_id, nonce, start, count = RETRIEVE_SIGNATURES.decode_input(call_data)
        signer = normalize_address(signer)
        if signer in self.reverting_signers:
            raise Revert()
        self.signature_page_requests.append((signer, nonce, start, count))
        items = self.signatures.get((signer, normalize_address(safe), chain_id, nonce), [])
        return RETRIEVE_SIGNATURES.encode_output(items[start:start + count], len(items))

    def _retrieve_transaction(self, call_data: bytes) -> bytes:
        (h,) = RETRIEVE_TRANSACTION.decode_input(call_data)
        h = bytes(h)
        if h in self.reverting_hashes:
            raise Revert()
        tx = self.transactions.get(h)
        if tx is None:
            record = (False, 0, ZERO_ADDRESS, 0, 0, 0, 0, ZERO_ADDRESS, ZERO_ADDRESS, b"")
        else:
            record = (
                True,
                int(tx.operation),
                tx.to,
                tx.value,
                tx.safe_tx_gas,
                tx.base_gas,
                tx.gas_price,
                tx.gas_token,
                tx.refund_receiver,
                tx.data,
            )
        return RETRIEVE_TRANSACTION.encode_output(record)

    def _safe_call(self, safe: FakeSafe, selector: bytes, call_data: bytes) -> bytes:
        if selector == GET_OWNERS.selector:
            return GET_OWNERS.encode_output(list(safe.owners))
        if selector == GET_THRESHOLD.selector:
            return GET_THRESHOLD.encode_output(safe.threshold)
        if selector == NONCE.selector:
            return NONCE.encode_output(safe.nonce)
        if selector == GET_STORAGE_AT.selector:
            slot, _length = GET_STORAGE_AT.decode_input(call_data)
            addr = {
                FALLBACK_HANDLER_SLOT: safe.fallback_handler,
                GUARD_SLOT: safe.guard,
                SINGLETON_SLOT: safe.singleton,
            }.get(slot, ZERO_ADDRESS)
            word = b"\x00" * 12 + bytes.fromhex(normalize_address(addr)[2:])
            return GET_STORAGE_AT.encode_output(word)
        if selector == GET_MODULES_PAGINATED.selector:
            start, page_size = GET_MODULES_PAGINATED.decode_input(call_data)
            assert normalize_address(start) == normalize_address(SENTINEL_ADDRESS)
            page = safe.modules[:page_size]
            nxt = safe.modules[page_size] if len(safe.modules) > page_size else SENTINEL_ADDRESS
            return GET_MODULES_PAGINATED.encode_output(page, nxt)
        raise Revert()


class FakeRpc:
    """Synchronous `eth_call` endpoint backed by a FakeChain."""

    def __init__(self, chain: FakeChain) -> None:
        self.chain = chain

    def eth_call(self, to: str, data: bytes, block="latest") -> bytes:  # noqa: ANN001
        return self.chain.eth_call(to, data, block)


class AsyncFakeRpc:
    """Asynchronous twin; `delay` seconds are awaited before every call."""

    def __init__(self, chain: FakeChain, delay: float = 0.0) -> None:
        self.chain = chain
        self.delay = delay

    async def eth_call(self, to: str, data: bytes, block="latest") -> bytes:  # noqa: ANN001
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.chain.eth_call(to, data, block)
