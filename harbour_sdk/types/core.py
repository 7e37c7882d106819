from __future__ import annotations

"""
Core types for the Harbour SDK.

Dataclass models use Python `bytes` for binary fields (hashes, signature
words, calldata) and checksummed strings for addresses. Every model offers a
`to_dict()` producing a JSON-friendly shape with 0x-hex strings, matching what
the rendering layer consumes.

Nothing here performs network I/O; these are just types and converters.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..utils.bytes import (ZERO_ADDRESS, address_bytes, ensure_bytes,
                           ensure_bytes32, normalize_address, to_hex)

# --- Common aliases ----------------------------------------------------------

Address = str  # EIP-55 checksummed 0x-address
ChainId = int
SafeTxHash = bytes  # 32-byte EIP-712 hash

_S_MASK = (1 << 255) - 1


class Operation(IntEnum):
    """Safe transaction call type."""

    CALL = 0
    DELEGATECALL = 1


# --- Account ----------------------------------------------------------------


@dataclass(frozen=True)
class AccountIdentity:
    """One Safe on one chain."""

    address: Address
    chain_id: ChainId

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "chain_id", int(self.chain_id))


@dataclass(frozen=True)
class SafeConfiguration:
    """
    Snapshot of a Safe's configuration.

    Only `owners`, `threshold` and `nonce` drive queue reconstruction; the
    remaining fields are read in the same batch for display.
    """

    owners: Tuple[Address, ...]
    threshold: int
    nonce: int
    fallback_handler: Address = ZERO_ADDRESS
    guard: Address = ZERO_ADDRESS
    singleton: Address = ZERO_ADDRESS
    modules: Tuple[Address, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owners": list(self.owners),
            "threshold": self.threshold,
            "nonce": str(self.nonce),
            "fallbackHandler": self.fallback_handler,
            "guard": self.guard,
            "singleton": self.singleton,
            "modules": list(self.modules),
        }


# --- Signatures -------------------------------------------------------------


@dataclass(frozen=True)
class HarbourSignature:
    """
    Compact (EIP-2098) signature as stored by Harbour.

    `signer` is the owner whose bucket the signature was read from. It is a
    *claim*: nothing here recovers the address from the signature bytes (see
    `harbour_sdk.queue.quorum.recover_signer` for an explicit check).
    """

    r: bytes
    vs: bytes
    tx_hash: SafeTxHash
    signer: Address

    def __post_init__(self) -> None:
        object.__setattr__(self, "r", ensure_bytes32(self.r))
        object.__setattr__(self, "vs", ensure_bytes32(self.vs))
        object.__setattr__(self, "tx_hash", ensure_bytes32(self.tx_hash))
        object.__setattr__(self, "signer", normalize_address(self.signer))

    @property
    def y_parity(self) -> int:
        return int.from_bytes(self.vs, "big") >> 255

    @property
    def s(self) -> bytes:
        return (int.from_bytes(self.vs, "big") & _S_MASK).to_bytes(32, "big")

    @property
    def v(self) -> int:
        return 27 + self.y_parity

    def to_full_signature(self) -> bytes:
        """Expand to the 65-byte `r || s || v` layout the Safe contract checks."""
        return self.r + self.s + bytes([self.v])

    @classmethod
    def from_rsv(cls, r: int, s: int, v: int, *, tx_hash: bytes, signer: Address) -> "HarbourSignature":
        """Build the compact form from a full signature (`v` in {0,1,27,28})."""
        parity = v - 27 if v >= 27 else v
        if parity not in (0, 1):
            raise ValueError(f"invalid recovery id: {v}")
        if s > _S_MASK:
            raise ValueError("s does not fit in 255 bits")
        vs = (parity << 255) | s
        return cls(r=r.to_bytes(32, "big"), vs=vs.to_bytes(32, "big"), tx_hash=tx_hash, signer=signer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "r": to_hex(self.r),
            "vs": to_hex(self.vs),
            "txHash": to_hex(self.tx_hash),
            "signer": self.signer,
        }


# --- Transactions -----------------------------------------------------------


@dataclass(frozen=True)
class SafeTransaction:
    """Parameters of a Safe transaction (what gets executed)."""

    to: Address
    value: int = 0
    data: bytes = b""
    operation: Operation = Operation.CALL
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: Address = ZERO_ADDRESS
    refund_receiver: Address = ZERO_ADDRESS

    def __post_init__(self) -> None:
        object.__setattr__(self, "to", normalize_address(self.to))
        object.__setattr__(self, "data", ensure_bytes(self.data))
        object.__setattr__(self, "operation", Operation(int(self.operation)))
        object.__setattr__(self, "gas_token", normalize_address(self.gas_token))
        object.__setattr__(self, "refund_receiver", normalize_address(self.refund_receiver))
        for name in ("value", "safe_tx_gas", "base_gas", "gas_price"):
            v = int(getattr(self, name))
            if v < 0:
                raise ValueError(f"{name} must be non-negative")
            object.__setattr__(self, name, v)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "to": self.to,
            "value": str(self.value),
            "data": to_hex(self.data),
            "operation": int(self.operation),
            "safeTxGas": str(self.safe_tx_gas),
            "baseGas": str(self.base_gas),
            "gasPrice": str(self.gas_price),
            "gasToken": self.gas_token,
            "refundReceiver": self.refund_receiver,
        }


@dataclass(frozen=True)
class FullSafeTransaction(SafeTransaction):
    """A Safe transaction bound to its Safe, chain and nonce (what gets signed)."""

    safe_address: Address = ZERO_ADDRESS
    chain_id: ChainId = 0
    nonce: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "safe_address", normalize_address(self.safe_address))
        object.__setattr__(self, "chain_id", int(self.chain_id))
        object.__setattr__(self, "nonce", int(self.nonce))
        if self.nonce < 0:
            raise ValueError("nonce must be non-negative")

    @property
    def account(self) -> AccountIdentity:
        return AccountIdentity(self.safe_address, self.chain_id)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({"safeAddress": self.safe_address, "chainId": self.chain_id, "nonce": str(self.nonce)})
        return d


def build_safe_transaction(
    *,
    chain_id: int,
    safe_address: Address,
    to: Address,
    value: int = 0,
    data: bytes | str = b"",
    nonce: int = 0,
    operation: int = Operation.CALL,
    safe_tx_gas: int = 0,
    base_gas: int = 0,
    gas_price: int = 0,
    gas_token: Address = ZERO_ADDRESS,
    refund_receiver: Address = ZERO_ADDRESS,
) -> FullSafeTransaction:
    """Create a FullSafeTransaction with the usual defaults (plain CALL, no refunds)."""
    return FullSafeTransaction(
        to=to,
        value=value,
        data=ensure_bytes(data),
        operation=Operation(operation),
        safe_tx_gas=safe_tx_gas,
        base_gas=base_gas,
        gas_price=gas_price,
        gas_token=gas_token,
        refund_receiver=refund_receiver,
        safe_address=safe_address,
        chain_id=chain_id,
        nonce=nonce,
    )


@dataclass(frozen=True)
class TransactionRecord:
    """
    Transaction parameters as durably stored by Harbour under `safe_tx_hash`.

    `stored` is False for identities Harbour has never seen (or whose lookup
    failed); such records are never queue-eligible.
    """

    safe_tx_hash: SafeTxHash
    stored: bool
    transaction: Optional[SafeTransaction] = None

    @classmethod
    def unstored(cls, safe_tx_hash: bytes) -> "TransactionRecord":
        return cls(safe_tx_hash=ensure_bytes32(safe_tx_hash), stored=False)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"safeTxHash": to_hex(self.safe_tx_hash), "stored": self.stored}
        if self.transaction is not None:
            d.update(self.transaction.to_dict())
        return d


# --- Queue ------------------------------------------------------------------


@dataclass(frozen=True)
class QueueEntry:
    """
    One candidate transaction for a nonce with every signature collected for
    it. Signatures are ordered ascending by signer address, one per signer.
    """

    safe_tx_hash: SafeTxHash
    nonce: int
    transaction: SafeTransaction
    signatures: Tuple[HarbourSignature, ...] = field(default_factory=tuple)

    @property
    def signers(self) -> List[Address]:
        return [s.signer for s in self.signatures]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "safeTxHash": to_hex(self.safe_tx_hash),
            "nonce": str(self.nonce),
            "details": self.transaction.to_dict(),
            "signatures": [s.to_dict() for s in self.signatures],
        }


@dataclass(frozen=True)
class NonceGroup:
    """All competing queue entries for one nonce (never empty)."""

    nonce: int
    entries: Tuple[QueueEntry, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"nonce": str(self.nonce), "transactions": [e.to_dict() for e in self.entries]}


def sort_signatures(signatures: Sequence[HarbourSignature]) -> List[HarbourSignature]:
    """Ascending by the 20-byte signer value (case-insensitive)."""
    return sorted(signatures, key=lambda s: address_bytes(s.signer))


__all__ = [
    "Address",
    "ChainId",
    "SafeTxHash",
    "Operation",
    "AccountIdentity",
    "SafeConfiguration",
    "HarbourSignature",
    "SafeTransaction",
    "FullSafeTransaction",
    "build_safe_transaction",
    "TransactionRecord",
    "QueueEntry",
    "NonceGroup",
    "sort_signatures",
]
