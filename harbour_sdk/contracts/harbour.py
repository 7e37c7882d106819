from __future__ import annotations

"""
Read-only bindings for the Harbour store contract.

Harbour keeps, per (signer, safe, chainId, nonce), an append-only list of
compact signatures, and per `safeTxHash` the transaction parameters first
submitted with it:

    retrieveSignatures(address signer, address safe, uint256 chainId,
                       uint256 nonce, uint256 start, uint256 count)
        returns ((bytes32 r, bytes32 vs, bytes32 txHash)[] page, uint256 totalCount)

    retrieveTransaction(bytes32 safeTxHash)
        returns ((bool stored, uint8 operation, address to, uint128 value,
                  uint128 safeTxGas, uint128 baseGas, uint128 gasPrice,
                  address gasToken, address refundReceiver, bytes data))
"""

from typing import List, Tuple

from ..config import HARBOUR_ADDRESS
from ..types.core import (HarbourSignature, Operation, SafeTransaction,
                          TransactionRecord)
from ..utils.bytes import ensure_bytes32, normalize_address
from .abi import Function
from .multicall import Call

RETRIEVE_SIGNATURES = Function(
    "retrieveSignatures",
    ("address", "address", "uint256", "uint256", "uint256", "uint256"),
    ("(bytes32,bytes32,bytes32)[]", "uint256"),
)

RETRIEVE_TRANSACTION = Function(
    "retrieveTransaction",
    ("bytes32",),
    ("(bool,uint8,address,uint128,uint128,uint128,uint128,address,address,bytes)",),
)


class HarbourContract:
    """Call builders and decoders bound to one Harbour deployment."""

    def __init__(self, address: str = HARBOUR_ADDRESS) -> None:
        self.address = normalize_address(address)

    # --- retrieveSignatures ------------------------------------------------

    def retrieve_signatures_call(
        self,
        signer: str,
        safe_address: str,
        chain_id: int,
        nonce: int,
        start: int,
        count: int,
    ) -> Call:
        data = RETRIEVE_SIGNATURES.encode(
            normalize_address(signer),
            normalize_address(safe_address),
            int(chain_id),
            int(nonce),
            int(start),
            int(count),
        )
        return Call(target=self.address, call_data=data, allow_failure=True)

    @staticmethod
    def decode_signatures(return_data: bytes, signer: str) -> Tuple[List[HarbourSignature], int]:
        """
        Decode one page. Every signature is attributed to *signer*, the owner
        whose list was queried.
        """
        page, total = RETRIEVE_SIGNATURES.decode(return_data)
        sigs = [HarbourSignature(r=r, vs=vs, tx_hash=tx_hash, signer=signer) for r, vs, tx_hash in page]
        return sigs, int(total)

    # --- retrieveTransaction -----------------------------------------------

    def retrieve_transaction_call(self, safe_tx_hash: bytes) -> Call:
        data = RETRIEVE_TRANSACTION.encode(ensure_bytes32(safe_tx_hash))
        return Call(target=self.address, call_data=data, allow_failure=True)

    @staticmethod
    def decode_transaction(safe_tx_hash: bytes, return_data: bytes) -> TransactionRecord:
        ((stored, operation, to, value, safe_tx_gas, base_gas, gas_price, gas_token, refund_receiver, data),) = (
            RETRIEVE_TRANSACTION.decode(return_data)
        )
        if not stored:
            return TransactionRecord.unstored(safe_tx_hash)
        tx = SafeTransaction(
            to=to,
            value=value,
            data=data,
            operation=Operation(operation),
            safe_tx_gas=safe_tx_gas,
            base_gas=base_gas,
            gas_price=gas_price,
            gas_token=gas_token,
            refund_receiver=refund_receiver,
        )
        return TransactionRecord(safe_tx_hash=ensure_bytes32(safe_tx_hash), stored=True, transaction=tx)


__all__ = ["RETRIEVE_SIGNATURES", "RETRIEVE_TRANSACTION", "HarbourContract"]
