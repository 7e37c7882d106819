from __future__ import annotations

"""
Safe transaction identity (EIP-712 `safeTxHash`).

The hash binds every transaction field, the nonce, the chain id and the Safe
address. Two parties that sign byte-identical parameters for the same nonce
therefore always land on the same identity; Harbour stores transactions and
signatures under it.

    hash = keccak256(0x19 0x01 || domainSeparator(chainId, safe) || structHash(tx))
"""

from eth_abi import encode

from ..types.core import FullSafeTransaction
from ..utils.bytes import normalize_address
from ..utils.hash import keccak256, keccak256_text

DOMAIN_TYPEHASH = keccak256_text("EIP712Domain(uint256 chainId,address verifyingContract)")
SAFE_TX_TYPEHASH = keccak256_text(
    "SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,"
    "uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)"
)


def domain_separator(chain_id: int, safe_address: str) -> bytes:
    return keccak256(
        encode(
            ["bytes32", "uint256", "address"],
            [DOMAIN_TYPEHASH, int(chain_id), normalize_address(safe_address)],
        )
    )


def safe_tx_struct_hash(tx: FullSafeTransaction) -> bytes:
    return keccak256(
        encode(
            [
                "bytes32",
                "address",
                "uint256",
                "bytes32",
                "uint8",
                "uint256",
                "uint256",
                "uint256",
                "address",
                "address",
                "uint256",
            ],
            [
                SAFE_TX_TYPEHASH,
                tx.to,
                tx.value,
                keccak256(tx.data),
                int(tx.operation),
                tx.safe_tx_gas,
                tx.base_gas,
                tx.gas_price,
                tx.gas_token,
                tx.refund_receiver,
                tx.nonce,
            ],
        )
    )


def safe_tx_hash(tx: FullSafeTransaction) -> bytes:
    """Content-derived identity of *tx* (32 bytes)."""
    return keccak256(
        b"\x19\x01" + domain_separator(tx.chain_id, tx.safe_address) + safe_tx_struct_hash(tx)
    )


__all__ = [
    "DOMAIN_TYPEHASH",
    "SAFE_TX_TYPEHASH",
    "domain_separator",
    "safe_tx_struct_hash",
    "safe_tx_hash",
]
