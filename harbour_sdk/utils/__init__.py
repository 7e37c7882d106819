"""
Utility helpers for the Harbour SDK.

Re-exports:
- bytes: hex helpers, bytes32 coercion and address normalization
- hash: Keccak-256 convenience wrappers
"""

from .bytes import (ZERO_ADDRESS, address_bytes, bytes32_to_address,
                    ensure_bytes, ensure_bytes32, from_hex, normalize_address,
                    to_hex)
from .hash import keccak256, keccak256_hex, keccak256_text

__all__ = [
    # bytes
    "ZERO_ADDRESS",
    "to_hex",
    "from_hex",
    "ensure_bytes",
    "ensure_bytes32",
    "normalize_address",
    "address_bytes",
    "bytes32_to_address",
    # hash
    "keccak256",
    "keccak256_hex",
    "keccak256_text",
]
