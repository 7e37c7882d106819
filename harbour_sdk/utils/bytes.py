from __future__ import annotations

from typing import Union

from eth_utils import is_address, to_checksum_address

BytesLike = Union[bytes, bytearray, memoryview]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """
    Ensure input is bytes.

    Accepts:
      - bytes / bytearray / memoryview  -> bytes(data)
      - str: treated as hex; optional '0x' prefix; even-length enforced

    Raises:
      ValueError on invalid hex strings.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return from_hex(data)
    raise TypeError(f"Unsupported type for ensure_bytes: {type(data)!r}")


def ensure_bytes32(data: Union[BytesLike, str, int]) -> bytes:
    """Coerce a hash-like value (hex, bytes or int) into exactly 32 bytes."""
    if isinstance(data, int):
        if data < 0 or data >= 1 << 256:
            raise ValueError("integer does not fit in 32 bytes")
        return data.to_bytes(32, "big")
    b = ensure_bytes(data)
    if len(b) != 32:
        raise ValueError(f"expected 32 bytes, got {len(b)}")
    return b


def to_hex(b: BytesLike, prefix: bool = True) -> str:
    """
    Bytes -> hex string (lowercase). Prefix with '0x' by default.
    """
    s = bytes(b).hex()
    return f"0x{s}" if prefix else s


def from_hex(s: str) -> bytes:
    """
    Hex string (optionally '0x' prefixed) -> bytes.

    Enforces even-length (nibbles must pair to bytes) and lowercase/uppercase agnostic.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if len(s) % 2 != 0:
        raise ValueError("hex string must have even length")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


# --- Addresses ----------------------------------------------------------------


def normalize_address(address: Union[str, BytesLike]) -> str:
    """
    Return the EIP-55 checksummed form of a 20-byte address.

    Accepts hex strings in any case or raw 20-byte values.
    """
    if isinstance(address, (bytes, bytearray, memoryview)):
        raw = bytes(address)
        if len(raw) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(raw)}")
        return to_checksum_address(raw)
    if not isinstance(address, str) or not is_address(address.lower()):
        raise ValueError(f"invalid address: {address!r}")
    return to_checksum_address(address.lower())


def address_bytes(address: str) -> bytes:
    """20-byte value of an address, used for ordering comparisons."""
    return from_hex(normalize_address(address))


def bytes32_to_address(word: Union[BytesLike, str]) -> str:
    """
    Take the low 20 bytes of a 32-byte storage word and return a checksummed
    address (e.g. Safe guard / fallback-handler slots).
    """
    b = ensure_bytes(word)
    if len(b) != 32:
        raise ValueError("Invalid bytes32 length")
    return to_checksum_address(b[12:])


__all__ = [
    "BytesLike",
    "ZERO_ADDRESS",
    "ensure_bytes",
    "ensure_bytes32",
    "to_hex",
    "from_hex",
    "normalize_address",
    "address_bytes",
    "bytes32_to_address",
]
