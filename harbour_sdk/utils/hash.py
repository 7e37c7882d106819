from __future__ import annotations

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike, ensure_bytes, to_hex

# --- Keccak-256 (Ethereum-style) ----------------------------------------------
# hashlib's sha3_256 is NIST SHA3 with different padding; Ethereum hashes
# (selectors, EIP-712, safeTxHash) need the original Keccak-256.


def keccak256(data: BytesLike | str) -> bytes:
    """Return Keccak-256 digest of *data* (bytes or 0x-hex)."""
    h = _keccak.new(digest_bits=256)
    h.update(ensure_bytes(data))
    return h.digest()


def keccak256_hex(data: BytesLike | str, *, prefix: bool = True) -> str:
    """Return hex string of Keccak-256 digest (0x-prefixed by default)."""
    return to_hex(keccak256(data), prefix=prefix)


def keccak256_text(text: str) -> bytes:
    """Keccak-256 of a UTF-8 string (type strings, function signatures)."""
    return keccak256(text.encode("utf-8"))


__all__ = ["keccak256", "keccak256_hex", "keccak256_text"]
