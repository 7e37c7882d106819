from __future__ import annotations

"""
Quorum evaluation and authorization encoding.

`is_executable` compares the number of collected signatures with the Safe
threshold. `encode_authorization` turns the collected compact signatures into
the byte string `execTransaction` expects:

- signatures sorted ascending by signer address (the Safe rejects any other
  order, even when every signature is valid),
- each compact `(r, vs)` expanded to `r || s || v` with
  `s = vs & (2**255 - 1)` and `v = 27 + (vs >> 255)`,
- the 65-byte chunks concatenated.

Signer attribution comes from which owner's Harbour list a signature was read
from. `recover_signer` / `verify_signatures` check it against the signature
bytes for callers that want to know before submitting; reconstruction never
calls them.
"""

from typing import Iterable, List, Sequence

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from ..errors import EncodingError
from ..types.core import HarbourSignature, QueueEntry, sort_signatures
from ..utils.bytes import normalize_address


def is_executable(entry: QueueEntry, threshold: int) -> bool:
    """True once the entry carries at least *threshold* signatures."""
    return len(entry.signatures) >= threshold


def encode_authorization(signatures: Iterable[HarbourSignature]) -> bytes:
    """Concatenated 65-byte signatures, ordered by signer; raises on empty input."""
    ordered = sort_signatures(list(signatures))
    if not ordered:
        raise EncodingError("cannot encode an authorization without signatures", function="encode_authorization")
    return b"".join(sig.to_full_signature() for sig in ordered)


def recover_signer(signature: HarbourSignature) -> str:
    """
    Address that produced *signature* over its `tx_hash`.

    Raises ValueError if the signature bytes are not a valid secp256k1
    signature.
    """
    try:
        sig = keys.Signature(
            vrs=(
                signature.y_parity,
                int.from_bytes(signature.r, "big"),
                int.from_bytes(signature.s, "big"),
            )
        )
        public_key = sig.recover_public_key_from_msg_hash(signature.tx_hash)
    except (BadSignature, ValidationError) as e:
        raise ValueError(f"unrecoverable signature: {e}") from e
    return normalize_address(public_key.to_checksum_address())


def verify_signatures(signatures: Sequence[HarbourSignature]) -> List[HarbourSignature]:
    """
    Return the signatures whose recovered address differs from the claimed
    signer (including unrecoverable ones). An empty list means every
    attribution checks out.
    """
    mismatched: List[HarbourSignature] = []
    for sig in signatures:
        try:
            recovered = recover_signer(sig)
        except ValueError:
            mismatched.append(sig)
            continue
        if recovered != sig.signer:
            mismatched.append(sig)
    return mismatched


__all__ = ["is_executable", "encode_authorization", "recover_signer", "verify_signatures"]
