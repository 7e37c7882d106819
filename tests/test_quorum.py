from __future__ import annotations

import itertools

import pytest

from fakes import FakeSigner, make_tx
from harbour_sdk.errors import AbiError, EncodingError
from harbour_sdk.queue.quorum import (encode_authorization, is_executable,
                                      recover_signer, verify_signatures)
from harbour_sdk.tx.hash import safe_tx_hash
from harbour_sdk.types.core import (HarbourSignature, QueueEntry,
                                    SafeTransaction)
from harbour_sdk.utils.bytes import address_bytes


@pytest.fixture
def tx_hash() -> bytes:
    return safe_tx_hash(make_tx(5))


@pytest.fixture
def sigs(signers, tx_hash):
    return [s.sign(tx_hash) for s in signers[:4]]


def _entry(signatures) -> QueueEntry:
    return QueueEntry(
        safe_tx_hash=b"\x00" * 32,
        nonce=0,
        transaction=SafeTransaction(to="0x2222222222222222222222222222222222222222"),
        signatures=tuple(signatures),
    )


def test_threshold_monotonic(sigs):
    for threshold in range(0, 6):
        previous = False
        for n in range(len(sigs) + 1):
            now = is_executable(_entry(sigs[:n]), threshold)
            assert now or not previous
            assert now == (n >= threshold)
            previous = now


def test_authorization_is_permutation_invariant(sigs):
    blobs = {encode_authorization(list(p)) for p in itertools.permutations(sigs)}
    assert len(blobs) == 1


def test_authorization_layout(sigs):
    blob = encode_authorization(sigs)
    assert len(blob) == 65 * len(sigs)
    ordered = sorted(sigs, key=lambda s: address_bytes(s.signer))
    for i, sig in enumerate(ordered):
        chunk = blob[65 * i:65 * (i + 1)]
        assert chunk[:32] == sig.r
        assert chunk[32:64] == sig.s
        assert chunk[64] in (27, 28)
        assert chunk[64] == 27 + (sig.vs[0] >> 7)


def test_authorization_expands_high_bit():
    h = b"\x01" * 32
    owner = FakeSigner(1).address
    vs = (1 << 255) | 0x1234
    sig = HarbourSignature(r=7, vs=vs, tx_hash=h, signer=owner)
    blob = encode_authorization([sig])
    assert blob[32:64] == (0x1234).to_bytes(32, "big")
    assert blob[64] == 28


def test_empty_authorization_raises():
    with pytest.raises(EncodingError):
        encode_authorization([])
    # EncodingError is an AbiError
    with pytest.raises(AbiError):
        encode_authorization(iter(()))


def test_recover_signer_round_trip(signers, tx_hash):
    for s in signers:
        assert recover_signer(s.sign(tx_hash)) == s.address


def test_verify_signatures_flags_misattributed(signers, sigs):
    honest = sigs[:2]
    forged = HarbourSignature(r=sigs[2].r, vs=sigs[2].vs, tx_hash=sigs[2].tx_hash, signer=signers[0].address)
    assert verify_signatures(honest) == []
    assert verify_signatures(honest + [forged]) == [forged]


def test_verify_signatures_flags_garbage(signers, tx_hash):
    junk = HarbourSignature(r=0, vs=0, tx_hash=tx_hash, signer=signers[0].address)
    assert verify_signatures([junk]) == [junk]
    with pytest.raises(ValueError):
        recover_signer(junk)
