from __future__ import annotations

import pytest

from fakes import CHAIN_ID, SAFE, make_tx
from harbour_sdk.contracts.multicall import CallResult
from harbour_sdk.queue.collector import PageCursor, SignatureCollector
from harbour_sdk.tx.hash import safe_tx_hash
from harbour_sdk.types.core import HarbourSignature
from harbour_sdk.utils.hash import keccak256


def _fill(chain, owner: str, nonce: int, n: int) -> list:
    """Append *n* synthetic signatures to one owner's list (no signing needed)."""
    sigs = []
    for i in range(n):
        sig = HarbourSignature(r=i + 1, vs=i + 2, tx_hash=keccak256(i.to_bytes(4, "big")), signer=owner)
        chain.add_signature(sig, safe=SAFE, chain_id=CHAIN_ID, nonce=nonce)
        sigs.append(sig)
    return sigs


def test_collect_single_page(chain, executor, signers):
    tx = make_tx(5)
    sig = chain.submit(signers[0], tx)
    collector = SignatureCollector(SAFE, CHAIN_ID)
    assert collector.collect(executor, signers[0].address, 5) == [sig]


def test_collect_reads_past_first_page(chain, executor, signers):
    owner = signers[0].address
    expected = _fill(chain, owner, 5, 250)
    collector = SignatureCollector(SAFE, CHAIN_ID)

    got = collector.collect(executor, owner, 5)

    assert got == expected
    assert [start for (_o, _n, start, _c) in chain.signature_page_requests] == [0, 100, 200]
    assert chain.round_trips == 3


def test_exact_multiple_of_page_size_stops_on_total(chain, executor, signers):
    owner = signers[0].address
    _fill(chain, owner, 5, 6)
    collector = SignatureCollector(SAFE, CHAIN_ID, page_size=3)
    assert len(collector.collect(executor, owner, 5)) == 6
    # total reached after the second page; no trailing empty read
    assert len(chain.signature_page_requests) == 2


def test_cursors_advance_together(chain, executor, signers):
    a, b = signers[0].address, signers[1].address
    _fill(chain, a, 5, 7)
    _fill(chain, b, 6, 2)
    collector = SignatureCollector(SAFE, CHAIN_ID, page_size=3)

    out = collector.collect_many(executor, [a, b], [5, 6])

    assert len(out[(a, 5)]) == 7
    assert len(out[(b, 6)]) == 2
    assert out[(a, 6)] == [] and out[(b, 5)] == []
    # round 1: 4 cursors; round 2 and 3: only (a, 5) is still open
    assert chain.batch_sizes == [4, 1, 1]


def test_signatures_attributed_to_queried_owner(chain, executor, signers):
    # a signature made by signer 2 but filed under owner 1
    tx = make_tx(5)
    foreign = signers[1].sign(safe_tx_hash(tx))
    misfiled = HarbourSignature(r=foreign.r, vs=foreign.vs, tx_hash=foreign.tx_hash, signer=signers[0].address)
    chain.add_signature(misfiled, safe=SAFE, chain_id=CHAIN_ID, nonce=5)

    (got,) = SignatureCollector(SAFE, CHAIN_ID).collect(executor, signers[0].address.lower(), 5)
    assert got.signer == signers[0].address


def test_failed_slot_counts_as_empty(chain, executor, signers):
    a, b = signers[0].address, signers[1].address
    _fill(chain, a, 5, 1)
    _fill(chain, b, 5, 1)
    chain.reverting_signers.add(a)

    out = SignatureCollector(SAFE, CHAIN_ID).collect_many(executor, [a, b], [5])
    assert out[(a, 5)] == []
    assert len(out[(b, 5)]) == 1


def test_other_safe_and_chain_are_not_mixed_in(chain, executor, signers):
    owner = signers[0].address
    chain.submit(signers[0], make_tx(5, chain_id=1))
    chain.submit(signers[0], make_tx(5, safe="0x4444444444444444444444444444444444444444"))
    assert SignatureCollector(SAFE, CHAIN_ID).collect(executor, owner, 5) == []


def test_first_cursors_dedupe_owners(signers):
    a = signers[0].address
    cursors = SignatureCollector.first_cursors([a, a.lower(), signers[1].address], [1, 2])
    assert cursors == [
        PageCursor(a, 1),
        PageCursor(signers[1].address, 1),
        PageCursor(a, 2),
        PageCursor(signers[1].address, 2),
    ]


def test_absorb_undecodable_data_closes_cursor(signers):
    collector = SignatureCollector(SAFE, CHAIN_ID)
    cursor = PageCursor(signers[0].address, 5)
    sigs, nxt = collector.absorb(cursor, CallResult(success=True, return_data=b"\x00" * 7))
    assert sigs == [] and nxt is None


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        SignatureCollector(SAFE, CHAIN_ID, page_size=0)
