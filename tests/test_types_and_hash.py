from __future__ import annotations

import pytest

from fakes import CHAIN_ID, SAFE, make_tx
from harbour_sdk.tx.hash import (DOMAIN_TYPEHASH, SAFE_TX_TYPEHASH,
                                 domain_separator, safe_tx_hash)
from harbour_sdk.types.core import (FullSafeTransaction, HarbourSignature,
                                    Operation, SafeTransaction,
                                    TransactionRecord, build_safe_transaction)
from harbour_sdk.utils.bytes import (ZERO_ADDRESS, bytes32_to_address,
                                     ensure_bytes32, from_hex,
                                     normalize_address, to_hex)
from harbour_sdk.utils.hash import keccak256, keccak256_hex

# --- hashing ----------------------------------------------------------------


def test_keccak_vectors():
    assert keccak256_hex(b"") == "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    assert keccak256(b"abc").hex() == "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"


def test_typehashes():
    assert DOMAIN_TYPEHASH.hex() == "47e79534a245952e8b16893a336b85a3d9ea9fa8c573f3d803afb92a79469218"
    assert SAFE_TX_TYPEHASH.hex() == "bb8310d486368db6bd6f849402fdd73ad53d316b5a4b2644ad6efe0f941286d8"


def test_safe_tx_hash_is_pure_function_of_content():
    a = make_tx(3, value=1, data=b"\xab")
    b = build_safe_transaction(
        chain_id=CHAIN_ID, safe_address=SAFE.lower(), to=a.to.lower(), value=1, data="0xab", nonce=3
    )
    assert safe_tx_hash(a) == safe_tx_hash(b)
    assert len(safe_tx_hash(a)) == 32


@pytest.mark.parametrize(
    "kwargs",
    [
        {"nonce": 4},
        {"value": 2},
        {"data": b"\xac"},
        {"chain_id": 1},
        {"safe": "0x9999999999999999999999999999999999999999"},
    ],
)
def test_safe_tx_hash_binds_every_field(kwargs):
    base = {"nonce": 3, "value": 1, "data": b"\xab"}
    changed = {**base, **kwargs}
    assert safe_tx_hash(make_tx(**base)) != safe_tx_hash(make_tx(**changed))


def test_domain_separator_depends_on_chain_and_safe():
    assert domain_separator(1, SAFE) != domain_separator(2, SAFE)
    assert domain_separator(1, SAFE) != domain_separator(1, ZERO_ADDRESS)


# --- bytes / addresses ------------------------------------------------------


def test_normalize_address():
    lower = "0xca11bde05977b3631167028862be2a173976ca11"
    assert normalize_address(lower) == "0xcA11bde05977b3631167028862bE2a173976CA11"
    assert normalize_address(from_hex(lower)) == normalize_address(lower)
    with pytest.raises(ValueError):
        normalize_address("0x1234")
    with pytest.raises(ValueError):
        normalize_address(b"\x00" * 19)


def test_bytes_helpers():
    assert ensure_bytes32(1) == b"\x00" * 31 + b"\x01"
    assert ensure_bytes32("0x" + "ff" * 32) == b"\xff" * 32
    with pytest.raises(ValueError):
        ensure_bytes32(b"\x00" * 31)
    with pytest.raises(ValueError):
        from_hex("0xabc")
    assert to_hex(b"\x01\x02") == "0x0102"
    word = b"\x00" * 12 + b"\x11" * 20
    assert bytes32_to_address(word) == normalize_address("0x" + "11" * 20)


# --- models -----------------------------------------------------------------


def test_compact_signature_expansion():
    sig = HarbourSignature.from_rsv(5, 9, 28, tx_hash=b"\x01" * 32, signer="0x" + "aa" * 20)
    assert sig.y_parity == 1 and sig.v == 28
    assert sig.s == (9).to_bytes(32, "big")
    full = sig.to_full_signature()
    assert full == (5).to_bytes(32, "big") + (9).to_bytes(32, "big") + bytes([28])
    assert HarbourSignature.from_rsv(5, 9, 0, tx_hash=b"\x01" * 32, signer="0x" + "aa" * 20).v == 27


def test_compact_signature_rejects_bad_recovery_id():
    with pytest.raises(ValueError):
        HarbourSignature.from_rsv(1, 1, 29, tx_hash=b"\x01" * 32, signer="0x" + "aa" * 20)


def test_transaction_defaults_and_validation():
    tx = SafeTransaction(to="0x" + "22" * 20)
    assert tx.value == 0 and tx.data == b"" and tx.operation is Operation.CALL
    assert tx.gas_token == ZERO_ADDRESS and tx.refund_receiver == ZERO_ADDRESS
    with pytest.raises(ValueError):
        SafeTransaction(to="0x" + "22" * 20, value=-1)
    with pytest.raises(ValueError):
        SafeTransaction(to="0x" + "22" * 20, operation=2)


def test_full_transaction_dict_and_account():
    tx = make_tx(7, value=3)
    assert isinstance(tx, FullSafeTransaction)
    assert tx.account.chain_id == CHAIN_ID
    d = tx.to_dict()
    assert d["nonce"] == "7" and d["value"] == "3" and d["data"] == "0x"


def test_unstored_record():
    r = TransactionRecord.unstored("0x" + "01" * 32)
    assert r.to_dict() == {"safeTxHash": "0x" + "01" * 32, "stored": False}
