from __future__ import annotations

"""
Transaction resolution: `safeTxHash` -> stored parameters.

Lookups for unknown hashes are not errors. Harbour answers them with
`stored = false`, and a failed or undecodable slot is folded into the same
"unstored" record, which the assembler drops.
"""

from typing import Dict, Iterable, List, Optional

from ..contracts.harbour import HarbourContract
from ..contracts.multicall import (AsyncBatchCallExecutor, BatchCallExecutor,
                                   Call, CallResult)
from ..errors import AbiError
from ..logging import get_logger
from ..types.core import TransactionRecord
from ..utils.bytes import ensure_bytes32, to_hex

log = get_logger(__name__)


class TransactionResolver:
    def __init__(self, harbour: Optional[HarbourContract] = None) -> None:
        self.harbour = harbour or HarbourContract()

    def call_for(self, safe_tx_hash: bytes) -> Call:
        return self.harbour.retrieve_transaction_call(safe_tx_hash)

    def absorb(self, safe_tx_hash: bytes, result: CallResult) -> TransactionRecord:
        if not result.has_data:
            log.debug("transactions.slot_empty", safe_tx_hash=to_hex(safe_tx_hash))
            return TransactionRecord.unstored(safe_tx_hash)
        try:
            return self.harbour.decode_transaction(safe_tx_hash, result.return_data)
        except (AbiError, ValueError) as e:
            log.warning("transactions.slot_undecodable", safe_tx_hash=to_hex(safe_tx_hash), error=str(e))
            return TransactionRecord.unstored(safe_tx_hash)

    def _absorb_all(self, hashes: List[bytes], results: List[CallResult]) -> Dict[bytes, TransactionRecord]:
        return {h: self.absorb(h, r) for h, r in zip(hashes, results)}

    def resolve_many(self, executor: BatchCallExecutor, identities: Iterable[bytes]) -> Dict[bytes, TransactionRecord]:
        """Resolve every distinct identity in one batch."""
        hashes = list(dict.fromkeys(ensure_bytes32(h) for h in identities))
        results = executor.execute([self.call_for(h) for h in hashes])
        return self._absorb_all(hashes, results)

    async def resolve_many_async(
        self, executor: AsyncBatchCallExecutor, identities: Iterable[bytes]
    ) -> Dict[bytes, TransactionRecord]:
        hashes = list(dict.fromkeys(ensure_bytes32(h) for h in identities))
        results = await executor.execute([self.call_for(h) for h in hashes])
        return self._absorb_all(hashes, results)

    def resolve(self, executor: BatchCallExecutor, safe_tx_hash: bytes) -> TransactionRecord:
        h = ensure_bytes32(safe_tx_hash)
        return self.resolve_many(executor, [h])[h]


__all__ = ["TransactionResolver"]
