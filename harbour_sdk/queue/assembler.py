from __future__ import annotations

"""
Queue reconstruction.

One pass over a Safe's nonce window:

1. read every owner's signature list for every nonce in the window (batched,
   one round trip per page depth),
2. bucket signatures by (nonce, safeTxHash), one signature per signer,
3. resolve the distinct safeTxHashes to stored parameters (one batch),
4. drop buckets whose transaction Harbour does not hold,
5. emit the remaining buckets grouped by nonce.

Output ordering is deterministic: nonce ascending, then safeTxHash bytes
ascending, then signer address ascending. The result does not depend on owner
order or on the order in which signatures were submitted.

All pass state lives in a `QueueAccumulator` created per call; nothing is
shared between passes.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DEFAULT_PAGE_SIZE, HARBOUR_ADDRESS
from ..contracts.harbour import HarbourContract
from ..contracts.multicall import AsyncBatchCallExecutor, BatchCallExecutor
from ..logging import get_logger
from ..types.core import (HarbourSignature, NonceGroup, QueueEntry,
                          TransactionRecord, sort_signatures)
from ..utils.bytes import address_bytes, normalize_address, to_hex
from .collector import PageCursor, SignatureCollector
from .resolver import TransactionResolver

log = get_logger(__name__)

_BucketKey = Tuple[int, bytes]


class QueueAccumulator:
    """
    Fold state for one reconstruction pass.

    Buckets are keyed by (nonce, safeTxHash) and hold at most one signature
    per signer; a signer that shows up twice for the same identity keeps its
    first signature.
    """

    def __init__(self) -> None:
        self._buckets: Dict[_BucketKey, Dict[bytes, HarbourSignature]] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def add(self, nonce: int, signature: HarbourSignature) -> bool:
        """Record *signature* under its identity. False if the signer was already there."""
        bucket = self._buckets.setdefault((int(nonce), signature.tx_hash), {})
        signer = address_bytes(signature.signer)
        if signer in bucket:
            return False
        bucket[signer] = signature
        return True

    def add_page(self, cursor: PageCursor, signatures: Iterable[HarbourSignature]) -> None:
        for sig in signatures:
            self.add(cursor.nonce, sig)

    @property
    def identities(self) -> List[bytes]:
        """Distinct safeTxHashes seen so far, ascending."""
        return sorted({tx_hash for _nonce, tx_hash in self._buckets})

    def build(self, records: Mapping[bytes, TransactionRecord]) -> List[NonceGroup]:
        """Join buckets with their resolved records into ordered nonce groups."""
        grouped: Dict[int, List[QueueEntry]] = {}
        for nonce, tx_hash in sorted(self._buckets):
            record = records.get(tx_hash)
            if record is None or not record.stored or record.transaction is None:
                log.debug("queue.drop_unstored", nonce=nonce, safe_tx_hash=to_hex(tx_hash))
                continue
            entry = QueueEntry(
                safe_tx_hash=tx_hash,
                nonce=nonce,
                transaction=record.transaction,
                signatures=tuple(sort_signatures(list(self._buckets[(nonce, tx_hash)].values()))),
            )
            grouped.setdefault(nonce, []).append(entry)
        return [NonceGroup(nonce=n, entries=tuple(grouped[n])) for n in sorted(grouped)]


def _nonce_range(start_nonce: int, nonce_window: int) -> range:
    if start_nonce < 0:
        raise ValueError("start_nonce must be non-negative")
    if nonce_window < 0:
        raise ValueError("nonce_window must be non-negative")
    return range(int(start_nonce), int(start_nonce) + int(nonce_window))


class _AssemblerBase:
    def __init__(
        self,
        safe_address: str,
        chain_id: int,
        *,
        harbour_address: str = HARBOUR_ADDRESS,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        harbour = HarbourContract(harbour_address)
        self.safe_address = normalize_address(safe_address)
        self.chain_id = int(chain_id)
        self.collector = SignatureCollector(self.safe_address, self.chain_id, harbour=harbour, page_size=page_size)
        self.resolver = TransactionResolver(harbour)

    def _finish(
        self, acc: QueueAccumulator, records: Mapping[bytes, TransactionRecord], nonces: range, owners: int
    ) -> List[NonceGroup]:
        groups = acc.build(records)
        log.info(
            "queue.reconstruct",
            safe=self.safe_address,
            chain_id=self.chain_id,
            owners=owners,
            start_nonce=nonces.start,
            window=len(nonces),
            identities=len(records),
            groups=len(groups),
            entries=sum(len(g.entries) for g in groups),
        )
        return groups


class QueueAssembler(_AssemblerBase):
    """Synchronous reconstruction over a `BatchCallExecutor` on the Harbour chain."""

    def __init__(self, executor: BatchCallExecutor, safe_address: str, chain_id: int, **kwargs) -> None:
        super().__init__(safe_address, chain_id, **kwargs)
        self.executor = executor

    def assemble(self, owners: Sequence[str], start_nonce: int, nonce_window: int) -> List[NonceGroup]:
        nonces = _nonce_range(start_nonce, nonce_window)
        if not nonces or not owners:
            return []
        cursors = self.collector.first_cursors(owners, nonces)
        acc = QueueAccumulator()
        for cursor, sigs in self.collector.run(self.executor, cursors):
            acc.add_page(cursor, sigs)
        records = self.resolver.resolve_many(self.executor, acc.identities)
        return self._finish(acc, records, nonces, len({c.owner for c in cursors}))


class AsyncQueueAssembler(_AssemblerBase):
    """
    Asynchronous reconstruction. Cancelling the awaiting task abandons the
    pass; the accumulator is local to `assemble()` so nothing partial escapes.
    """

    def __init__(self, executor: AsyncBatchCallExecutor, safe_address: str, chain_id: int, **kwargs) -> None:
        super().__init__(safe_address, chain_id, **kwargs)
        self.executor = executor

    async def assemble(self, owners: Sequence[str], start_nonce: int, nonce_window: int) -> List[NonceGroup]:
        nonces = _nonce_range(start_nonce, nonce_window)
        if not nonces or not owners:
            return []
        cursors = self.collector.first_cursors(owners, nonces)
        acc = QueueAccumulator()
        async for cursor, sigs in self.collector.run_async(self.executor, cursors):
            acc.add_page(cursor, sigs)
        records = await self.resolver.resolve_many_async(self.executor, acc.identities)
        return self._finish(acc, records, nonces, len({c.owner for c in cursors}))


def reconstruct_queue(
    executor: BatchCallExecutor,
    safe_address: str,
    chain_id: int,
    owners: Sequence[str],
    start_nonce: int,
    nonce_window: int,
    *,
    harbour_address: str = HARBOUR_ADDRESS,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[NonceGroup]:
    """Functional form of `QueueAssembler(...).assemble(...)`."""
    assembler = QueueAssembler(
        executor, safe_address, chain_id, harbour_address=harbour_address, page_size=page_size
    )
    return assembler.assemble(owners, start_nonce, nonce_window)


async def reconstruct_queue_async(
    executor: AsyncBatchCallExecutor,
    safe_address: str,
    chain_id: int,
    owners: Sequence[str],
    start_nonce: int,
    nonce_window: int,
    *,
    harbour_address: str = HARBOUR_ADDRESS,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[NonceGroup]:
    assembler = AsyncQueueAssembler(
        executor, safe_address, chain_id, harbour_address=harbour_address, page_size=page_size
    )
    return await assembler.assemble(owners, start_nonce, nonce_window)


def find_group(groups: Sequence[NonceGroup], nonce: int) -> Optional[NonceGroup]:
    for group in groups:
        if group.nonce == nonce:
            return group
    return None


__all__ = [
    "QueueAccumulator",
    "QueueAssembler",
    "AsyncQueueAssembler",
    "reconstruct_queue",
    "reconstruct_queue_async",
    "find_group",
]
