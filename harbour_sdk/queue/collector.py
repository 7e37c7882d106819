from __future__ import annotations

"""
Signature collection from Harbour.

Each (owner, nonce) pair is read through `retrieveSignatures` with a cursor
that starts at offset 0 and advances page by page until a page comes back
empty or the collected count reaches the `totalCount` Harbour reports. All
cursors still open after a round share the next multicall, so a window of
N owners x M nonces costs one round trip per page depth, not N x M.

A slot that fails or returns nothing counts as "no signatures" for that
cursor. Signatures are attributed to the queried owner without recovering
the signer from the signature bytes.
"""

from dataclasses import dataclass
from typing import (AsyncIterator, Dict, Iterable, Iterator, List, Optional,
                    Sequence, Tuple)

from ..config import DEFAULT_PAGE_SIZE
from ..contracts.harbour import HarbourContract
from ..contracts.multicall import (AsyncBatchCallExecutor, BatchCallExecutor,
                                   Call, CallResult)
from ..errors import AbiError
from ..logging import get_logger
from ..types.core import HarbourSignature
from ..utils.bytes import normalize_address

log = get_logger(__name__)


@dataclass(frozen=True)
class PageCursor:
    owner: str
    nonce: int
    offset: int = 0


CollectedPage = Tuple[PageCursor, List[HarbourSignature]]


class SignatureCollector:
    """Paginated `retrieveSignatures` reader for one Safe on one chain."""

    def __init__(
        self,
        safe_address: str,
        chain_id: int,
        *,
        harbour: Optional[HarbourContract] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.safe_address = normalize_address(safe_address)
        self.chain_id = int(chain_id)
        self.harbour = harbour or HarbourContract()
        self.page_size = page_size

    # --- planning ----------------------------------------------------------

    @staticmethod
    def first_cursors(owners: Iterable[str], nonces: Iterable[int]) -> List[PageCursor]:
        """One cursor per distinct owner x nonce, nonce-major."""
        owner_list = list(dict.fromkeys(normalize_address(o) for o in owners))
        return [PageCursor(owner=o, nonce=n) for n in nonces for o in owner_list]

    def call_for(self, cursor: PageCursor) -> Call:
        return self.harbour.retrieve_signatures_call(
            cursor.owner,
            self.safe_address,
            self.chain_id,
            cursor.nonce,
            cursor.offset,
            self.page_size,
        )

    # --- folding -----------------------------------------------------------

    def absorb(self, cursor: PageCursor, result: CallResult) -> Tuple[List[HarbourSignature], Optional[PageCursor]]:
        """
        Decode one slot. Returns the page's signatures and the cursor for the
        next page, or None once this (owner, nonce) is exhausted.
        """
        if not result.has_data:
            log.debug("signatures.slot_empty", owner=cursor.owner, nonce=cursor.nonce, offset=cursor.offset)
            return [], None
        try:
            page, total = self.harbour.decode_signatures(result.return_data, cursor.owner)
        except (AbiError, ValueError) as e:
            log.warning(
                "signatures.slot_undecodable",
                owner=cursor.owner,
                nonce=cursor.nonce,
                offset=cursor.offset,
                error=str(e),
            )
            return [], None

        collected = cursor.offset + len(page)
        log.debug(
            "signatures.page",
            owner=cursor.owner,
            nonce=cursor.nonce,
            offset=cursor.offset,
            size=len(page),
            total=total,
        )
        if not page or collected >= total:
            return page, None
        return page, PageCursor(owner=cursor.owner, nonce=cursor.nonce, offset=collected)

    def _absorb_round(
        self, pending: Sequence[PageCursor], results: Sequence[CallResult]
    ) -> Tuple[List[CollectedPage], List[PageCursor]]:
        found: List[CollectedPage] = []
        following: List[PageCursor] = []
        for cursor, result in zip(pending, results):
            sigs, nxt = self.absorb(cursor, result)
            if sigs:
                found.append((cursor, sigs))
            if nxt is not None:
                following.append(nxt)
        return found, following

    # --- drivers -----------------------------------------------------------

    def run(self, executor: BatchCallExecutor, cursors: Sequence[PageCursor]) -> Iterator[CollectedPage]:
        """Drive *cursors* to exhaustion, one batch per round."""
        pending = list(cursors)
        while pending:
            results = executor.execute([self.call_for(c) for c in pending])
            found, pending = self._absorb_round(pending, results)
            yield from found

    async def run_async(
        self, executor: AsyncBatchCallExecutor, cursors: Sequence[PageCursor]
    ) -> AsyncIterator[CollectedPage]:
        pending = list(cursors)
        while pending:
            results = await executor.execute([self.call_for(c) for c in pending])
            found, pending = self._absorb_round(pending, results)
            for item in found:
                yield item

    def collect_many(
        self, executor: BatchCallExecutor, owners: Iterable[str], nonces: Iterable[int]
    ) -> Dict[Tuple[str, int], List[HarbourSignature]]:
        """Every signature for every (owner, nonce), keyed by checksummed owner and nonce."""
        cursors = self.first_cursors(owners, nonces)
        out: Dict[Tuple[str, int], List[HarbourSignature]] = {(c.owner, c.nonce): [] for c in cursors}
        for cursor, sigs in self.run(executor, cursors):
            out[(cursor.owner, cursor.nonce)].extend(sigs)
        return out

    def collect(self, executor: BatchCallExecutor, owner: str, nonce: int) -> List[HarbourSignature]:
        """All signatures *owner* submitted for this Safe at *nonce*."""
        owner = normalize_address(owner)
        return self.collect_many(executor, [owner], [nonce])[(owner, nonce)]


__all__ = ["PageCursor", "SignatureCollector"]
