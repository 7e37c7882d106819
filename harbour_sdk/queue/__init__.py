"""
Queue reconstruction and quorum evaluation.

    collector  -> paginated signature reads per (owner, nonce)
    resolver   -> safeTxHash -> stored transaction parameters
    assembler  -> merge, filter, group by nonce
    quorum     -> threshold check, authorization blob, signer recovery
"""

from .assembler import (AsyncQueueAssembler, QueueAccumulator, QueueAssembler,
                        find_group, reconstruct_queue, reconstruct_queue_async)
from .collector import PageCursor, SignatureCollector
from .quorum import (encode_authorization, is_executable, recover_signer,
                     verify_signatures)
from .resolver import TransactionResolver

__all__ = [
    "PageCursor",
    "SignatureCollector",
    "TransactionResolver",
    "QueueAccumulator",
    "QueueAssembler",
    "AsyncQueueAssembler",
    "reconstruct_queue",
    "reconstruct_queue_async",
    "find_group",
    "is_executable",
    "encode_authorization",
    "recover_signer",
    "verify_signatures",
]
