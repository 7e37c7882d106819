"""
Types for the Harbour SDK (see `core`).
"""

from .core import (AccountIdentity, Address, ChainId, FullSafeTransaction,
                   HarbourSignature, NonceGroup, Operation, QueueEntry,
                   SafeConfiguration, SafeTransaction, SafeTxHash,
                   TransactionRecord, build_safe_transaction, sort_signatures)

__all__ = [
    "Address",
    "ChainId",
    "SafeTxHash",
    "Operation",
    "AccountIdentity",
    "SafeConfiguration",
    "HarbourSignature",
    "SafeTransaction",
    "FullSafeTransaction",
    "build_safe_transaction",
    "TransactionRecord",
    "QueueEntry",
    "NonceGroup",
    "sort_signatures",
]
