"""
harbour_sdk.contracts
=====================

Thin, read-mostly bindings for the three contracts the queue engine touches:

- `multicall`: Multicall3 `aggregate3` batch executor (one round trip per batch)
- `harbour`:   Harbour signature/transaction store
- `safe`:      Safe configuration reads and `execTransaction` calldata
"""

from .abi import Function
from .harbour import RETRIEVE_SIGNATURES, RETRIEVE_TRANSACTION, HarbourContract
from .multicall import (AsyncBatchCallExecutor, BatchCallExecutor, Call,
                        CallResult)
from .safe import AsyncSafeReader, SafeReader, encode_exec_transaction

__all__ = [
    "Function",
    "Call",
    "CallResult",
    "BatchCallExecutor",
    "AsyncBatchCallExecutor",
    "HarbourContract",
    "RETRIEVE_SIGNATURES",
    "RETRIEVE_TRANSACTION",
    "SafeReader",
    "AsyncSafeReader",
    "encode_exec_transaction",
]
