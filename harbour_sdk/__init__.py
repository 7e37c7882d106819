"""
Harbour SDK (Python)
Queue reconstruction and quorum evaluation for Safe multisig transactions
whose signatures are collected on the Harbour contract.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import HarbourSettings, get_settings  # noqa: F401
from .errors import (  # noqa: F401
    AbiError,
    ConfigError,
    EncodingError,
    HarbourSdkError,
    RpcError,
    TransportError,
)

# RPC
from .rpc.http import AsyncRpcClient, RpcClient  # noqa: F401

# Types
from .types.core import (  # noqa: F401
    FullSafeTransaction,
    HarbourSignature,
    NonceGroup,
    Operation,
    QueueEntry,
    SafeConfiguration,
    SafeTransaction,
    TransactionRecord,
    build_safe_transaction,
)

# Contracts
from .contracts.multicall import (  # noqa: F401
    AsyncBatchCallExecutor,
    BatchCallExecutor,
    Call,
    CallResult,
)
from .contracts.safe import encode_exec_transaction  # noqa: F401

# Queue engine
from .queue.assembler import reconstruct_queue  # noqa: F401
from .queue.quorum import (  # noqa: F401
    encode_authorization,
    is_executable,
    recover_signer,
    verify_signatures,
)

# Tx identity
from .tx.hash import safe_tx_hash  # noqa: F401

# Client
from .client import AsyncHarbourClient, HarbourClient  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "HarbourSettings", "get_settings",
    "HarbourSdkError", "RpcError", "TransportError", "AbiError", "EncodingError", "ConfigError",
    # RPC
    "RpcClient", "AsyncRpcClient",
    # Types
    "Operation", "HarbourSignature", "SafeTransaction", "FullSafeTransaction",
    "build_safe_transaction", "TransactionRecord", "QueueEntry", "NonceGroup",
    "SafeConfiguration",
    # Contracts
    "Call", "CallResult", "BatchCallExecutor", "AsyncBatchCallExecutor",
    "encode_exec_transaction",
    # Queue
    "reconstruct_queue", "is_executable", "encode_authorization",
    "recover_signer", "verify_signatures",
    # Tx
    "safe_tx_hash",
    # Client
    "HarbourClient", "AsyncHarbourClient",
]
