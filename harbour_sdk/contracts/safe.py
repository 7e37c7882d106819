from __future__ import annotations

"""
Read-only bindings for a Safe account plus `execTransaction` calldata.

The configuration snapshot (owners, threshold, nonce, fallback handler, guard,
singleton, first page of modules) is read with a single multicall on the
Safe's own chain. Unlike queue reads, these calls are required: any failed
slot makes the whole read fail.
"""

from typing import Sequence, Union

from ..errors import RpcError
from ..logging import get_logger
from ..queue.quorum import encode_authorization
from ..types.core import (FullSafeTransaction, HarbourSignature,
                          SafeConfiguration, SafeTransaction)
from ..utils.bytes import bytes32_to_address, normalize_address
from .abi import Function
from .multicall import AsyncBatchCallExecutor, BatchCallExecutor, Call, CallResult

log = get_logger(__name__)

GET_OWNERS = Function("getOwners", (), ("address[]",))
GET_THRESHOLD = Function("getThreshold", (), ("uint256",))
NONCE = Function("nonce", (), ("uint256",))
GET_STORAGE_AT = Function("getStorageAt", ("uint256", "uint256"), ("bytes",))
GET_MODULES_PAGINATED = Function("getModulesPaginated", ("address", "uint256"), ("address[]", "address"))
EXEC_TRANSACTION = Function(
    "execTransaction",
    ("address", "uint256", "bytes", "uint8", "uint256", "uint256", "uint256", "address", "address", "bytes"),
    ("bool",),
)

# keccak256("fallback_manager.handler.address")
FALLBACK_HANDLER_SLOT = int("6c9a6c4a39284e37ed1cf53d337577d14212a4870fb976a4366c693b939918d5", 16)
# keccak256("guard_manager.guard.address")
GUARD_SLOT = int("4a204f620c8c5ccdca3fd54d003badd85ba500436a431f0cbda4f558c93c34c8", 16)
SINGLETON_SLOT = 0
SENTINEL_ADDRESS = "0x0000000000000000000000000000000000000001"
DEFAULT_MODULE_PAGE_SIZE = 50


def configuration_calls(safe_address: str, *, module_page_size: int = DEFAULT_MODULE_PAGE_SIZE) -> list[Call]:
    target = normalize_address(safe_address)

    def call(data: bytes) -> Call:
        return Call(target=target, call_data=data, allow_failure=False)

    return [
        call(GET_OWNERS.encode()),
        call(GET_THRESHOLD.encode()),
        call(GET_STORAGE_AT.encode(FALLBACK_HANDLER_SLOT, 1)),
        call(NONCE.encode()),
        call(GET_STORAGE_AT.encode(GUARD_SLOT, 1)),
        call(GET_STORAGE_AT.encode(SINGLETON_SLOT, 1)),
        call(GET_MODULES_PAGINATED.encode(SENTINEL_ADDRESS, int(module_page_size))),
    ]


def decode_configuration(results: Sequence[CallResult]) -> SafeConfiguration:
    if len(results) != 7 or not all(r.has_data for r in results):
        raise RpcError(code=-32603, message="Safe configuration read failed", method="getSafeConfiguration")
    (owners,) = GET_OWNERS.decode(results[0].return_data)
    (threshold,) = GET_THRESHOLD.decode(results[1].return_data)
    (fallback_word,) = GET_STORAGE_AT.decode(results[2].return_data)
    (nonce,) = NONCE.decode(results[3].return_data)
    (guard_word,) = GET_STORAGE_AT.decode(results[4].return_data)
    (singleton_word,) = GET_STORAGE_AT.decode(results[5].return_data)
    modules, _next = GET_MODULES_PAGINATED.decode(results[6].return_data)
    return SafeConfiguration(
        owners=tuple(normalize_address(o) for o in owners),
        threshold=int(threshold),
        nonce=int(nonce),
        fallback_handler=bytes32_to_address(fallback_word),
        guard=bytes32_to_address(guard_word),
        singleton=bytes32_to_address(singleton_word),
        modules=tuple(normalize_address(m) for m in modules),
    )


class SafeReader:
    """Reads Safe configuration through a batch executor on the Safe's chain."""

    def __init__(self, executor: BatchCallExecutor, *, module_page_size: int = DEFAULT_MODULE_PAGE_SIZE) -> None:
        self._executor = executor
        self._module_page_size = module_page_size

    def get_configuration(self, safe_address: str) -> SafeConfiguration:
        results = self._executor.execute(configuration_calls(safe_address, module_page_size=self._module_page_size))
        return _logged(safe_address, decode_configuration(results))


class AsyncSafeReader:
    def __init__(self, executor: AsyncBatchCallExecutor, *, module_page_size: int = DEFAULT_MODULE_PAGE_SIZE) -> None:
        self._executor = executor
        self._module_page_size = module_page_size

    async def get_configuration(self, safe_address: str) -> SafeConfiguration:
        calls = configuration_calls(safe_address, module_page_size=self._module_page_size)
        return _logged(safe_address, decode_configuration(await self._executor.execute(calls)))


def _logged(safe_address: str, config: SafeConfiguration) -> SafeConfiguration:
    log.debug(
        "safe.configuration",
        safe=normalize_address(safe_address),
        owners=len(config.owners),
        threshold=config.threshold,
        nonce=config.nonce,
    )
    return config


def encode_exec_transaction(
    transaction: Union[SafeTransaction, FullSafeTransaction],
    signatures: Union[bytes, Sequence[HarbourSignature]],
) -> bytes:
    """
    Calldata for `Safe.execTransaction(...)`.

    *signatures* is either a ready authorization blob or the collected
    signatures (encoded with `encode_authorization`).
    """
    if isinstance(signatures, (bytes, bytearray)):
        blob = bytes(signatures)
    else:
        blob = encode_authorization(signatures)
    return EXEC_TRANSACTION.encode(
        transaction.to,
        transaction.value,
        transaction.data,
        int(transaction.operation),
        transaction.safe_tx_gas,
        transaction.base_gas,
        transaction.gas_price,
        transaction.gas_token,
        transaction.refund_receiver,
        blob,
    )


__all__ = [
    "GET_OWNERS",
    "GET_THRESHOLD",
    "NONCE",
    "GET_STORAGE_AT",
    "GET_MODULES_PAGINATED",
    "EXEC_TRANSACTION",
    "FALLBACK_HANDLER_SLOT",
    "GUARD_SLOT",
    "SINGLETON_SLOT",
    "SENTINEL_ADDRESS",
    "configuration_calls",
    "decode_configuration",
    "SafeReader",
    "AsyncSafeReader",
    "encode_exec_transaction",
]
