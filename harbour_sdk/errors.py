"""
Typed error classes for the Harbour SDK.

These are raised by rpc/http, the multicall executor, the ABI helpers and the
signature encoder so callers can catch specific failure modes while still
being able to catch the base `HarbourSdkError`.

Per-call failures inside a multicall batch are *not* exceptions: they surface
as ``CallResult(success=False)`` and the queue engine treats them as "no data".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "HarbourSdkError",
    "RpcError",
    "TransportError",
    "AbiError",
    "EncodingError",
    "ConfigError",
    "JsonRpcCode",
    "from_jsonrpc_error",
]


class HarbourSdkError(Exception):
    """Base class for all SDK errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 spec
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000
    TRANSPORT_FAILED = -32098

    # Geth-style revert of an eth_call
    EXECUTION_REVERTED = 3


@dataclass(eq=False)
class RpcError(HarbourSdkError):
    """Raised when a JSON-RPC call returns an error object or a malformed body."""

    code: int
    message: str
    method: Optional[str] = None
    data: Optional[Any] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


@dataclass(eq=False)
class TransportError(RpcError):
    """
    The round trip itself failed (connection refused, DNS, timeout, 5xx after
    the transport's own retries). A queue reconstruction that hits this fails
    as a whole; the engine never retries it.
    """

    code: int = JsonRpcCode.TRANSPORT_FAILED
    message: str = "RPC transport failed"


@dataclass(eq=False)
class AbiError(HarbourSdkError):
    """
    Raised when ABI encoding/decoding fails for a whole request or response.

    Typical causes: wrong arg types, out-of-range integers, a multicall reply
    that does not decode as ``(bool,bytes)[]``.
    """

    message: str
    function: Optional[str] = None
    details: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [fn={self.function}]" if self.function else ""
        tail = f" ({self.details})" if self.details else ""
        return f"{type(self).__name__}{where}: {self.message}{tail}"


@dataclass(eq=False)
class EncodingError(AbiError):
    """Raised when an authorization blob cannot be produced (e.g. no signatures)."""


@dataclass(eq=False)
class ConfigError(HarbourSdkError):
    message: str
    field: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


def from_jsonrpc_error(
    err_obj: Dict[str, Any],
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    code = int(err_obj.get("code", JsonRpcCode.SERVER_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    return RpcError(
        code=code,
        message=message,
        method=method,
        data=err_obj.get("data"),
        request_id=request_id,
        http_status=http_status,
    )
