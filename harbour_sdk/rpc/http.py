from __future__ import annotations

"""
HTTP JSON-RPC clients (sync and async) built on httpx.

- Minimal surface: `request()` for any method, `eth_call()` for read-only
  contract calls (what the queue engine needs).
- Optional bounded retries on transient transport failures and 429/502/503/504.
  JSON-RPC application errors (including reverts) are never retried.
- Transport failures surface as `TransportError`; error objects as `RpcError`.

Example:
    from harbour_sdk.rpc.http import RpcClient
    with RpcClient("https://rpc.gnosischain.com") as rpc:
        raw = rpc.eth_call("0xcA11bde05977b3631167028862bE2a173976CA11", calldata)
"""

import asyncio
import json
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

import httpx

from ..errors import RpcError, TransportError, from_jsonrpc_error
from ..logging import get_logger
from ..utils.bytes import BytesLike, from_hex, normalize_address, to_hex
from ..version import __version__ as SDK_VERSION

log = get_logger(__name__)

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]
BlockTag = Union[str, int]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


class _RetriableHttpStatus(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status


def _block_param(block: BlockTag) -> str:
    if isinstance(block, int):
        return hex(block)
    return block


def _make_payload(method: str, params: Params, rid: Union[int, str]) -> Dict[str, Any]:
    if params is None:
        params = []
    elif isinstance(params, Mapping):
        params = dict(params)
    elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
        params = list(params)
    else:
        # Coerce single param into positional list
        params = [params]  # type: ignore[list-item]
    return {"jsonrpc": "2.0", "id": rid, "method": method, "params": params}


def _parse_response(r: httpx.Response, method: str) -> JSON:
    try:
        resp = r.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RpcError(
            code=-32603,
            message="Non-JSON response from RPC",
            method=method,
            data=f"HTTP {r.status_code}: {r.text[:256]}",
            http_status=r.status_code,
        ) from e
    if not isinstance(resp, dict):
        raise RpcError(code=-32603, message="Invalid JSON-RPC response type", method=method, data=type(resp).__name__)
    if resp.get("error") is not None:
        raise from_jsonrpc_error(resp["error"], method=method, request_id=resp.get("id"), http_status=r.status_code)
    if "result" not in resp:
        raise RpcError(code=-32603, message="Malformed JSON-RPC response", method=method, data=resp)
    return resp["result"]


def _decode_call_result(result: JSON, method: str) -> bytes:
    if not isinstance(result, str):
        raise RpcError(code=-32603, message="eth_call result is not a hex string", method=method, data=result)
    try:
        return from_hex(result)
    except ValueError as e:
        raise RpcError(code=-32603, message="eth_call result is not valid hex", method=method, data=result) from e


def _call_params(to: str, data: BytesLike, block: BlockTag) -> List[Any]:
    return [{"to": normalize_address(to), "data": to_hex(data)}, _block_param(block)]


@dataclass
class _ClientOptions:
    url: str
    timeout: float = 30.0
    max_retries: int = 0
    backoff_base: float = 0.15
    backoff_factor: float = 1.8
    backoff_jitter: float = 0.2
    headers: Optional[Mapping[str, str]] = None
    _id_counter: Iterator[int] = field(default_factory=lambda: count(start=_now_ms()))

    def merged_headers(self) -> Dict[str, str]:
        merged: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"harbour-sdk-python/{SDK_VERSION}",
        }
        if self.headers:
            merged.update(dict(self.headers))
        return merged

    def next_payload(self, method: str, params: Params) -> Dict[str, Any]:
        return _make_payload(method, params, next(self._id_counter))

    def backoff(self, attempt: int) -> float:
        return _jitter_backoff(self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter)


@dataclass
class RpcClient(_ClientOptions):
    """Synchronous JSON-RPC 2.0 client over HTTP."""

    transport: Optional[httpx.BaseTransport] = None
    _client: Optional[httpx.Client] = field(init=False, default=None)

    def __post_init__(self) -> None:
        self._client = httpx.Client(
            timeout=self.timeout,
            headers=self.merged_headers(),
            transport=self.transport,
        )

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # --- public API ------------------------------------------------------

    def request(self, method: str, params: Params = None) -> JSON:
        """Perform a single JSON-RPC request and return `result` or raise RpcError."""
        payload = self.next_payload(method, params)
        return self._send_with_retries(payload)

    def eth_call(self, to: str, data: BytesLike, block: BlockTag = "latest") -> bytes:
        """Read-only contract call; returns raw return data."""
        result = self.request("eth_call", _call_params(to, data, block))
        return _decode_call_result(result, "eth_call")

    def chain_id(self) -> int:
        return int(str(self.request("eth_chainId")), 16)

    # --- internals -------------------------------------------------------

    def _send_with_retries(self, payload: Dict[str, Any]) -> JSON:
        method = payload["method"]
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):  # N retries -> N+1 attempts
            try:
                return self._send_once(payload)
            except (httpx.TransportError, _RetriableHttpStatus) as e:
                last_exc = e
                if attempt > self.max_retries:
                    break
                delay = self.backoff(attempt)
                log.debug("rpc.retry", method=method, attempt=attempt, delay=round(delay, 3), error=str(e))
                time.sleep(delay)
        raise TransportError(method=method, data=str(last_exc)) from last_exc

    def _send_once(self, payload: Dict[str, Any]) -> JSON:
        if self._client is None:
            raise RpcError(code=-32603, message="client is closed", method=payload["method"])
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        r = self._client.post(self.url, content=body)
        if _is_retriable_http(r.status_code):
            raise _RetriableHttpStatus(r.status_code)
        return _parse_response(r, payload["method"])


@dataclass
class AsyncRpcClient(_ClientOptions):
    """
    Asynchronous JSON-RPC 2.0 client over HTTP.

    Cancelling the awaiting task aborts the in-flight request; nothing is
    cached between calls.
    """

    transport: Optional[httpx.AsyncBaseTransport] = None
    _client: Optional[httpx.AsyncClient] = field(init=False, default=None)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.merged_headers(),
            transport=self.transport,
        )

    async def __aenter__(self) -> "AsyncRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, params: Params = None) -> JSON:
        payload = self.next_payload(method, params)
        return await self._send_with_retries(payload)

    async def eth_call(self, to: str, data: BytesLike, block: BlockTag = "latest") -> bytes:
        result = await self.request("eth_call", _call_params(to, data, block))
        return _decode_call_result(result, "eth_call")

    async def _send_with_retries(self, payload: Dict[str, Any]) -> JSON:
        method = payload["method"]
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):
            try:
                return await self._send_once(payload)
            except (httpx.TransportError, _RetriableHttpStatus) as e:
                last_exc = e
                if attempt > self.max_retries:
                    break
                delay = self.backoff(attempt)
                log.debug("rpc.retry", method=method, attempt=attempt, delay=round(delay, 3), error=str(e))
                await asyncio.sleep(delay)
        raise TransportError(method=method, data=str(last_exc)) from last_exc

    async def _send_once(self, payload: Dict[str, Any]) -> JSON:
        if self._client is None:
            raise RpcError(code=-32603, message="client is closed", method=payload["method"])
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        r = await self._client.post(self.url, content=body)
        if _is_retriable_http(r.status_code):
            raise _RetriableHttpStatus(r.status_code)
        return _parse_response(r, payload["method"])


__all__ = ["RpcClient", "AsyncRpcClient", "BlockTag"]
