"""
harbour_sdk.rpc
---------------

HTTP JSON-RPC clients used to reach the chain hosting Harbour (and, for
configuration reads, the chain hosting the Safe).

    from harbour_sdk.rpc import RpcClient, AsyncRpcClient
    rpc = RpcClient(url="https://rpc.gnosischain.com")
"""

from __future__ import annotations

from .http import AsyncRpcClient, RpcClient

__all__ = ["RpcClient", "AsyncRpcClient"]
