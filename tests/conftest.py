"""
Shared pytest fixtures:
- An in-memory chain (Multicall3 + Harbour + Safes) and deterministic signers
- Sync/async batch executors bound to it
- Settings isolation (no HARBOUR_* leakage from the developer's environment)
"""
from __future__ import annotations

from typing import List

import pytest

from fakes import CHAIN_ID, SAFE, FakeChain, FakeSafe, FakeSigner
from harbour_sdk.config import get_settings
from harbour_sdk.contracts.multicall import AsyncBatchCallExecutor, BatchCallExecutor


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in (
        "HARBOUR_RPC_URL",
        "HARBOUR_CHAIN_ID",
        "HARBOUR_ADDRESS",
        "HARBOUR_MULTICALL_ADDRESS",
        "HARBOUR_PAGE_SIZE",
        "HARBOUR_MAX_NONCES",
        "HARBOUR_REQUEST_TIMEOUT",
        "HARBOUR_MAX_RETRIES",
        "HARBOUR_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)
    # keep a stray .env in the working tree out of the picture
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def signers() -> List[FakeSigner]:
    return [FakeSigner(i) for i in range(1, 6)]


@pytest.fixture
def chain(signers: List[FakeSigner]) -> FakeChain:
    c = FakeChain()
    c.add_safe(SAFE, FakeSafe(owners=[s.address for s in signers[:3]], threshold=2, nonce=5))
    return c


@pytest.fixture
def executor(chain: FakeChain) -> BatchCallExecutor:
    return BatchCallExecutor(chain.rpc())


@pytest.fixture
def async_executor(chain: FakeChain) -> AsyncBatchCallExecutor:
    return AsyncBatchCallExecutor(chain.async_rpc())


@pytest.fixture
def safe_address() -> str:
    return SAFE


@pytest.fixture
def chain_id() -> int:
    return CHAIN_ID
