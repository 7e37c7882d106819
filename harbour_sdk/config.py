from __future__ import annotations

"""
Configuration loader for the Harbour SDK.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `get_settings()` accessor and `with_overrides()` for tests
  and one-off scripts.

Environment variables:
    HARBOUR_RPC_URL               (str, default Gnosis Chain public RPC) : chain hosting Harbour
    HARBOUR_CHAIN_ID              (int or 0x-hex, default 100)
    HARBOUR_ADDRESS               (address)   : Harbour contract
    HARBOUR_MULTICALL_ADDRESS     (address)   : Multicall3 deployment
    HARBOUR_PAGE_SIZE             (int, default 100) : retrieveSignatures page size
    HARBOUR_MAX_NONCES            (int, default 5)   : default nonce window
    HARBOUR_REQUEST_TIMEOUT       (float seconds, default 10)
    HARBOUR_MAX_RETRIES           (int, default 0)   : transport-level retries only
    HARBOUR_USER_AGENT            (str)

Notes
-----
- Addresses are normalized to their EIP-55 checksum form.
- The queue engine itself never retries; `max_retries` only configures the
  HTTP transport.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .utils.bytes import normalize_address
from .version import __version__

DEFAULT_RPC_URL = "https://rpc.gnosischain.com"
HARBOUR_CHAIN_ID = 100
HARBOUR_ADDRESS = "0x5E669c1f2F9629B22dd05FBff63313a49f87D4e6"
# https://github.com/mds1/multicall3 (same address on all chains)
MULTICALL_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_NONCES = 5


class HarbourSettings(BaseSettings):
    """Strongly typed SDK settings."""

    model_config = SettingsConfigDict(
        env_prefix="HARBOUR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    rpc_url: str = Field(default=DEFAULT_RPC_URL, description="JSON-RPC endpoint of the Harbour chain.")
    chain_id: int = Field(default=HARBOUR_CHAIN_ID, description="Chain id hosting Harbour.")
    # env var is HARBOUR_ADDRESS (prefix + "address")
    address: str = Field(default=HARBOUR_ADDRESS, description="Harbour contract address.")
    multicall_address: str = Field(default=MULTICALL_ADDRESS)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, le=10_000)
    max_nonces: int = Field(default=DEFAULT_MAX_NONCES, ge=1, le=1_000)
    request_timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=0, ge=0, le=10)
    user_agent: str = Field(default=f"harbour-sdk-py/{__version__}")

    @field_validator("rpc_url")
    @classmethod
    def _check_scheme(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://, got: {v!r}")
        return v

    @field_validator("chain_id", mode="before")
    @classmethod
    def _parse_chain_id(cls, v: Any) -> int:
        """Accepts int, decimal str, or 0x-hex str."""
        if isinstance(v, str):
            s = v.strip()
            return int(s, 16) if s.lower().startswith("0x") else int(s, 10)
        return v

    @field_validator("address", "multicall_address")
    @classmethod
    def _checksum(cls, v: str) -> str:
        return normalize_address(v)

    def with_overrides(self, **overrides: Any) -> "HarbourSettings":
        """
        Build a new settings object from this one plus keyword overrides.
        Unknown keys raise ConfigError.
        """
        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise ConfigError(f"unknown settings: {sorted(unknown)}", field=sorted(unknown)[0])
        data = self.model_dump()
        data.update(overrides)
        try:
            return type(self).model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    def http_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }


@lru_cache(maxsize=1)
def get_settings() -> HarbourSettings:
    """Process-wide settings read from the environment (cached)."""
    return HarbourSettings()


__all__ = [
    "HarbourSettings",
    "get_settings",
    "DEFAULT_RPC_URL",
    "HARBOUR_CHAIN_ID",
    "HARBOUR_ADDRESS",
    "MULTICALL_ADDRESS",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_MAX_NONCES",
]
