"""
Transaction helpers: identity hashing.
"""

from .hash import domain_separator, safe_tx_hash, safe_tx_struct_hash

__all__ = ["domain_separator", "safe_tx_hash", "safe_tx_struct_hash"]
