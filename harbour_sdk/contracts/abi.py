from __future__ import annotations

"""
Minimal ABI function descriptors.

A `Function` carries the canonical input/output type strings of one contract
method and knows how to build calldata (selector + args) and decode return
data with eth-abi. Keeping ABIs as a handful of descriptors makes each
contract module self-contained and avoids loading JSON ABI files.

    GET_OWNERS = Function("getOwners", (), ("address[]",))
    calldata = GET_OWNERS.encode()
    (owners,) = GET_OWNERS.decode(return_data)
"""

from dataclasses import dataclass
from typing import Any, Tuple

import eth_abi
from eth_abi.exceptions import DecodingError
from eth_abi.exceptions import EncodingError as _EthAbiEncodingError

from ..errors import AbiError
from ..utils.bytes import BytesLike
from ..utils.hash import keccak256_text


@dataclass(frozen=True)
class Function:
    name: str
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak256_text(self.signature)[:4]

    def encode(self, *args: Any) -> bytes:
        """Calldata for a call with positional *args*."""
        if len(args) != len(self.inputs):
            raise AbiError(
                f"expected {len(self.inputs)} arguments, got {len(args)}",
                function=self.name,
            )
        try:
            return self.selector + eth_abi.encode(list(self.inputs), list(args))
        except (_EthAbiEncodingError, TypeError, ValueError, OverflowError) as e:
            raise AbiError("argument encoding failed", function=self.name, details=str(e)) from e

    def decode(self, data: BytesLike) -> Tuple[Any, ...]:
        """Decode return data into a tuple of outputs."""
        try:
            return tuple(eth_abi.decode(list(self.outputs), bytes(data)))
        except (DecodingError, TypeError, ValueError, OverflowError) as e:
            raise AbiError("return data decoding failed", function=self.name, details=str(e)) from e

    def decode_input(self, calldata: BytesLike) -> Tuple[Any, ...]:
        """Inverse of `encode`: check the selector and decode the arguments."""
        raw = bytes(calldata)
        if raw[:4] != self.selector:
            raise AbiError("selector mismatch", function=self.name, details=raw[:4].hex())
        try:
            return tuple(eth_abi.decode(list(self.inputs), raw[4:]))
        except (DecodingError, TypeError, ValueError, OverflowError) as e:
            raise AbiError("calldata decoding failed", function=self.name, details=str(e)) from e

    def encode_output(self, *values: Any) -> bytes:
        """Return data as the contract would produce it (used by fakes and simulators)."""
        try:
            return eth_abi.encode(list(self.outputs), list(values))
        except (_EthAbiEncodingError, TypeError, ValueError, OverflowError) as e:
            raise AbiError("return encoding failed", function=self.name, details=str(e)) from e


__all__ = ["Function"]
