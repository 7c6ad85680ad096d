"""
Solidity ABI helpers for the in-process executor.

Selectors, argument coding, custom errors and event topics follow the
Solidity ABI, so calldata produced here is byte-compatible with a deployed
BatchTransactionContract.
"""

from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address
from hexbytes import HexBytes

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def split_signature(signature: str) -> Tuple[str, List[str]]:
    """
    Split a canonical signature into its name and argument types.

    Args:
        signature: Canonical signature, e.g. ``"transfer(address,uint256)"``

    Returns:
        Tuple of (name, list of ABI type strings)
    """
    name, paren, rest = signature.partition("(")
    if not paren or not rest.endswith(")"):
        raise ValueError(f"Malformed signature: {signature}")

    inner = rest[:-1]
    types: List[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)

    return name, types


def selector(signature: str) -> bytes:
    """4-byte selector of a function or custom error signature."""
    return function_signature_to_4byte_selector(signature)


def event_topic(signature: str) -> bytes:
    """topic0 of an event signature."""
    return keccak(text=signature)


def encode_arguments(types: Sequence[str], values: Sequence[Any]) -> bytes:
    return encode(list(types), list(values))


def decode_arguments(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """Decode ABI data, returning addresses in checksum form."""
    values = decode(list(types), bytes(data))
    return tuple(_normalize(abi_type, value) for abi_type, value in zip(types, values))


def encode_call(signature: str, *args: Any) -> HexBytes:
    """Build calldata: selector followed by the encoded arguments."""
    _, types = split_signature(signature)
    return HexBytes(selector(signature) + encode_arguments(types, args))


def decode_call(signature: str, data: bytes) -> Tuple[Any, ...]:
    """Decode calldata built for ``signature``; the selector must match."""
    data = bytes(data)
    if data[:4] != selector(signature):
        raise ValueError(f"Calldata does not match {signature}")
    _, types = split_signature(signature)
    return decode_arguments(types, data[4:])


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type.endswith("]"):
        inner = abi_type[: abi_type.rindex("[")]
        return [_normalize(inner, item) for item in value]
    if abi_type == "address":
        return to_checksum_address(value)
    return value
