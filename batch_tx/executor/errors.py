"""
Revert errors raised by contract code running on the in-process chain.

Every error mirrors a Solidity custom error: it knows its signature, encodes
itself as revert data (selector + ABI encoded arguments) and can be decoded
back from raw revert bytes, whether they came from the local chain or from a
real node.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from eth_abi.exceptions import DecodingError

from .abi import decode_arguments, encode_arguments, selector, split_signature

logger = logging.getLogger(__name__)

_ERRORS: Dict[bytes, Type["ExecutionReverted"]] = {}


class ExecutionReverted(Exception):
    """
    Base class for reverts.

    A bare instance carries opaque revert data (for example an empty revert
    from a failed value transfer or a non-payable function receiving value).
    Subclasses with a ``signature`` encode their own revert data.
    """

    signature: Optional[str] = None

    def __init__(self, message: str = "execution reverted", revert_data: bytes = b""):
        super().__init__(message)
        self._revert_data = bytes(revert_data)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.signature:
            _ERRORS[selector(cls.signature)] = cls

    @property
    def arguments(self) -> Tuple[Any, ...]:
        return ()

    @property
    def revert_data(self) -> bytes:
        if not self.signature:
            return self._revert_data
        _, types = split_signature(self.signature)
        return selector(self.signature) + encode_arguments(types, self.arguments)


class RequireFailed(ExecutionReverted):
    """``require(condition, reason)`` failure, encoded as ``Error(string)``."""

    signature = "Error(string)"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    @property
    def arguments(self):
        return (self.reason,)


class Panic(ExecutionReverted):
    """Solidity ``Panic(uint256)``; ``0x11`` is checked arithmetic overflow."""

    signature = "Panic(uint256)"

    ARITHMETIC_OVERFLOW = 0x11

    def __init__(self, code: int):
        super().__init__(f"Panic 0x{code:02x}")
        self.code = code

    @property
    def arguments(self):
        return (self.code,)

class InsufficientBalance(ExecutionReverted):
    """Value transfer larger than the sender's balance."""

    signature = "InsufficientBalance(address,uint256,uint256)"

    def __init__(self, account: str, balance: int, needed: int):
        super().__init__(f"{account} has {balance} wei, needs {needed}")
        self.account = account
        self.balance = balance
        self.needed = needed

    @property
    def arguments(self):
        return (self.account, self.balance, self.needed)


# Batch executor errors


class MalformedRequest(ExecutionReverted):
    signature = "MalformedRequest(uint256,uint256,uint256)"

    def __init__(self, targets: int, payloads: int, amounts: int):
        super().__init__(
            f"Array lengths differ: {targets} targets, {payloads} payloads, {amounts} amounts"
        )
        self.targets = targets
        self.payloads = payloads
        self.amounts = amounts

    @property
    def arguments(self):
        return (self.targets, self.payloads, self.amounts)


class SubcallFailed(ExecutionReverted):
    signature = "SubcallFailed(uint256,bytes)"

    def __init__(self, index: int, data: bytes):
        super().__init__(f"Sub-call {index} failed")
        self.index = index
        self.data = bytes(data)

    @property
    def arguments(self):
        return (self.index, self.data)

    @property
    def cause(self) -> ExecutionReverted:
        """The failing sub-call's own revert, decoded."""
        return decode_revert(self.data)


class InsufficientFunds(ExecutionReverted):
    signature = "InsufficientFunds(uint256,uint256)"

    def __init__(self, required: int, available: int):
        super().__init__(f"Batch spent pre-existing funds: {available} wei left, {required} required")
        self.required = required
        self.available = available

    @property
    def arguments(self):
        return (self.required, self.available)


class RefundTransferFailed(ExecutionReverted):
    signature = "RefundTransferFailed(address,uint256)"

    def __init__(self, recipient: str, amount: int):
        super().__init__(f"Transfer of {amount} wei to {recipient} failed")
        self.recipient = recipient
        self.amount = amount

    @property
    def arguments(self):
        return (self.recipient, self.amount)


class NothingToWithdraw(ExecutionReverted):
    signature = "NothingToWithdraw()"

    def __init__(self):
        super().__init__("Executor balance is zero")


class DirectPaymentRejected(ExecutionReverted):
    signature = "DirectPaymentRejected(address,uint256)"

    def __init__(self, sender: str, amount: int):
        super().__init__(f"Direct payment of {amount} wei from {sender} rejected")
        self.sender = sender
        self.amount = amount

    @property
    def arguments(self):
        return (self.sender, self.amount)


class ReentrantCall(ExecutionReverted):
    signature = "ReentrantCall()"

    def __init__(self):
        super().__init__("Executor is already running a batch")


class Unauthorized(ExecutionReverted):
    signature = "Unauthorized(address)"

    def __init__(self, caller: str):
        super().__init__(f"{caller} is not the owner")
        self.caller = caller

    @property
    def arguments(self):
        return (self.caller,)


def decode_revert(data: bytes) -> ExecutionReverted:
    """
    Turn raw revert data into the matching error instance.

    Unknown selectors and undecodable payloads come back as a bare
    ExecutionReverted holding the original bytes.
    """
    data = bytes(data)
    error_cls = _ERRORS.get(data[:4])
    if error_cls is None:
        return ExecutionReverted("execution reverted", data)

    _, types = split_signature(error_cls.signature)
    try:
        values = decode_arguments(types, data[4:])
    except DecodingError as e:
        logger.debug(f"Could not decode {error_cls.signature} revert: {e}")
        return ExecutionReverted("execution reverted", data)

    return error_cls(*values)
