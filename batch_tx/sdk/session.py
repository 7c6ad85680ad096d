"""
Per-session batch state: the pending operation list and the approval
requirements accumulated while building it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from ..executor.batch import BatchRequest
from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Operation:
    """One pending sub-call: (target, value, payload)."""

    target: str
    value: int
    payload: HexBytes

    @classmethod
    def create(cls, target: str, value: int, payload=b"") -> "Operation":
        """
        Build a normalised operation.

        Args:
            target: Address to call
            value: Wei attached to the sub-call
            payload: Calldata as bytes or a 0x-prefixed hex string

        Raises:
            ValidationError: On a malformed address, payload or negative value
        """
        try:
            target = to_checksum_address(target)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid target address {target!r}: {e}") from e

        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"Value must be an integer amount of wei, got {value!r}")
        if value < 0:
            raise ValidationError(f"Value must be non-negative, got {value}")

        try:
            payload = HexBytes(payload or b"")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid payload {payload!r}: {e}") from e

        return cls(target, value, payload)


class PendingTransactionList:
    """Ordered, duplicate-free list of operations; order is execution order."""

    def __init__(self):
        self._operations: List[Operation] = []

    def add(self, operation: Operation) -> bool:
        if operation in self._operations:
            return False
        self._operations.append(operation)
        return True

    def remove(self, operation: Operation) -> bool:
        if operation not in self._operations:
            return False
        self._operations.remove(operation)
        return True

    def clear(self) -> None:
        self._operations = []

    def to_list(self) -> List[Operation]:
        return list(self._operations)

    def to_request(self) -> BatchRequest:
        return BatchRequest(
            targets=tuple(op.target for op in self._operations),
            payloads=tuple(bytes(op.payload) for op in self._operations),
            amounts=tuple(op.value for op in self._operations),
        )

    @property
    def total_value(self) -> int:
        return sum(op.value for op in self._operations)

    def __iter__(self) -> Iterator[Operation]:
        return iter(list(self._operations))

    def __len__(self) -> int:
        return len(self._operations)


class ApprovalAccumulator:
    """Token address -> allowance the executor will need at submission."""

    def __init__(self):
        self._required: Dict[ChecksumAddress, int] = {}

    def add(self, token: str, amount: int) -> None:
        token = to_checksum_address(token)
        self._required[token] = self._required.get(token, 0) + amount

    def subtract(self, token: str, amount: int) -> None:
        token = to_checksum_address(token)
        remaining = self._required.get(token, 0) - amount
        if remaining > 0:
            self._required[token] = remaining
        else:
            self._required.pop(token, None)

    def required(self, token: str) -> int:
        return self._required.get(to_checksum_address(token), 0)

    def items(self) -> List[Tuple[ChecksumAddress, int]]:
        return list(self._required.items())

    def clear(self) -> None:
        self._required = {}

    def __len__(self) -> int:
        return len(self._required)


class BatchSession:
    """
    State of one batch being assembled.

    Passed explicitly to the assembly and submission routines so several
    sessions can be built side by side.
    """

    def __init__(self):
        self.operations = PendingTransactionList()
        self.approvals = ApprovalAccumulator()
        self._approval_for: Dict[Operation, Tuple[str, int]] = {}

    def add(self, operation: Operation, approval: Optional[Tuple[str, int]] = None) -> bool:
        """
        Append an operation unless an identical one is already pending.

        Args:
            operation: Operation to add
            approval: (token, amount) allowance the operation needs, if any

        Returns:
            True if the operation was added
        """
        if not self.operations.add(operation):
            logger.debug(f"Ignoring duplicate operation to {operation.target}")
            return False

        if approval is not None:
            token, amount = approval
            self.approvals.add(token, amount)
            self._approval_for[operation] = (to_checksum_address(token), amount)
        return True

    def remove(self, operation: Operation) -> bool:
        if not self.operations.remove(operation):
            return False

        approval = self._approval_for.pop(operation, None)
        if approval is not None:
            self.approvals.subtract(*approval)
        return True

    def reset(self) -> None:
        self.operations.clear()
        self.approvals.clear()
        self._approval_for = {}
