"""
Batch executor contract.

Runs an ordered list of (target, payload, amount) sub-calls as one atomic
unit: the first failing sub-call reverts the whole batch, the executor's
pre-existing balance may not be spent, and attached value left over after the
sub-calls is refunded to the caller.
"""

from dataclasses import dataclass
from typing import List, Sequence

from .abi import ZERO_ADDRESS
from .contract import CallContext, Contract, ExternalFunction, external
from .errors import (
    DirectPaymentRejected,
    InsufficientFunds,
    MalformedRequest,
    NothingToWithdraw,
    ReentrantCall,
    RefundTransferFailed,
    SubcallFailed,
    Unauthorized,
)

OPERATION_EXECUTED = "OperationExecuted(address,bool,bytes)"

_OWNER = "owner"
_EXECUTING = "executing"


@dataclass(frozen=True)
class BatchRequest:
    """Input of one executeBatch call."""

    targets: Sequence[str]
    payloads: Sequence[bytes]
    amounts: Sequence[int]

    def validate(self) -> None:
        if not len(self.targets) == len(self.payloads) == len(self.amounts):
            raise MalformedRequest(len(self.targets), len(self.payloads), len(self.amounts))

    @property
    def total_value(self) -> int:
        return sum(self.amounts)


@dataclass(frozen=True)
class CallOutcome:
    succeeded: bool
    return_data: bytes


@dataclass(frozen=True)
class BatchOutcome:
    outcomes: List[CallOutcome]
    refund: int


class BatchTransactionContract(Contract):
    """
    Executor deployed once and shared by every caller.

    The deployer becomes the owner, the only account allowed to withdraw
    stray balance. Value sent anywhere but executeBatch is rejected.
    """

    def constructor(self, ctx: CallContext) -> None:
        self.sstore(_OWNER, ctx.sender)

    @external("owner()", returns=("address",))
    def owner(self, ctx: CallContext) -> str:
        return self.sload(_OWNER, ZERO_ADDRESS)

    @external(
        "executeBatch(address[],bytes[],uint256[])",
        returns=("bool[]", "bytes[]"),
        payable=True,
    )
    def execute_batch_entry(self, ctx, targets, payloads, amounts):
        result = self.execute_batch(ctx, BatchRequest(targets, payloads, amounts))
        return (
            [outcome.succeeded for outcome in result.outcomes],
            [outcome.return_data for outcome in result.outcomes],
        )

    def execute_batch(self, ctx: CallContext, request: BatchRequest) -> BatchOutcome:
        """
        Execute every sub-call in order.

        Args:
            ctx: Call context; ``ctx.value`` is the value attached to the batch
            request: Targets, payloads and amounts of the sub-calls

        Returns:
            BatchOutcome with one CallOutcome per sub-call and the refunded amount

        Raises:
            MalformedRequest: Sequence lengths differ
            ReentrantCall: A batch or withdrawal is already running
            SubcallFailed: A sub-call reverted
            InsufficientFunds: Sub-calls spent more than was attached
            RefundTransferFailed: The surplus could not be returned
        """
        request.validate()
        self._enter()

        # Balance held before this call; the batch may not dip into it
        reference = self.balance - ctx.value

        outcomes = []
        for index, (target, payload, amount) in enumerate(
            zip(request.targets, request.payloads, request.amounts)
        ):
            result = self.call(target, amount, payload)
            if not result.success:
                self.logger.debug(f"Sub-call {index} to {target} failed")
                raise SubcallFailed(index, result.data)

            outcomes.append(CallOutcome(True, result.data))
            self.emit(
                OPERATION_EXECUTED,
                data=(("address", target), ("bool", True), ("bytes", result.data)),
            )

        current = self.balance
        if current < reference:
            raise InsufficientFunds(reference, current)

        refund = current - reference
        if refund:
            result = self.call(ctx.sender, refund)
            if not result.success:
                raise RefundTransferFailed(ctx.sender, refund)

        self._exit()
        return BatchOutcome(outcomes, refund)

    @external("withdraw()")
    def withdraw(self, ctx: CallContext) -> None:
        self._enter()

        amount = self.balance
        if amount == 0:
            raise NothingToWithdraw()
        if ctx.sender != self.sload(_OWNER, ZERO_ADDRESS):
            raise Unauthorized(ctx.sender)

        result = self.call(ctx.sender, amount)
        if not result.success:
            raise RefundTransferFailed(ctx.sender, amount)

        self._exit()

    def receive(self, ctx: CallContext) -> bytes:
        raise DirectPaymentRejected(ctx.sender, ctx.value)

    def fallback(self, ctx: CallContext) -> bytes:
        raise DirectPaymentRejected(ctx.sender, ctx.value)

    def reject_value(self, ctx: CallContext, function: ExternalFunction) -> bytes:
        raise DirectPaymentRejected(ctx.sender, ctx.value)

    def _enter(self) -> None:
        if self.sload(_EXECUTING, False):
            raise ReentrantCall()
        self.sstore(_EXECUTING, True)

    def _exit(self) -> None:
        # Reverts restore the flag along with the rest of the state
        self.sstore(_EXECUTING, False)
