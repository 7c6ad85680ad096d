"""
Batch transaction SDK.

Collects operations into a session, makes sure the executor holds the token
allowances those operations need and submits everything as a single
executeBatch transaction.
"""

import asyncio
import logging
from typing import Any, List, Optional, Tuple

from ..config import ConfigManager, get_config
from .calls import BatchExecutorCalls, ERC20Calls
from .errors import (
    ApprovalError,
    EmptyBatchError,
    EstimationError,
    SubmissionError,
    ValidationError,
)
from .network import BaseNetwork, NetworkSettings, Web3Network
from .session import BatchSession, Operation

logger = logging.getLogger(__name__)


class BatchTransactionSDK:
    """
    Client for a deployed BatchTransactionContract.

    Operations are kept in ``self.session`` until :meth:`execute` succeeds;
    on any failure the session is left untouched so the caller can inspect it
    and retry.
    """

    def __init__(
        self,
        network: BaseNetwork,
        batch_contract_address: str,
        session: Optional[BatchSession] = None,
    ):
        """
        Initialize the SDK.

        Args:
            network: Network collaborator used for reads and transactions
            batch_contract_address: Address of the deployed executor
            session: Session to assemble into (a fresh one by default)
        """
        try:
            self.executor = BatchExecutorCalls(batch_contract_address)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid batch contract address {batch_contract_address!r}: {e}") from e

        self.network = network
        self.session = session or BatchSession()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None) -> "BatchTransactionSDK":
        """Build an SDK talking to the configured RPC endpoint."""
        config = config or get_config()
        network_config = config.network
        network_config.require_signer()

        settings = NetworkSettings(
            max_retries=network_config.MAX_RETRY_ATTEMPTS,
            retry_delay=network_config.RETRY_DELAY_SECONDS,
            timeout=network_config.REQUEST_TIMEOUT,
            receipt_timeout=network_config.RECEIPT_TIMEOUT,
            gas_multiplier=network_config.GAS_MULTIPLIER,
            chain_id=network_config.CHAIN_ID,
        )
        network = Web3Network.from_rpc_url(
            network_config.RPC_URL, network_config.PRIVATE_KEY, settings
        )
        return cls(network, network_config.BATCH_CONTRACT_ADDRESS)

    @property
    def signer_address(self) -> str:
        return self.network.address

    @property
    def batch_contract_address(self) -> str:
        return self.executor.address

    # Assembly

    def add_operation(
        self, target: str, value: int, payload=b"", session: Optional[BatchSession] = None
    ) -> bool:
        """
        Add a raw operation unless an identical one is already pending.

        Args:
            target: Address to call
            value: Wei attached to the call
            payload: Encoded call (``b""`` / ``"0x"`` for a plain transfer)
            session: Session to add to (``self.session`` by default)

        Returns:
            True if added, False for a duplicate
        """
        session = session or self.session
        return session.add(Operation.create(target, value, payload))

    def add_native_transfer(
        self, recipient: str, amount: int, session: Optional[BatchSession] = None
    ) -> bool:
        return self.add_operation(recipient, amount, b"", session)

    def add_contract_call(
        self, target: str, call: bytes, value: int = 0, session: Optional[BatchSession] = None
    ) -> bool:
        """Add calldata built by a typed interface, e.g. ``SimpleStorageCalls(addr).set(42)``."""
        return self.add_operation(target, value, call, session)

    def add_erc20_transfer(
        self,
        token_address: str,
        recipient: str,
        amount: int,
        session: Optional[BatchSession] = None,
    ) -> bool:
        """
        Add a token transfer from the signer to ``recipient``.

        The executor moves the tokens with transferFrom, so the amount is
        added to the allowance it needs on ``token_address``.
        """
        token = ERC20Calls(token_address)
        payload = token.transfer_from(self.signer_address, recipient, amount)
        session = session or self.session
        return session.add(
            Operation.create(token.address, 0, payload), approval=(token.address, amount)
        )

    def add_erc20_approve(
        self,
        token_address: str,
        spender: str,
        amount: int,
        session: Optional[BatchSession] = None,
    ) -> bool:
        """Add an approve(spender, amount) issued by the executor."""
        token = ERC20Calls(token_address)
        payload = token.approve(spender, amount)
        session = session or self.session
        return session.add(
            Operation.create(token.address, 0, payload), approval=(token.address, amount)
        )

    def remove_operation(
        self, target: str, value: int, payload=b"", session: Optional[BatchSession] = None
    ) -> bool:
        return (session or self.session).remove(Operation.create(target, value, payload))

    def clear_operations(self, session: Optional[BatchSession] = None) -> None:
        (session or self.session).reset()

    def list_operations(self, session: Optional[BatchSession] = None) -> List[Operation]:
        return (session or self.session).operations.to_list()

    # Submission

    async def estimate_gas(self, session: Optional[BatchSession] = None) -> int:
        """
        Estimate gas for the outstanding approvals plus the batch itself.

        The batch is estimated against current allowances, so a batch whose
        token transfers still wait for an approval fails here with
        EstimationError('batch').
        """
        session = session or self.session
        self._require_operations(session)

        needed = await self.pending_approvals(session)
        approval_gas = await asyncio.gather(
            *(self._estimate_approval(token, amount) for token, amount in needed)
        )

        request = session.operations.to_request()
        try:
            batch_gas = await self.network.estimate_gas(
                self.executor.address, self.executor.execute_batch(request), request.total_value
            )
        except Exception as e:
            self.logger.error(f"Error estimating gas for batch transaction: {e}")
            raise EstimationError("batch", str(e)) from e

        total = sum(approval_gas) + batch_gas
        self.logger.info(
            f"Estimated {total} gas ({len(needed)} approvals, {len(session.operations)} operations)"
        )
        return total

    async def execute(self, session: Optional[BatchSession] = None) -> Any:
        """
        Approve what is missing, then submit the whole session in one transaction.

        Returns:
            Receipt of the executeBatch transaction

        Raises:
            EmptyBatchError: Nothing to submit
            ApprovalError: An allowance check or approval failed
            SubmissionError: The batch transaction failed
        """
        session = session or self.session
        self._require_operations(session)

        needed = await self.pending_approvals(session)
        if needed:
            await asyncio.gather(*(self._approve(token, amount) for token, amount in needed))

        request = session.operations.to_request()
        self.logger.info(
            f"Submitting batch of {len(request.targets)} operations with {request.total_value} wei"
        )
        try:
            receipt = await self.network.send_transaction(
                self.executor.address, self.executor.execute_batch(request), request.total_value
            )
        except Exception as e:
            self.logger.error(f"Error executing batch transaction: {e}")
            raise SubmissionError("batch", str(e)) from e

        session.reset()
        return receipt

    async def pending_approvals(self, session: Optional[BatchSession] = None) -> List[Tuple[str, int]]:
        """(token, required) pairs whose current allowance is below the requirement."""
        session = session or self.session
        required = session.approvals.items()
        allowances = await asyncio.gather(*(self.get_allowance(token) for token, _ in required))
        return [
            (token, amount)
            for (token, amount), allowance in zip(required, allowances)
            if allowance < amount
        ]

    async def get_allowance(self, token_address: str, owner: Optional[str] = None) -> int:
        """Allowance ``owner`` (the signer by default) has granted the executor."""
        token = ERC20Calls(token_address)
        try:
            data = await self.network.call(
                token.address, token.allowance(owner or self.signer_address, self.executor.address)
            )
            return token.decode_amount(data)
        except Exception as e:
            self.logger.error(f"Error reading allowance for token {token.address}: {e}")
            raise ApprovalError(token.address, str(e)) from e

    async def _approve(self, token_address: str, amount: int) -> Any:
        token = ERC20Calls(token_address)
        self.logger.info(f"Approving {amount} of {token.address} for {self.executor.address}")
        try:
            return await self.network.send_transaction(
                token.address, token.approve(self.executor.address, amount)
            )
        except Exception as e:
            self.logger.error(f"Error processing approval for token {token.address}: {e}")
            raise ApprovalError(token.address, str(e)) from e

    async def _estimate_approval(self, token_address: str, amount: int) -> int:
        token = ERC20Calls(token_address)
        try:
            return await self.network.estimate_gas(
                token.address, token.approve(self.executor.address, amount)
            )
        except Exception as e:
            self.logger.error(f"Error estimating approval gas for token {token.address}: {e}")
            raise EstimationError("approval", f"token {token.address}: {e}") from e

    @staticmethod
    def _require_operations(session: BatchSession) -> None:
        if not len(session.operations):
            raise EmptyBatchError("Transaction list is empty")
