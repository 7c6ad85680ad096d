"""
In-process chain that runs executor contracts.

Message calls move value, dispatch into contract code and roll the world state
back when the callee reverts. Top-level transactions add nonce handling, a
deterministic gas model and fee accounting, and produce receipts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Type

from eth_utils import keccak, to_bytes, to_checksum_address
from hexbytes import HexBytes

from .contract import CallContext, Contract
from .errors import ExecutionReverted, decode_revert
from .state import LogEntry, WorldState

logger = logging.getLogger(__name__)

# Gas schedule (simplified, deterministic)
TX_BASE_GAS = 21_000
CALLDATA_ZERO_BYTE_GAS = 4
CALLDATA_NONZERO_BYTE_GAS = 16
CALL_GAS = 2_600
CALL_VALUE_GAS = 9_000
STORAGE_WRITE_GAS = 20_000
LOG_GAS = 375
LOG_TOPIC_GAS = 375
LOG_DATA_BYTE_GAS = 8

MAX_CALL_DEPTH = 1024


class TransactionRejected(Exception):
    """The transaction is invalid before execution (as opposed to reverting)."""


@dataclass(frozen=True)
class CallResult:
    success: bool
    data: bytes
    error: Optional[ExecutionReverted] = None


@dataclass
class Receipt:
    """Outcome of a top-level transaction."""

    transaction_hash: HexBytes
    block_number: int
    sender: str
    to: str
    status: int
    gas_used: int
    effective_gas_price: int
    logs: List[LogEntry] = field(default_factory=list)
    return_data: bytes = b""
    error: Optional[ExecutionReverted] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @property
    def fee(self) -> int:
        return self.gas_used * self.effective_gas_price


def intrinsic_gas(data: bytes) -> int:
    zero_bytes = bytes(data).count(0)
    return (
        TX_BASE_GAS
        + zero_bytes * CALLDATA_ZERO_BYTE_GAS
        + (len(data) - zero_bytes) * CALLDATA_NONZERO_BYTE_GAS
    )


class Chain:
    """
    A single-node chain with immediate inclusion: every transaction is its own
    block.
    """

    def __init__(self, gas_price: int = 0, chain_id: int = 31337):
        self.state = WorldState()
        self.gas_price = gas_price
        self.chain_id = chain_id
        self.block_number = 0
        self._gas_used = 0
        self._depth = 0
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # Accounts

    def fund(self, address: str, amount: int) -> None:
        """Credit an account directly, bypassing any receive() logic."""
        self.state.credit(address, amount)

    def get_balance(self, address: str) -> int:
        return self.state.get_balance(address)

    def get_code(self, address: str) -> Optional[Contract]:
        return self.state.code.get(to_checksum_address(address))

    def deploy(self, contract_cls: Type[Contract], deployer: str, *args: Any, value: int = 0) -> str:
        """
        Deploy contract code and run its constructor.

        Args:
            contract_cls: Contract subclass to instantiate
            deployer: Deploying account (becomes msg.sender of the constructor)
            *args: Constructor arguments
            value: Wei sent along with the deployment

        Returns:
            Checksum address of the new contract

        Raises:
            ExecutionReverted: If the constructor reverts
        """
        deployer = to_checksum_address(deployer)
        snapshot = self.state.snapshot()
        nonce = self.state.increment_nonce(deployer)
        address = self._contract_address(deployer, nonce)

        try:
            self.state.transfer(deployer, address, value)
            contract = contract_cls(self, address)
            self.state.code[address] = contract
            contract.constructor(CallContext(deployer, value, b""), *args)
        except Exception:
            self.state.restore(snapshot)
            raise

        self.block_number += 1
        self.logger.info(f"Deployed {contract_cls.__name__} at {address}")
        return address

    # Execution

    def message_call(self, sender: str, to: str, value: int, data: bytes) -> CallResult:
        """
        Execute one message call.

        A revert anywhere inside the call restores the state to what it was
        before the call and is reported through the result. Any other error
        raised by contract code is treated as an empty revert.
        """
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        data = bytes(data)

        self._gas_used += CALL_GAS + (CALL_VALUE_GAS if value else 0)
        if self._depth >= MAX_CALL_DEPTH:
            return CallResult(False, b"", ExecutionReverted("call depth exceeded"))

        snapshot = self.state.snapshot()
        self._depth += 1
        try:
            self.state.transfer(sender, to, value)
            code = self.state.code.get(to)
            output = b"" if code is None else code.dispatch(CallContext(sender, value, data))
            return CallResult(True, bytes(output))
        except ExecutionReverted as e:
            self.state.restore(snapshot)
            self.logger.debug(f"Call {sender} -> {to} reverted: {e}")
            return CallResult(False, e.revert_data, e)
        except Exception as e:
            # Contract code failing outside a revert still reverts the call
            self.state.restore(snapshot)
            self.logger.warning(f"Call {sender} -> {to} failed: {e!r}", exc_info=True)
            reverted = ExecutionReverted(f"{type(e).__name__}: {e}")
            reverted.__cause__ = e
            return CallResult(False, b"", reverted)
        finally:
            self._depth -= 1

    def transact(self, sender: str, to: str, data: bytes = b"", value: int = 0) -> Receipt:
        """
        Execute a top-level transaction and mine it into its own block.

        Reverts do not raise; they produce a receipt with ``status == 0``. The
        nonce and the fee are consumed either way.

        Raises:
            TransactionRejected: If the sender cannot cover value plus fee
        """
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        data = bytes(data)

        if self.state.get_balance(sender) < value:
            raise TransactionRejected(
                f"{sender} cannot cover {value} wei (balance {self.state.get_balance(sender)})"
            )

        snapshot = self.state.snapshot()
        nonce = self.state.increment_nonce(sender)
        try:
            result, gas_used = self._run(sender, to, value, data)
        except Exception:
            self.state.restore(snapshot)
            raise

        fee = gas_used * self.gas_price
        try:
            self.state.debit(sender, fee)
        except ExecutionReverted as e:
            self.state.restore(snapshot)
            raise TransactionRejected(f"{sender} cannot pay the {fee} wei fee") from e

        self.block_number += 1
        receipt = Receipt(
            transaction_hash=self._transaction_hash(sender, nonce, to, value, data),
            block_number=self.block_number,
            sender=sender,
            to=to,
            status=1 if result.success else 0,
            gas_used=gas_used,
            effective_gas_price=self.gas_price,
            logs=list(self.state.logs[snapshot.log_count:]),
            return_data=result.data,
            error=None if result.success else result.error,
        )

        if receipt.succeeded:
            self.logger.debug(f"Transaction {receipt.transaction_hash.hex()} mined in block {self.block_number}")
        else:
            self.logger.info(f"Transaction {receipt.transaction_hash.hex()} reverted: {receipt.error}")
        return receipt

    def call(self, sender: str, to: str, data: bytes = b"", value: int = 0) -> CallResult:
        """Execute without committing anything (eth_call)."""
        snapshot = self.state.snapshot()
        try:
            result, _ = self._run(sender, to, value, data)
        finally:
            self.state.restore(snapshot)
        return result

    def estimate_gas(self, sender: str, to: str, data: bytes = b"", value: int = 0) -> int:
        """
        Gas a transaction would use against the current state.

        Raises:
            ExecutionReverted: The decoded revert if the simulation fails
        """
        snapshot = self.state.snapshot()
        try:
            result, gas_used = self._run(sender, to, value, data)
        finally:
            self.state.restore(snapshot)

        if not result.success:
            raise result.error or decode_revert(result.data)
        return gas_used

    def charge_storage_write(self) -> None:
        self._gas_used += STORAGE_WRITE_GAS

    def charge_log(self, topic_count: int, data_length: int) -> None:
        self._gas_used += LOG_GAS + topic_count * LOG_TOPIC_GAS + data_length * LOG_DATA_BYTE_GAS

    def _run(self, sender: str, to: str, value: int, data: bytes) -> Tuple[CallResult, int]:
        self._gas_used = intrinsic_gas(data)
        result = self.message_call(sender, to, value, data)
        return result, self._gas_used

    @staticmethod
    def _contract_address(deployer: str, nonce: int) -> str:
        digest = keccak(to_bytes(hexstr=deployer) + nonce.to_bytes(32, "big"))
        return to_checksum_address("0x" + digest[-20:].hex())

    def _transaction_hash(self, sender: str, nonce: int, to: str, value: int, data: bytes) -> HexBytes:
        preimage = (
            self.chain_id.to_bytes(32, "big")
            + to_bytes(hexstr=sender)
            + nonce.to_bytes(32, "big")
            + to_bytes(hexstr=to)
            + value.to_bytes(32, "big")
            + data
        )
        return HexBytes(keccak(preimage))
