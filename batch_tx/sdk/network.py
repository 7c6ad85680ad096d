"""
Network collaborators for the batch SDK.

This module provides the interface the SDK uses to reach a chain (account
address, read calls, gas estimates, signed transactions and balances) and two
implementations: Web3Network for a JSON-RPC node and LocalNetwork for the
in-process executor chain.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from ..executor.chain import Chain, TransactionRejected
from ..executor.errors import ExecutionReverted
from .errors import (
    ContractError,
    ErrorHandler,
    NetworkError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class NetworkSettings:
    """Retry, timeout and gas settings for network operations."""

    max_retries: int = 3
    retry_delay: float = 1.0
    timeout: float = 30.0
    receipt_timeout: float = 120.0
    gas_multiplier: float = 1.2
    chain_id: Optional[int] = None


class BaseNetwork(ABC):
    """
    Abstract base class for the SDK's view of a chain.

    Read calls go through the retry policy; transaction submission is
    serialised per signer so nonces never collide.
    """

    def __init__(self, settings: Optional[NetworkSettings] = None):
        self.settings = settings or NetworkSettings()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)
        self._send_lock = asyncio.Lock()

    @property
    @abstractmethod
    def address(self) -> ChecksumAddress:
        """Checksum address of the signing account."""
        pass

    @abstractmethod
    async def call(self, to: str, data: bytes, value: int = 0) -> bytes:
        """
        Execute a read-only call.

        Args:
            to: Contract address
            data: Calldata
            value: Wei to simulate sending

        Returns:
            Raw return data

        Raises:
            ContractError: If the call reverts
        """
        pass

    @abstractmethod
    async def estimate_gas(self, to: str, data: bytes, value: int = 0) -> int:
        """Estimate gas for a transaction from the signing account."""
        pass

    @abstractmethod
    async def send_transaction(self, to: str, data: bytes, value: int = 0) -> Any:
        """
        Sign, submit and wait for a transaction.

        Returns:
            The mined receipt

        Raises:
            ContractError: If the transaction reverts
        """
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        pass

    async def _retry_operation(self, operation, *args, **kwargs) -> Any:
        """Retry an operation with exponential backoff and intelligent error handling."""
        last_error = None

        for attempt in range(self.settings.max_retries):
            try:
                return await operation(*args, **kwargs)
            except Exception as e:
                last_error = e

                # Log error with context
                self.error_handler.log_error(
                    e,
                    {
                        "attempt": attempt + 1,
                        "max_retries": self.settings.max_retries,
                        "operation": operation.__name__
                        if hasattr(operation, "__name__")
                        else str(operation),
                    },
                )

                # Check if we should retry this error
                if not self.error_handler.should_retry(
                    e, attempt, self.settings.max_retries
                ):
                    self.logger.info(f"Not retrying error: {e}")
                    raise

                if attempt == self.settings.max_retries - 1:
                    raise

                # Calculate delay based on error type
                delay = self.error_handler.get_retry_delay(e, attempt, self.settings.retry_delay)
                self.logger.info(
                    f"Retrying in {delay}s... (attempt {attempt + 1}/{self.settings.max_retries})"
                )
                await asyncio.sleep(delay)

        # This should never be reached, but just in case
        if last_error:
            raise last_error


class Web3Network(BaseNetwork):
    """
    JSON-RPC node reached through web3.py, signing locally with a private key.
    """

    def __init__(self, web3: Web3, private_key: str, settings: Optional[NetworkSettings] = None):
        super().__init__(settings)
        self.web3 = web3
        try:
            self.account = web3.eth.account.from_key(private_key)
        except Exception as e:
            raise ValidationError(f"Invalid private key: {e}") from e

    @classmethod
    def from_rpc_url(
        cls, rpc_url: str, private_key: str, settings: Optional[NetworkSettings] = None
    ) -> "Web3Network":
        settings = settings or NetworkSettings()
        web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": settings.timeout}))
        return cls(web3, private_key, settings)

    @property
    def address(self) -> str:
        return self.account.address

    async def call(self, to: str, data: bytes, value: int = 0) -> bytes:
        tx = self._build_call(to, data, value)

        async def _call():
            try:
                return bytes(self.web3.eth.call(tx))
            except ContractLogicError as e:
                raise self._contract_error(e) from e

        return await self._retry_operation(_call)

    async def estimate_gas(self, to: str, data: bytes, value: int = 0) -> int:
        tx = self._build_call(to, data, value)

        async def _estimate():
            try:
                return int(self.web3.eth.estimate_gas(tx))
            except ContractLogicError as e:
                raise self._contract_error(e) from e

        return await self._retry_operation(_estimate)

    async def get_balance(self, address: str) -> int:
        async def _balance():
            return int(self.web3.eth.get_balance(to_checksum_address(address)))

        return await self._retry_operation(_balance)

    async def send_transaction(self, to: Optional[str], data: bytes, value: int = 0) -> Any:
        async with self._send_lock:
            tx = self._build_call(to, data, value)
            try:
                tx["nonce"] = self.web3.eth.get_transaction_count(self.address, "pending")
                tx["chainId"] = self._check_chain_id(self.web3.eth.chain_id)
                tx["gas"] = int(self.web3.eth.estimate_gas(tx) * self.settings.gas_multiplier)
                tx["gasPrice"] = self.web3.eth.gas_price

                signed = self.account.sign_transaction(tx)
                tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
                self.logger.info(f"Sent transaction {tx_hash.hex()} (nonce {tx['nonce']})")

                receipt = self.web3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.settings.receipt_timeout
                )
            except ContractLogicError as e:
                raise self._contract_error(e) from e
            except TimeExhausted as e:
                raise NetworkError(f"Timed out waiting for receipt: {e}") from e
            except (ConnectionError, TimeoutError) as e:
                raise NetworkError(f"Failed to send transaction: {e}") from e

        if receipt["status"] != 1:
            raise ContractError(f"Transaction {tx_hash.hex()} reverted in block {receipt['blockNumber']}")
        return receipt

    async def deploy(self, bytecode: str) -> str:
        """Deploy contract creation bytecode; returns the new contract address."""
        receipt = await self.send_transaction(None, HexBytes(bytecode))
        return receipt["contractAddress"]

    def _check_chain_id(self, chain_id: int) -> int:
        expected = self.settings.chain_id
        if expected is not None and chain_id != expected:
            raise ValidationError(f"Node is on chain {chain_id}, expected {expected}")
        return chain_id

    def _build_call(self, to: Optional[str], data: bytes, value: int) -> dict:
        tx = {"from": self.address, "data": HexBytes(data), "value": value}
        if to is not None:
            tx["to"] = to_checksum_address(to)
        return tx

    @staticmethod
    def _contract_error(error: ContractLogicError) -> ContractError:
        data = getattr(error, "data", None)
        revert_data = HexBytes(data) if isinstance(data, (str, bytes)) else b""
        return ContractError(str(error), revert_data)


class LocalNetwork(BaseNetwork):
    """
    The in-process executor chain, reached without any RPC.

    Used by the test-suite and the demo; behaves like a node with instant
    mining.
    """

    def __init__(self, chain: Chain, account: str, settings: Optional[NetworkSettings] = None):
        super().__init__(settings)
        self.chain = chain
        self._account = to_checksum_address(account)

    @property
    def address(self) -> str:
        return self._account

    async def call(self, to: str, data: bytes, value: int = 0) -> bytes:
        result = self.chain.call(self.address, to, data, value)
        if not result.success:
            raise ContractError(f"execution reverted: {result.error}", result.data)
        return result.data

    async def estimate_gas(self, to: str, data: bytes, value: int = 0) -> int:
        try:
            return self.chain.estimate_gas(self.address, to, data, value)
        except ExecutionReverted as e:
            raise ContractError(f"execution reverted: {e}", e.revert_data) from e

    async def get_balance(self, address: str) -> int:
        return self.chain.get_balance(address)

    async def send_transaction(self, to: str, data: bytes, value: int = 0):
        async with self._send_lock:
            try:
                receipt = self.chain.transact(self.address, to, data, value)
            except TransactionRejected as e:
                raise ValidationError(str(e)) from e

        if not receipt.succeeded:
            raise ContractError(
                f"Transaction {receipt.transaction_hash.hex()} reverted: {receipt.error}",
                receipt.return_data,
            )
        return receipt
