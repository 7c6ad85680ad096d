"""
Typed call interfaces for the contracts the SDK talks to.

Each interface is bound to a contract address and turns Python arguments into
calldata (and return data back into Python values), so nothing is looked up
by name at runtime.
"""

from typing import List

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from ..executor.abi import decode_arguments, encode_call
from ..executor.batch import BatchRequest, CallOutcome


class ContractInterface:
    """Calldata builder bound to one contract address."""

    def __init__(self, address: str):
        self.address: ChecksumAddress = to_checksum_address(address)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address})"

    @staticmethod
    def _decode_single(abi_type: str, data: bytes):
        return decode_arguments([abi_type], data)[0]


class ERC20Calls(ContractInterface):
    TRANSFER = "transfer(address,uint256)"
    TRANSFER_FROM = "transferFrom(address,address,uint256)"
    APPROVE = "approve(address,uint256)"
    ALLOWANCE = "allowance(address,address)"
    BALANCE_OF = "balanceOf(address)"
    MINT = "mint(address,uint256)"

    def transfer(self, recipient: str, amount: int) -> HexBytes:
        return encode_call(self.TRANSFER, to_checksum_address(recipient), amount)

    def transfer_from(self, sender: str, recipient: str, amount: int) -> HexBytes:
        return encode_call(
            self.TRANSFER_FROM, to_checksum_address(sender), to_checksum_address(recipient), amount
        )

    def approve(self, spender: str, amount: int) -> HexBytes:
        return encode_call(self.APPROVE, to_checksum_address(spender), amount)

    def allowance(self, owner: str, spender: str) -> HexBytes:
        return encode_call(self.ALLOWANCE, to_checksum_address(owner), to_checksum_address(spender))

    def balance_of(self, account: str) -> HexBytes:
        return encode_call(self.BALANCE_OF, to_checksum_address(account))

    def mint(self, account: str, amount: int) -> HexBytes:
        """Only on mintable mocks."""
        return encode_call(self.MINT, to_checksum_address(account), amount)

    def decode_amount(self, data: bytes) -> int:
        """Decode the uint256 returned by allowance/balanceOf."""
        return self._decode_single("uint256", data)


class SimpleStorageCalls(ContractInterface):
    SET = "set(uint256)"
    GET = "get()"

    def set(self, value: int) -> HexBytes:
        return encode_call(self.SET, value)

    def get(self) -> HexBytes:
        return encode_call(self.GET)

    def decode_get(self, data: bytes) -> int:
        return self._decode_single("uint256", data)


class BatchExecutorCalls(ContractInterface):
    EXECUTE_BATCH = "executeBatch(address[],bytes[],uint256[])"
    WITHDRAW = "withdraw()"
    OWNER = "owner()"

    def execute_batch(self, request: BatchRequest) -> HexBytes:
        return encode_call(
            self.EXECUTE_BATCH,
            [to_checksum_address(target) for target in request.targets],
            [bytes(payload) for payload in request.payloads],
            list(request.amounts),
        )

    def withdraw(self) -> HexBytes:
        return encode_call(self.WITHDRAW)

    def owner(self) -> HexBytes:
        return encode_call(self.OWNER)

    def decode_owner(self, data: bytes) -> str:
        return self._decode_single("address", data)

    def decode_execute_batch(self, data: bytes) -> List[CallOutcome]:
        """Decode the (bool[], bytes[]) returned by executeBatch."""
        successes, return_data = decode_arguments(["bool[]", "bytes[]"], data)
        return [CallOutcome(ok, bytes(ret)) for ok, ret in zip(successes, return_data)]
