"""
Mock contracts used as batch targets: an ERC-20 token and a fee-charging
storage contract.
"""

from .abi import ZERO_ADDRESS
from .contract import CallContext, Contract, external
from .errors import ExecutionReverted, Panic, RequireFailed

MAX_UINT256 = 2**256 - 1

TRANSFER_EVENT = "Transfer(address,address,uint256)"
APPROVAL_EVENT = "Approval(address,address,uint256)"
VALUE_CHANGED_EVENT = "ValueChanged(address,uint256)"


def checked_add(a: int, b: int) -> int:
    total = a + b
    if total > MAX_UINT256:
        raise Panic(Panic.ARITHMETIC_OVERFLOW)
    return total


class ERC20InsufficientBalance(ExecutionReverted):
    signature = "ERC20InsufficientBalance(address,uint256,uint256)"

    def __init__(self, sender: str, balance: int, needed: int):
        super().__init__(f"{sender} holds {balance}, needs {needed}")
        self.sender = sender
        self.balance = balance
        self.needed = needed

    @property
    def arguments(self):
        return (self.sender, self.balance, self.needed)


class ERC20InsufficientAllowance(ExecutionReverted):
    signature = "ERC20InsufficientAllowance(address,uint256,uint256)"

    def __init__(self, spender: str, allowance: int, needed: int):
        super().__init__(f"{spender} is allowed {allowance}, needs {needed}")
        self.spender = spender
        self.allowance = allowance
        self.needed = needed

    @property
    def arguments(self):
        return (self.spender, self.allowance, self.needed)


class MockToken(Contract):
    """ERC-20 with an open mint, for tests and demos."""

    NAME = "MockToken"
    SYMBOL = "MTK"
    DECIMALS = 18

    @external("name()", returns=("string",))
    def name(self, ctx: CallContext) -> str:
        return self.NAME

    @external("symbol()", returns=("string",))
    def symbol(self, ctx: CallContext) -> str:
        return self.SYMBOL

    @external("decimals()", returns=("uint8",))
    def decimals(self, ctx: CallContext) -> int:
        return self.DECIMALS

    @external("totalSupply()", returns=("uint256",))
    def total_supply(self, ctx: CallContext) -> int:
        return self.sload("totalSupply")

    @external("balanceOf(address)", returns=("uint256",))
    def balance_of(self, ctx: CallContext, account: str) -> int:
        return self.sload(("balance", account))

    @external("allowance(address,address)", returns=("uint256",))
    def allowance(self, ctx: CallContext, owner: str, spender: str) -> int:
        return self.sload(("allowance", owner, spender))

    @external("approve(address,uint256)", returns=("bool",))
    def approve(self, ctx: CallContext, spender: str, amount: int) -> bool:
        self._approve(ctx.sender, spender, amount)
        return True

    @external("transfer(address,uint256)", returns=("bool",))
    def transfer(self, ctx: CallContext, recipient: str, amount: int) -> bool:
        self._transfer(ctx.sender, recipient, amount)
        return True

    @external("transferFrom(address,address,uint256)", returns=("bool",))
    def transfer_from(self, ctx: CallContext, sender: str, recipient: str, amount: int) -> bool:
        allowed = self.sload(("allowance", sender, ctx.sender))
        if allowed != MAX_UINT256:
            if allowed < amount:
                raise ERC20InsufficientAllowance(ctx.sender, allowed, amount)
            self.sstore(("allowance", sender, ctx.sender), allowed - amount)
        self._transfer(sender, recipient, amount)
        return True

    @external("mint(address,uint256)")
    def mint(self, ctx: CallContext, account: str, amount: int) -> None:
        self.sstore("totalSupply", checked_add(self.sload("totalSupply"), amount))
        self.sstore(("balance", account), checked_add(self.sload(("balance", account)), amount))
        self.emit(
            TRANSFER_EVENT,
            indexed=(("address", ZERO_ADDRESS), ("address", account)),
            data=(("uint256", amount),),
        )

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        balance = self.sload(("balance", sender))
        if balance < amount:
            raise ERC20InsufficientBalance(sender, balance, amount)
        self.sstore(("balance", sender), balance - amount)
        self.sstore(("balance", recipient), checked_add(self.sload(("balance", recipient)), amount))
        self.emit(
            TRANSFER_EVENT,
            indexed=(("address", sender), ("address", recipient)),
            data=(("uint256", amount),),
        )

    def _approve(self, owner: str, spender: str, amount: int) -> None:
        self.sstore(("allowance", owner, spender), amount)
        self.emit(
            APPROVAL_EVENT,
            indexed=(("address", owner), ("address", spender)),
            data=(("uint256", amount),),
        )


class SimpleStorage(Contract):
    """Stores one number; every write costs a fixed fee in wei."""

    FEE = 10**15  # 0.001 ether

    @external("set(uint256)", payable=True)
    def set(self, ctx: CallContext, value: int) -> None:
        if ctx.value < self.FEE:
            raise RequireFailed("SimpleStorage: fee required")
        self.sstore("value", value)
        self.emit(VALUE_CHANGED_EVENT, indexed=(("address", ctx.sender),), data=(("uint256", value),))

    @external("get()", returns=("uint256",))
    def get(self, ctx: CallContext) -> int:
        return self.sload("value")
