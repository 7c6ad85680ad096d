"""
Unit tests for the mock token and storage contracts.
"""

from batch_tx.executor import Panic, decode_revert
from batch_tx.executor.abi import decode_arguments, encode_call, event_topic
from batch_tx.executor.mocks import (
    MAX_UINT256,
    TRANSFER_EVENT,
    VALUE_CHANGED_EVENT,
    ERC20InsufficientAllowance,
    ERC20InsufficientBalance,
    SimpleStorage,
)


def read(chain, caller, contract, signature, returns, *args):
    result = chain.call(caller, contract, encode_call(signature, *args))
    assert result.success
    return decode_arguments(returns, result.data)[0]


class TestMockToken:

    def test_metadata(self, chain, owner, token):
        assert read(chain, owner, token, "name()", ["string"]) == "MockToken"
        assert read(chain, owner, token, "symbol()", ["string"]) == "MTK"
        assert read(chain, owner, token, "decimals()", ["uint8"]) == 18

    def test_mint_and_transfer(self, chain, owner, alice, token, make_address):
        bob = make_address("bob")
        chain.transact(owner, token, encode_call("mint(address,uint256)", alice, 100))

        receipt = chain.transact(alice, token, encode_call("transfer(address,uint256)", bob, 40))

        assert receipt.succeeded
        assert decode_arguments(["bool"], receipt.return_data) == (True,)
        assert read(chain, owner, token, "balanceOf(address)", ["uint256"], alice) == 60
        assert read(chain, owner, token, "balanceOf(address)", ["uint256"], bob) == 40
        assert read(chain, owner, token, "totalSupply()", ["uint256"]) == 100

        transfer_log = receipt.logs[-1]
        assert transfer_log.topics[0] == event_topic(TRANSFER_EVENT)
        assert decode_arguments(["address"], transfer_log.topics[2]) == (bob,)

    def test_transfer_beyond_balance(self, chain, alice, token, make_address):
        receipt = chain.transact(
            alice, token, encode_call("transfer(address,uint256)", make_address("bob"), 1)
        )
        assert isinstance(receipt.error, ERC20InsufficientBalance)
        assert receipt.error.needed == 1

    def test_transfer_from_spends_allowance(self, chain, owner, alice, token, make_address):
        spender, bob = make_address("spender"), make_address("bob")
        chain.fund(spender, 10**18)
        chain.transact(owner, token, encode_call("mint(address,uint256)", alice, 100))
        chain.transact(alice, token, encode_call("approve(address,uint256)", spender, 50))

        receipt = chain.transact(
            spender, token, encode_call("transferFrom(address,address,uint256)", alice, bob, 30)
        )

        assert receipt.succeeded
        assert read(chain, owner, token, "allowance(address,address)", ["uint256"], alice, spender) == 20

        receipt = chain.transact(
            spender, token, encode_call("transferFrom(address,address,uint256)", alice, bob, 30)
        )
        assert isinstance(receipt.error, ERC20InsufficientAllowance)
        assert receipt.error.allowance == 20

    def test_mint_overflow_panics(self, chain, owner, alice, token):
        chain.transact(owner, token, encode_call("mint(address,uint256)", alice, MAX_UINT256))

        receipt = chain.transact(owner, token, encode_call("mint(address,uint256)", alice, 1))

        assert receipt.status == 0
        assert isinstance(receipt.error, Panic)
        assert receipt.error.code == Panic.ARITHMETIC_OVERFLOW
        assert decode_revert(receipt.return_data).code == 0x11
        assert read(chain, owner, token, "balanceOf(address)", ["uint256"], alice) == MAX_UINT256
        assert read(chain, owner, token, "totalSupply()", ["uint256"]) == MAX_UINT256

    def test_infinite_allowance_is_not_decremented(self, chain, owner, alice, token, make_address):
        spender = make_address("spender")
        chain.fund(spender, 10**18)
        chain.transact(owner, token, encode_call("mint(address,uint256)", alice, 100))
        chain.transact(alice, token, encode_call("approve(address,uint256)", spender, MAX_UINT256))

        chain.transact(
            spender, token,
            encode_call("transferFrom(address,address,uint256)", alice, make_address("bob"), 100),
        )

        assert read(chain, owner, token, "allowance(address,address)", ["uint256"], alice, spender) == MAX_UINT256


class TestSimpleStorage:

    def test_set_requires_fee(self, chain, alice, storage):
        receipt = chain.transact(alice, storage, encode_call("set(uint256)", 42), value=SimpleStorage.FEE - 1)

        assert receipt.status == 0
        assert receipt.error.reason == "SimpleStorage: fee required"
        assert chain.get_balance(storage) == 0

    def test_set_keeps_fee_and_emits(self, chain, owner, alice, storage):
        receipt = chain.transact(alice, storage, encode_call("set(uint256)", 42), value=SimpleStorage.FEE)

        assert receipt.succeeded
        assert read(chain, owner, storage, "get()", ["uint256"]) == 42
        assert chain.get_balance(storage) == SimpleStorage.FEE

        (log,) = receipt.logs
        assert log.topics[0] == event_topic(VALUE_CHANGED_EVENT)
        assert decode_arguments(["address"], log.topics[1]) == (alice,)
        assert decode_arguments(["uint256"], log.data) == (42,)

    def test_bare_value_transfer_is_refused(self, chain, alice, storage):
        receipt = chain.transact(alice, storage, value=1)
        assert receipt.status == 0
