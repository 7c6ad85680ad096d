"""
End-to-end tests of BatchTransactionSDK against the in-process chain.
"""

from unittest.mock import AsyncMock

import pytest

from batch_tx.executor import SimpleStorage, SubcallFailed
from batch_tx.executor.abi import encode_call
from batch_tx.sdk import (
    ApprovalError,
    BatchSession,
    BatchTransactionSDK,
    ContractError,
    EmptyBatchError,
    ERC20Calls,
    EstimationError,
    Operation,
    SimpleStorageCalls,
    SubmissionError,
    ValidationError,
)

ETHER = 10**18
FEE = SimpleStorage.FEE


async def read_uint(network, contract, data):
    return ERC20Calls(contract).decode_amount(await network.call(contract, data))


class TestAssembly:
    """Test cases for adding and removing operations."""

    def test_invalid_executor_address(self, network):
        with pytest.raises(ValidationError):
            BatchTransactionSDK(network, "0xnope")

    def test_duplicates_are_ignored(self, sdk, make_address):
        bob = make_address("bob")
        assert sdk.add_native_transfer(bob, 1) is True
        assert sdk.add_operation(bob, 1, "0x") is False
        assert len(sdk.list_operations()) == 1

    def test_erc20_transfer_pulls_from_signer(self, sdk, token, make_address):
        bob = make_address("bob")
        sdk.add_erc20_transfer(token, bob, 10)

        (op,) = sdk.list_operations()
        assert op.target == token
        assert op.value == 0
        assert op.payload == ERC20Calls(token).transfer_from(sdk.signer_address, bob, 10)
        assert sdk.session.approvals.required(token) == 10

    def test_typed_contract_call(self, sdk, storage):
        call = SimpleStorageCalls(storage).set(42)
        assert sdk.add_contract_call(storage, call, FEE) is True
        assert sdk.add_operation(storage, FEE, call) is False

    def test_remove_and_clear(self, sdk, token, make_address):
        bob = make_address("bob")
        sdk.add_erc20_transfer(token, bob, 10)
        sdk.add_native_transfer(bob, 1)

        payload = ERC20Calls(token).transfer_from(sdk.signer_address, bob, 10)
        assert sdk.remove_operation(token, 0, payload) is True
        assert sdk.session.approvals.required(token) == 0
        assert sdk.remove_operation(token, 0, payload) is False

        sdk.clear_operations()
        assert sdk.list_operations() == []


class TestExecute:
    """Test cases for submitting batches."""

    async def test_native_transfers(self, sdk, chain, signer, executor, make_address):
        recipients = [make_address("fresh-a"), make_address("fresh-b")]
        for recipient in recipients:
            sdk.add_native_transfer(recipient, ETHER // 100)
        before = chain.get_balance(signer)

        receipt = await sdk.execute()

        assert receipt.succeeded
        assert [chain.get_balance(r) for r in recipients] == [ETHER // 100] * 2
        assert chain.get_balance(signer) == before - ETHER // 50
        assert chain.get_balance(executor) == 0
        assert sdk.list_operations() == []

        outcomes = sdk.executor.decode_execute_batch(receipt.return_data)
        assert [outcome.succeeded for outcome in outcomes] == [True, True]

    async def test_erc20_transfers_are_approved_first(self, sdk, network, token, executor, make_address):
        bob, carol = make_address("bob"), make_address("carol")
        sdk.add_erc20_transfer(token, bob, 10)
        sdk.add_erc20_transfer(token, carol, 20)

        assert await sdk.pending_approvals() == [(token, 30)]

        await sdk.execute()

        calls = ERC20Calls(token)
        assert await read_uint(network, token, calls.balance_of(bob)) == 10
        assert await read_uint(network, token, calls.balance_of(carol)) == 20
        assert await read_uint(network, token, calls.balance_of(sdk.signer_address)) == 970
        assert await sdk.get_allowance(token) == 0

    async def test_existing_allowance_skips_approval(self, sdk, network, token, executor, make_address):
        await network.send_transaction(token, ERC20Calls(token).approve(executor, 100))
        sdk.add_erc20_transfer(token, make_address("bob"), 10)

        assert await sdk.pending_approvals() == []

        network.send_transaction = AsyncMock(wraps=network.send_transaction)
        await sdk.execute()

        network.send_transaction.assert_awaited_once()
        assert await sdk.get_allowance(token) == 90

    async def test_storage_writes_apply_in_order(self, sdk, network, storage):
        calls = SimpleStorageCalls(storage)
        for value in (42, 84, 126):
            sdk.add_operation(storage, FEE, calls.set(value))

        await sdk.execute()

        assert calls.decode_get(await network.call(storage, calls.get())) == 126
        assert await network.get_balance(storage) == 3 * FEE

    async def test_empty_batch(self, sdk):
        with pytest.raises(EmptyBatchError):
            await sdk.execute()

    async def test_failure_keeps_session(self, sdk, chain, storage):
        sdk.add_operation(storage, 0, SimpleStorageCalls(storage).set(1))
        before = chain.state.snapshot().storage

        with pytest.raises(SubmissionError) as exc_info:
            await sdk.execute()

        assert exc_info.value.phase == "batch"
        cause = exc_info.value.__cause__
        assert isinstance(cause, ContractError)
        assert isinstance(cause.reason, SubcallFailed)
        assert cause.reason.index == 0
        assert len(sdk.list_operations()) == 1
        assert chain.state.snapshot().storage == before

    async def test_approval_failure_keeps_session(self, sdk, make_address):
        not_a_token = make_address("not-a-token")
        sdk.add_erc20_transfer(not_a_token, make_address("bob"), 1)

        with pytest.raises(ApprovalError) as exc_info:
            await sdk.execute()

        assert exc_info.value.token == not_a_token
        assert len(sdk.list_operations()) == 1

    async def test_explicit_session(self, sdk, chain, make_address):
        bob = make_address("bob")
        session = BatchSession()
        session.add(Operation.create(bob, 5))
        sdk.add_native_transfer(make_address("carol"), 7)

        await sdk.execute(session)

        assert chain.get_balance(bob) == 5
        assert len(session.operations) == 0
        assert len(sdk.list_operations()) == 1


    async def test_explicit_session_assembled_through_sdk(self, sdk, network, token, make_address):
        bob, carol = make_address("bob"), make_address("carol")
        session = BatchSession()
        sdk.add_erc20_transfer(token, bob, 10, session=session)
        sdk.add_erc20_transfer(token, carol, 5, session=session)
        sdk.remove_operation(
            token, 0, ERC20Calls(token).transfer_from(sdk.signer_address, carol, 5), session=session
        )

        assert sdk.list_operations() == []
        assert len(sdk.list_operations(session)) == 1
        assert await sdk.pending_approvals(session) == [(token, 10)]

        await sdk.execute(session)

        calls = ERC20Calls(token)
        assert await read_uint(network, token, calls.balance_of(bob)) == 10
        assert await read_uint(network, token, calls.balance_of(carol)) == 0
        assert sdk.list_operations(session) == []

class TestEstimateGas:

    async def test_matches_chain_estimate(self, sdk, chain, signer, executor, storage):
        payload = SimpleStorageCalls(storage).set(42)
        sdk.add_operation(storage, FEE, payload)

        estimate = await sdk.estimate_gas()

        data = encode_call("executeBatch(address[],bytes[],uint256[])", [storage], [bytes(payload)], [FEE])
        assert estimate == chain.estimate_gas(signer, executor, data, FEE)
        assert len(sdk.list_operations()) == 1

    async def test_empty_batch(self, sdk):
        with pytest.raises(EmptyBatchError):
            await sdk.estimate_gas()

    async def test_pending_approval_fails_batch_phase(self, sdk, token, make_address):
        sdk.add_erc20_transfer(token, make_address("bob"), 10)

        with pytest.raises(EstimationError) as exc_info:
            await sdk.estimate_gas()

        assert exc_info.value.phase == "batch"

    async def test_approval_estimate_failure(self, sdk, network, token, make_address):
        sdk.add_erc20_transfer(token, make_address("bob"), 10)
        network.estimate_gas = AsyncMock(side_effect=ContractError("execution reverted"))

        with pytest.raises(EstimationError) as exc_info:
            await sdk.estimate_gas()

        assert exc_info.value.phase == "approval"
