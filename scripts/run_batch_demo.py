#!/usr/bin/env python3
"""
Run the batch SDK end to end against the in-process chain.

Deploys the executor and the mock contracts locally, then submits three
batches: native transfers, token transfers (with automatic approval) and
repeated SimpleStorage writes.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from eth_utils import keccak, to_checksum_address

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from batch_tx.executor import BatchTransactionContract, Chain, MockToken, SimpleStorage
from batch_tx.sdk import BatchSDKError, BatchTransactionSDK, ERC20Calls, LocalNetwork, SimpleStorageCalls

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ETHER = 10**18


def random_address() -> str:
    return to_checksum_address("0x" + keccak(os.urandom(32))[-20:].hex())


async def native_transfers(sdk: BatchTransactionSDK, network: LocalNetwork):
    recipients = [random_address(), random_address()]
    for recipient in recipients:
        sdk.add_native_transfer(recipient, ETHER // 100)

    receipt = await sdk.execute()
    logger.info(f"Native transfers mined in block {receipt.block_number} ({receipt.gas_used} gas)")
    for recipient in recipients:
        logger.info(f"  {recipient}: {await network.get_balance(recipient)} wei")


async def token_transfers(sdk: BatchTransactionSDK, network: LocalNetwork, token: str):
    calls = ERC20Calls(token)
    await network.send_transaction(token, calls.mint(network.address, 1000 * ETHER))

    recipients = [random_address(), random_address()]
    for recipient in recipients:
        sdk.add_erc20_transfer(token, recipient, 10 * ETHER)

    logger.info(f"Approvals needed: {await sdk.pending_approvals()}")
    receipt = await sdk.execute()
    logger.info(f"Token transfers mined in block {receipt.block_number}")
    for recipient in recipients:
        balance = calls.decode_amount(await network.call(token, calls.balance_of(recipient)))
        logger.info(f"  {recipient}: {balance} MTK-wei")


async def storage_writes(sdk: BatchTransactionSDK, network: LocalNetwork, storage: str):
    calls = SimpleStorageCalls(storage)
    for value in (42, 84, 126):
        sdk.add_operation(storage, SimpleStorage.FEE, calls.set(value))

    logger.info(f"Estimated gas: {await sdk.estimate_gas()}")
    await sdk.execute()
    logger.info(f"SimpleStorage value: {calls.decode_get(await network.call(storage, calls.get()))}")


async def main():
    """Deploy locally and run every scenario."""
    try:
        chain = Chain(gas_price=10**9)
        signer = random_address()
        chain.fund(signer, 100 * ETHER)

        executor = chain.deploy(BatchTransactionContract, signer)
        token = chain.deploy(MockToken, signer)
        storage = chain.deploy(SimpleStorage, signer)

        network = LocalNetwork(chain, signer)
        sdk = BatchTransactionSDK(network, executor)

        await native_transfers(sdk, network)
        await token_transfers(sdk, network, token)
        await storage_writes(sdk, network, storage)

        logger.info(f"Signer balance after demo: {chain.get_balance(signer)} wei")
        return 0

    except BatchSDKError as e:
        logger.error(f"Batch failed: {e}")
        return 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
