"""
Pytest configuration for SDK tests: an SDK wired to the in-process chain.
"""

import pytest
from eth_utils import keccak, to_checksum_address

from batch_tx.executor import BatchTransactionContract, Chain, MockToken, SimpleStorage
from batch_tx.sdk import BatchTransactionSDK, LocalNetwork, NetworkSettings

ETHER = 10**18


def _address(label: str) -> str:
    return to_checksum_address("0x" + keccak(text=label)[-20:].hex())


@pytest.fixture
def make_address():
    return _address


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def signer(chain):
    address = _address("signer")
    chain.fund(address, 10 * ETHER)
    return address


@pytest.fixture
def executor(chain, signer):
    return chain.deploy(BatchTransactionContract, signer)


@pytest.fixture
def token(chain, signer):
    address = chain.deploy(MockToken, signer)
    chain.state.store(address, "totalSupply", 1_000)
    chain.state.store(address, ("balance", signer), 1_000)
    return address


@pytest.fixture
def storage(chain, signer):
    return chain.deploy(SimpleStorage, signer)


@pytest.fixture
def network(chain, signer):
    return LocalNetwork(chain, signer, NetworkSettings(max_retries=1, retry_delay=0))


@pytest.fixture
def sdk(network, executor):
    return BatchTransactionSDK(network, executor)
