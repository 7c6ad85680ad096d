"""
Pytest configuration for executor tests.
"""

import pytest
from eth_utils import keccak, to_checksum_address

from batch_tx.executor import BatchTransactionContract, Chain, MockToken, SimpleStorage

ETHER = 10**18


def _address(label: str) -> str:
    return to_checksum_address("0x" + keccak(text=label)[-20:].hex())


@pytest.fixture
def make_address():
    """Deterministic fresh address per label."""
    return _address


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def owner(chain):
    address = _address("owner")
    chain.fund(address, 100 * ETHER)
    return address


@pytest.fixture
def alice(chain):
    address = _address("alice")
    chain.fund(address, 100 * ETHER)
    return address


@pytest.fixture
def executor(chain, owner):
    return chain.deploy(BatchTransactionContract, owner)


@pytest.fixture
def token(chain, owner):
    return chain.deploy(MockToken, owner)


@pytest.fixture
def storage(chain, owner):
    return chain.deploy(SimpleStorage, owner)
