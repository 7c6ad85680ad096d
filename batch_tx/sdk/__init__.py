"""
Batch transaction SDK.

This package assembles operations into a session and submits them to a
deployed BatchTransactionContract as one atomic transaction, either through a
JSON-RPC node (Web3Network) or the in-process chain (LocalNetwork).
"""

from .calls import BatchExecutorCalls, ContractInterface, ERC20Calls, SimpleStorageCalls
from .client import BatchTransactionSDK
from .errors import (
    ApprovalError,
    BatchSDKError,
    ContractError,
    EmptyBatchError,
    ErrorHandler,
    EstimationError,
    NetworkError,
    RateLimitError,
    SubmissionError,
    ValidationError,
)
from .network import BaseNetwork, LocalNetwork, NetworkSettings, Web3Network
from .session import ApprovalAccumulator, BatchSession, Operation, PendingTransactionList

__all__ = [
    'BatchExecutorCalls',
    'ContractInterface',
    'ERC20Calls',
    'SimpleStorageCalls',
    'BatchTransactionSDK',
    'ApprovalError',
    'BatchSDKError',
    'ContractError',
    'EmptyBatchError',
    'ErrorHandler',
    'EstimationError',
    'NetworkError',
    'RateLimitError',
    'SubmissionError',
    'ValidationError',
    'BaseNetwork',
    'LocalNetwork',
    'NetworkSettings',
    'Web3Network',
    'ApprovalAccumulator',
    'BatchSession',
    'Operation',
    'PendingTransactionList',
]
