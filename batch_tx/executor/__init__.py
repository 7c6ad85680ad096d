"""
In-process batch executor.

This package models the on-chain side of batching: a small EVM-shaped chain
(world state, message calls with rollback, gas and receipts) and the
BatchTransactionContract that executes ordered sub-calls atomically, plus the
mock contracts used as batch targets.
"""

from .batch import BatchOutcome, BatchRequest, BatchTransactionContract, CallOutcome
from .chain import CallResult, Chain, Receipt, TransactionRejected
from .contract import CallContext, Contract, external
from .errors import (
    DirectPaymentRejected,
    ExecutionReverted,
    InsufficientBalance,
    InsufficientFunds,
    MalformedRequest,
    NothingToWithdraw,
    Panic,
    ReentrantCall,
    RefundTransferFailed,
    RequireFailed,
    SubcallFailed,
    Unauthorized,
    decode_revert,
)
from .mocks import MockToken, SimpleStorage

__all__ = [
    'BatchOutcome',
    'BatchRequest',
    'BatchTransactionContract',
    'CallOutcome',
    'CallResult',
    'Chain',
    'Receipt',
    'TransactionRejected',
    'CallContext',
    'Contract',
    'external',
    'DirectPaymentRejected',
    'ExecutionReverted',
    'InsufficientBalance',
    'InsufficientFunds',
    'MalformedRequest',
    'NothingToWithdraw',
    'Panic',
    'ReentrantCall',
    'RefundTransferFailed',
    'RequireFailed',
    'SubcallFailed',
    'Unauthorized',
    'decode_revert',
    'MockToken',
    'SimpleStorage',
]
