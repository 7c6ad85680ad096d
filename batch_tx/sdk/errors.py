"""
Error handling utilities for the batch transaction SDK.

This module provides the SDK exception hierarchy and the error classifier
that drives retries of read-only RPC calls.
"""

from typing import Any, Dict, Optional
import logging

from ..executor.errors import ExecutionReverted, decode_revert

logger = logging.getLogger(__name__)


class BatchSDKError(Exception):
    """Base exception for SDK operations."""
    pass


class RateLimitError(BatchSDKError):
    """Raised when rate limit is hit."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(BatchSDKError):
    """Raised when network-related errors occur."""
    pass


class ContractError(BatchSDKError):
    """
    Raised when a contract call or transaction reverts.

    Carries the raw revert data and, when the selector is known, the decoded
    executor error (e.g. SubcallFailed with the failing index).
    """

    def __init__(self, message: str, revert_data: bytes = b""):
        super().__init__(message)
        self.revert_data = bytes(revert_data)

    @property
    def reason(self) -> Optional[ExecutionReverted]:
        if not self.revert_data:
            return None
        return decode_revert(self.revert_data)


class ValidationError(BatchSDKError):
    """Raised when input validation fails."""
    pass


class EmptyBatchError(BatchSDKError):
    """Raised when executing or estimating an empty transaction list."""
    pass


class ApprovalError(BatchSDKError):
    """Raised when checking or raising a token allowance fails."""

    def __init__(self, token: str, message: str):
        super().__init__(f"Approval for token {token} failed: {message}")
        self.token = token


class EstimationError(BatchSDKError):
    """Raised when gas estimation fails; ``phase`` is 'approval' or 'batch'."""

    def __init__(self, phase: str, message: str):
        super().__init__(f"Gas estimation failed during {phase}: {message}")
        self.phase = phase


class SubmissionError(BatchSDKError):
    """Raised when submitting the batch transaction fails."""

    def __init__(self, phase: str, message: str):
        super().__init__(f"Submission failed during {phase}: {message}")
        self.phase = phase


class ErrorHandler:
    """
    Centralized error handling for RPC operations.

    Provides classification, logging, and recovery strategies
    for various types of errors encountered while talking to a node.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, RateLimitError):
            return 'rate_limit'
        if isinstance(error, ContractError):
            return 'contract'
        if isinstance(error, ValidationError):
            return 'validation'
        if isinstance(error, (ConnectionError, TimeoutError, NetworkError)):
            return 'network'

        error_str = str(error).lower()

        # Rate limiting errors
        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429']):
            return 'rate_limit'

        # Contract execution errors
        if any(keyword in error_str for keyword in ['revert', 'execution reverted', 'out of gas']):
            return 'contract'

        # Network connectivity errors
        if any(keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns']):
            return 'network'

        # Validation errors
        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400', 'nonce too low']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: Exception, attempt: int, max_retries: int) -> bool:
        """
        Determine if an error should trigger a retry.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            max_retries: Maximum number of retries allowed

        Returns:
            True if operation should be retried
        """
        if attempt >= max_retries:
            return False

        error_category = self.classify_error(error)

        # Retry network and rate limit errors
        if error_category in ['network', 'rate_limit', 'unknown']:
            return True

        # Reverts are deterministic, bad input stays bad
        return False

    def get_retry_delay(self, error: Exception, attempt: int, base_delay: float = 1.0) -> float:
        """
        Calculate appropriate retry delay based on error type and attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            base_delay: Delay of the first retry in seconds

        Returns:
            Delay in seconds before retry
        """
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return error.retry_after

        error_category = self.classify_error(error)

        # Base exponential backoff
        delay = min(base_delay * 2 ** attempt, 60)  # Cap at 60 seconds

        # Rate limit errors get longer delays
        if error_category == 'rate_limit':
            return delay * 2

        # Network errors get standard backoff
        if error_category == 'network':
            return delay

        # Unknown errors get conservative delay
        return delay * 1.5

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        # Log validation errors as warnings
        if error_category == 'validation':
            self.logger.warning("Validation error occurred", extra=log_data)
        # Log contract errors as errors
        elif error_category == 'contract':
            self.logger.error("Contract execution failed", extra=log_data)
        # Log rate limit as info (expected)
        elif error_category == 'rate_limit':
            self.logger.info("Rate limit encountered", extra=log_data)
        # Everything else as warning
        else:
            self.logger.warning("RPC operation error", extra=log_data)
