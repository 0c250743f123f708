"""
Exception hierarchy for the Coatl contract runtime.

Provides typed exceptions for contract execution so callers can tell a
business-rule revert apart from a runtime failure (unknown target, missing
funds, value sent to a non-payable method) and from a programming defect.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CoatlError(Exception):
    """Base exception for all Coatl errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== VM Errors ====================


class VMError(CoatlError):
    """Raised when contract execution fails."""
    pass


class RevertError(VMError):
    """Raised when contract execution reverts."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason


class VMExecutionError(VMError):
    """Raised when the runtime itself cannot carry out a call."""
    pass


class InsufficientFunds(VMExecutionError):
    """Raised when an account cannot cover the native value it sends."""
    pass


class NonPayableMethod(VMExecutionError):
    """Raised when native value is attached to a method that does not accept it."""
    pass


class UnknownContract(VMExecutionError):
    """Raised when a call targets an address with no deployed contract."""
    pass


class UnknownMethod(VMExecutionError):
    """Raised when a call names a method the contract does not expose."""
    pass


class TransferFailed(VMExecutionError):
    """Raised when a native value send is rejected by the recipient."""
    pass


class InvalidAddress(VMExecutionError, ValueError):
    """Raised when an argument is not a 0x-prefixed 20-byte address."""
    pass


class InvalidAmount(VMExecutionError, ValueError):
    """Raised when an amount is not a non-negative integer."""
    pass


# ==================== Utility Functions ====================


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, CoatlError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, RevertError) and exc.reason:
        context["revert_reason"] = exc.reason

    return context
