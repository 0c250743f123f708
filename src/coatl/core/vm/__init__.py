"""
Coatl contract runtime.

Hosts contracts in-process with serialized, all-or-nothing execution.
"""

from .contract import (
    ZERO_ADDRESS,
    CallContext,
    Contract,
    ContractEvent,
    normalize_address,
    payable,
)
from .exceptions import (
    CoatlError,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    NonPayableMethod,
    RevertError,
    TransferFailed,
    UnknownContract,
    UnknownMethod,
    VMError,
    VMExecutionError,
    get_error_context,
)
from .executor import ContractExecutor, ExecutionMessage, ExecutionResult, ManualClock

__all__ = [
    "ZERO_ADDRESS",
    "CallContext",
    "Contract",
    "ContractEvent",
    "normalize_address",
    "payable",
    "CoatlError",
    "InsufficientFunds",
    "InvalidAddress",
    "InvalidAmount",
    "NonPayableMethod",
    "RevertError",
    "TransferFailed",
    "UnknownContract",
    "UnknownMethod",
    "VMError",
    "VMExecutionError",
    "get_error_context",
    "ContractExecutor",
    "ExecutionMessage",
    "ExecutionResult",
    "ManualClock",
]
