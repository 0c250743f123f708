"""
Contract base class for the Coatl runtime.

A contract is a plain Python object whose public methods form its ABI. Every
public method receives a ``CallContext`` first, carrying the authenticated
caller, the attached native value and the block timestamp. State lives in
ordinary instance attributes so the executor can snapshot and restore it
around each call.
"""

from __future__ import annotations

import copy
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, TypeVar

from .exceptions import InvalidAddress, InvalidAmount

if TYPE_CHECKING:
    from .executor import ContractExecutor

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Base helpers that are never reachable as contract methods
RESERVED_METHODS = frozenset(
    {
        "initialize",
        "snapshot_state",
        "restore_state",
        "emit",
        "call",
        "send_value",
        "native_balance",
    }
)

F = TypeVar("F", bound=Callable[..., Any])


def normalize_address(address: str) -> str:
    """Validate a ``0x``-prefixed 20-byte address and lowercase it."""
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise InvalidAddress(f"Invalid address: {address!r}")
    return address.lower()


def require_uint(value: Any, name: str = "amount", minimum: int = 0) -> int:
    """Validate a non-negative integer argument (amounts, timestamps, limits)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidAmount(f"{name} must be an integer >= {minimum}, got {value!r}")
    return value


def _restore_value(current: Any, saved: Any) -> Any:
    if type(current) is not type(saved):
        return saved
    if current == saved:
        return current
    if isinstance(current, dict):
        current.clear()
        current.update(saved)
    elif isinstance(current, list):
        current[:] = saved
    elif isinstance(current, set):
        current.clear()
        current.update(saved)
    else:
        return saved
    return current


def payable(func: F) -> F:
    """Mark a contract method as accepting native value."""
    func.__payable__ = True  # type: ignore[attr-defined]
    return func


def is_payable(func: Callable[..., Any]) -> bool:
    return bool(getattr(func, "__payable__", False))


@dataclass(frozen=True)
class CallContext:
    """Execution context handed to every contract method."""

    sender: str
    value: int = 0
    timestamp: int = 0
    tx_index: int = 0


@dataclass
class ContractEvent:
    """Represents an event emitted by a contract."""

    name: str
    address: str
    args: Dict[str, Any]
    tx_index: int = 0
    timestamp: float = field(default_factory=time.time)


class Contract:
    """
    Base class for contracts hosted by ``ContractExecutor``.

    Subclasses implement ``initialize(ctx, ...)`` instead of ``__init__`` and
    must keep every piece of state in instance attributes. Cross-contract
    references are stored as addresses and resolved through the executor on
    each call, never as object references.
    """

    # Attributes wired by the executor rather than owned by the contract
    RUNTIME_ATTRS = ("executor", "address")

    def __init__(self, executor: "ContractExecutor", address: str) -> None:
        self.executor = executor
        self.address = address

    def initialize(self, ctx: CallContext, *args: Any, **kwargs: Any) -> None:
        """Constructor hook, run once inside the deployment transaction."""
        pass

    # ==================== State Management ====================

    def snapshot_state(self) -> Dict[str, Any]:
        """Deep copy of the contract's own state."""
        return copy.deepcopy(
            {k: v for k, v in self.__dict__.items() if k not in self.RUNTIME_ATTRS}
        )

    def restore_state(self, state: Dict[str, Any]) -> None:
        """
        Roll the contract back to a snapshot.

        Attributes that still match the snapshot keep their current objects,
        and changed dicts, lists and sets are rewritten in place. A method
        that is still running (a caller that caught a failed sub-call) keeps
        working on live state through the references it already holds.
        """
        for key in [k for k in self.__dict__ if k not in state and k not in self.RUNTIME_ATTRS]:
            del self.__dict__[key]
        for key, saved in state.items():
            if key in self.__dict__:
                self.__dict__[key] = _restore_value(self.__dict__[key], saved)
            else:
                self.__dict__[key] = saved

    # ==================== Runtime Helpers ====================

    def emit(self, name: str, **args: Any) -> None:
        """Emit an event into the executor's log."""
        self.executor.emit_event(self, name, args)

    def call(self, target: str, method: str, *args: Any, value: int = 0, **kwargs: Any) -> Any:
        """Call another contract with this contract as the sender."""
        return self.executor.call_from(self.address, target, method, args, kwargs, value)

    def send_value(self, to: str, amount: int) -> None:
        """Send native value held by this contract."""
        self.executor.send_value(self.address, to, amount)

    def native_balance(self) -> int:
        return self.executor.balance_of(self.address)

    # ==================== Serialization ====================

    def to_dict(self, ctx: CallContext | None = None) -> Dict[str, Any]:
        """Serialize contract state to dictionary."""
        return {
            "type": type(self).__name__,
            "address": self.address,
        }
