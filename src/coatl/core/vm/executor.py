"""
Serialized, atomic contract execution.

``ContractExecutor`` owns the world state: deployed contracts, native
balances (wei), the block clock and the event log. State-changing calls are
submitted as ``ExecutionMessage`` objects and run one at a time under a lock,
each inside a frame that snapshots every contract and restores the snapshot
if anything goes wrong. Nested contract calls and native value sends open
their own frames, so a failed sub-call is undone before its error reaches
the caller.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from coatl.core.config import Config
from .contract import (
    RESERVED_METHODS,
    CallContext,
    Contract,
    ContractEvent,
    ZERO_ADDRESS,
    is_payable,
    normalize_address,
)
from .exceptions import (
    InsufficientFunds,
    NonPayableMethod,
    TransferFailed,
    UnknownContract,
    UnknownMethod,
    VMError,
    VMExecutionError,
    get_error_context,
)

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Contract)


@dataclass
class ExecutionMessage:
    """A call submitted to the executor."""

    sender: str
    to: str
    method: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    value: int = 0


@dataclass
class ExecutionResult:
    """Outcome of an executed message."""

    success: bool
    return_value: Any = None
    error: Optional[Exception] = None
    events: List[ContractEvent] = field(default_factory=list)
    tx_index: int = 0

    @property
    def revert_reason(self) -> Optional[str]:
        return getattr(self.error, "reason", None)


class ManualClock:
    """Controllable block clock, the in-process stand-in for ``evm_increaseTime``."""

    def __init__(self, start: int | None = None) -> None:
        self.current = int(time.time()) if start is None else int(start)

    def __call__(self) -> int:
        return self.current

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self.current += seconds
        return self.current

    def set(self, timestamp: int) -> None:
        if timestamp < self.current:
            raise ValueError("Clock cannot move backwards")
        self.current = int(timestamp)


@dataclass
class _Snapshot:
    contracts: Dict[str, Dict[str, Any]]
    native_balances: Dict[str, int]
    event_count: int


class ContractExecutor:
    """
    In-process execution environment for Coatl contracts.

    Example:
        >>> executor = ContractExecutor(time_provider=ManualClock(1_700_000_000))
        >>> token = executor.deploy(deployer, CoatlToken, supply, multisig, fee_receiver, [])
        >>> result = executor.execute(ExecutionMessage(multisig, token.address, "transfer", (bob, 500)))
        >>> result.success
        True
    """

    def __init__(
        self,
        time_provider: Optional[Callable[[], int]] = None,
        allow_faucet: Optional[bool] = None,
    ) -> None:
        self.time_provider = time_provider or (lambda: int(time.time()))
        self.allow_faucet = Config.ALLOW_FAUCET if allow_faucet is None else allow_faucet

        self.contracts: Dict[str, Contract] = {}
        self.native_balances: Dict[str, int] = {}
        self.deploy_nonces: Dict[str, int] = {}
        self.events: List[ContractEvent] = []
        self.tx_count = 0

        self._lock = threading.RLock()
        self._block_timestamp: Optional[int] = None
        self._current_tx = 0

    # ==================== Time ====================

    def now(self) -> int:
        """Block timestamp of the running transaction, or the clock when idle."""
        if self._block_timestamp is not None:
            return self._block_timestamp
        return int(self.time_provider())

    # ==================== Native Balances ====================

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.native_balances.get(normalize_address(account), 0)

    def fund(self, account: str, amount: int) -> int:
        """Credit native value out of thin air (test networks only)."""
        if not self.allow_faucet:
            raise VMExecutionError("Faucet disabled on this network")
        if amount < 0:
            raise VMExecutionError("Cannot fund a negative amount")
        account = normalize_address(account)
        with self._lock:
            self.native_balances[account] = self.native_balances.get(account, 0) + amount
            return self.native_balances[account]

    def _move_value(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise VMExecutionError("Value cannot be negative")
        if amount == 0:
            return
        available = self.native_balances.get(sender, 0)
        if available < amount:
            raise InsufficientFunds(
                f"{sender} cannot send {amount} wei (balance {available})",
                details={"sender": sender, "amount": amount, "balance": available},
            )
        self.native_balances[sender] = available - amount
        self.native_balances[to] = self.native_balances.get(to, 0) + amount

    # ==================== Contracts ====================

    def get_contract(self, address: str) -> Contract:
        address = normalize_address(address)
        contract = self.contracts.get(address)
        if contract is None:
            raise UnknownContract(f"No contract deployed at {address}")
        return contract

    def deploy(self, deployer: str, contract_cls: Type[C], *args: Any, **kwargs: Any) -> C:
        """
        Deploy a contract and run its initializer as one transaction.

        Raises:
            ContractRevert / VMExecutionError: If the initializer fails; no
                contract is left behind.
        """
        deployer = normalize_address(deployer)
        with self._lock:
            nonce = self.deploy_nonces.get(deployer, 0)
            self.deploy_nonces[deployer] = nonce + 1
            digest = hashlib.sha3_256(f"{deployer}:{nonce}".encode()).hexdigest()
            address = f"0x{digest[-40:]}"

            contract = contract_cls(self, address)
            with self._transaction() as tx_index:
                with self._frame():
                    self.contracts[address] = contract
                    ctx = CallContext(deployer, 0, self.now(), tx_index)
                    contract.initialize(ctx, *args, **kwargs)

            logger.info(
                "Contract deployed",
                extra={
                    "event": "vm.deploy",
                    "contract": contract_cls.__name__,
                    "address": address,
                    "deployer": deployer,
                },
            )
            return contract

    # ==================== Execution ====================

    def execute(self, message: ExecutionMessage) -> ExecutionResult:
        """
        Execute a message atomically.

        Reverts and runtime failures roll back every state change and are
        reported in the result. Any other exception is a defect: state is
        still rolled back, then the exception propagates.
        """
        with self._lock:
            with self._transaction() as tx_index:
                events_start = len(self.events)
                try:
                    return_value = self._dispatch(
                        normalize_address(message.sender),
                        message.to,
                        message.method,
                        tuple(message.args),
                        dict(message.kwargs),
                        message.value,
                    )
                except VMError as exc:
                    context = get_error_context(exc)
                    logger.info(
                        "Execution reverted: %s",
                        context.get("revert_reason", context["error_type"]),
                        extra={
                            "event": "vm.revert",
                            "tx_index": tx_index,
                            "method": message.method,
                            "to": message.to,
                            **context,
                        },
                    )
                    return ExecutionResult(success=False, error=exc, tx_index=tx_index)

                return ExecutionResult(
                    success=True,
                    return_value=return_value,
                    events=self.events[events_start:],
                    tx_index=tx_index,
                )

    def transact(
        self,
        sender: str,
        to: str,
        method: str,
        *args: Any,
        value: int = 0,
        **kwargs: Any,
    ) -> Any:
        """Execute a call and return its value, re-raising any failure."""
        result = self.execute(ExecutionMessage(sender, to, method, args, kwargs, value))
        if not result.success:
            raise result.error  # type: ignore[misc]
        return result.return_value

    def view(self, to: str, method: str, *args: Any, sender: str = ZERO_ADDRESS, **kwargs: Any) -> Any:
        """Run a method read-only; any state it touches is discarded."""
        with self._lock:
            snapshot = self._take_snapshot()
            try:
                return self._dispatch(normalize_address(sender), to, method, args, kwargs, 0)
            finally:
                self._restore_snapshot(snapshot)

    def call_from(
        self,
        caller: str,
        to: str,
        method: str,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
        value: int = 0,
    ) -> Any:
        """Nested call issued by a contract; the calling contract is the sender."""
        with self._lock:
            logger.debug(
                "Nested call",
                extra={"event": "vm.call", "from": caller, "to": to, "method": method},
            )
            return self._dispatch(caller, to, method, args, kwargs, value)

    def send_value(self, sender: str, to: str, amount: int) -> None:
        """
        Move native value from ``sender`` to ``to``.

        A contract recipient must expose a ``receive`` hook, which runs as a
        nested call. A missing or failing hook aborts the send with
        ``TransferFailed``.
        """
        to = normalize_address(to)
        with self._lock:
            with self._frame():
                self._move_value(sender, to, amount)
                target = self.contracts.get(to)
                if target is None:
                    return
                hook = getattr(target, "receive", None)
                if hook is None:
                    raise TransferFailed(f"{to} cannot receive native value")
                ctx = CallContext(sender, amount, self.now(), self._current_tx)
                try:
                    hook(ctx)
                except VMError as exc:
                    raise TransferFailed(
                        f"Value transfer to {to} rejected",
                        details={"cause": get_error_context(exc)},
                    ) from exc

    def emit_event(self, contract: Contract, name: str, args: Dict[str, Any]) -> None:
        event = ContractEvent(
            name=name,
            address=contract.address,
            args=dict(args),
            tx_index=self._current_tx,
            timestamp=self.now(),
        )
        self.events.append(event)
        logger.debug(
            "Event emitted",
            extra={"event": "vm.event", "event_name": name, "address": contract.address},
        )

    def get_events(self, address: Optional[str] = None, name: Optional[str] = None) -> List[ContractEvent]:
        """Filter the event log by emitter and/or event name."""
        address = normalize_address(address) if address else None
        return [
            e
            for e in self.events
            if (address is None or e.address == address) and (name is None or e.name == name)
        ]

    # ==================== Internals ====================

    def _dispatch(
        self,
        sender: str,
        to: str,
        method: str,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
        value: int,
    ) -> Any:
        contract = self.get_contract(to)
        func = self._resolve(contract, method)
        if value and not is_payable(func):
            raise NonPayableMethod(f"{type(contract).__name__}.{method} does not accept value")

        with self._frame():
            self._move_value(sender, contract.address, value)
            ctx = CallContext(sender, value, self.now(), self._current_tx)
            return func(ctx, *args, **kwargs)

    @staticmethod
    def _resolve(contract: Contract, method: str) -> Callable[..., Any]:
        if not method or method.startswith("_") or method in RESERVED_METHODS:
            raise UnknownMethod(f"{type(contract).__name__} has no public method {method!r}")
        func = getattr(contract, method, None)
        if not callable(func):
            raise UnknownMethod(f"{type(contract).__name__} has no public method {method!r}")
        return func

    @contextmanager
    def _transaction(self) -> Iterator[int]:
        """Number the transaction and pin its block timestamp."""
        outer = self._block_timestamp is None
        previous_tx = self._current_tx
        self.tx_count += 1
        self._current_tx = self.tx_count
        if outer:
            self._block_timestamp = int(self.time_provider())
        try:
            yield self._current_tx
        finally:
            self._current_tx = previous_tx
            if outer:
                self._block_timestamp = None

    @contextmanager
    def _frame(self) -> Iterator[None]:
        """Restore all state if the enclosed call raises."""
        snapshot = self._take_snapshot()
        try:
            yield
        except BaseException:
            self._restore_snapshot(snapshot)
            raise

    def _take_snapshot(self) -> _Snapshot:
        return _Snapshot(
            contracts={addr: c.snapshot_state() for addr, c in self.contracts.items()},
            native_balances=dict(self.native_balances),
            event_count=len(self.events),
        )

    def _restore_snapshot(self, snapshot: _Snapshot) -> None:
        for address in list(self.contracts):
            if address not in snapshot.contracts:
                del self.contracts[address]
        for address, state in snapshot.contracts.items():
            self.contracts[address].restore_state(state)
        self.native_balances.clear()
        self.native_balances.update(snapshot.native_balances)
        del self.events[snapshot.event_count:]
