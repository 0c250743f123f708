"""
Composable contract capabilities.

Contracts hold these as plain state objects (``self.access``,
``self.pausable``, ``self.ledger``) rather than inheriting from them, so each
contract picks exactly the behaviours it needs. Capabilities never emit
events or call out; the owning contract does both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from coatl.core.contract_exceptions import (
    InsufficientBalance,
    InvalidFee,
    OwnableInvalidOwner,
    OwnableUnauthorizedAccount,
    Paused,
)
from coatl.core.vm.contract import ZERO_ADDRESS, normalize_address
from coatl.core.vm.exceptions import InvalidAmount

logger = logging.getLogger(__name__)

MAX_FEE_PERCENTAGE = 100


@dataclass
class AccessControlled:
    """Single-owner access control."""

    owner: str

    def __post_init__(self) -> None:
        self.owner = normalize_address(self.owner)
        if self.owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(owner=self.owner)

    def require_owner(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            logger.warning(
                "Owner-only call rejected",
                extra={"event": "access.unauthorized", "caller": caller},
            )
            raise OwnableUnauthorizedAccount(account=caller)

    def transfer_ownership(self, caller: str, new_owner: str) -> Tuple[str, str]:
        """Hand ownership over; returns ``(previous_owner, new_owner)``."""
        self.require_owner(caller)
        new_owner = normalize_address(new_owner)
        if new_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(owner=new_owner)
        previous, self.owner = self.owner, new_owner
        return previous, new_owner


@dataclass
class Pausable:
    """Emergency stop switch."""

    paused: bool = False

    def require_not_paused(self) -> None:
        if self.paused:
            raise Paused()

    def pause(self) -> bool:
        """Returns True if the state changed."""
        if self.paused:
            return False
        self.paused = True
        return True

    def unpause(self) -> bool:
        if not self.paused:
            return False
        self.paused = False
        return True


def calculate_fee(amount: int, fee_percentage: int) -> int:
    """Integer fee for ``amount`` at a whole-number percentage, rounded down."""
    return amount * fee_percentage // 100


def validate_fee(fee_percentage: int) -> int:
    if isinstance(fee_percentage, bool) or not isinstance(fee_percentage, int):
        raise InvalidFee(fee=fee_percentage)
    if not 0 <= fee_percentage <= MAX_FEE_PERCENTAGE:
        raise InvalidFee(fee=fee_percentage)
    return fee_percentage


@dataclass
class FungibleLedger:
    """
    Balance book for an 18-decimal fungible token.

    Keeps ``sum(balances) == total_supply`` where ``total_supply`` already
    excludes everything burned.
    """

    balances: Dict[str, int] = field(default_factory=dict)
    total_supply: int = 0
    total_burned: int = 0

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def require_balance(self, account: str, amount: int) -> None:
        self._validate_amount(amount)
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(account=normalize_address(account), balance=balance, needed=amount)

    def mint(self, to: str, amount: int) -> None:
        self.credit(to, amount)
        self.total_supply += amount

    def credit(self, account: str, amount: int) -> None:
        self._validate_amount(amount)
        account = normalize_address(account)
        self.balances[account] = self.balances.get(account, 0) + amount

    def debit(self, account: str, amount: int) -> None:
        self.require_balance(account, amount)
        account = normalize_address(account)
        self.balances[account] = self.balances.get(account, 0) - amount

    def move(self, sender: str, recipient: str, amount: int) -> None:
        self.debit(sender, amount)
        self.credit(recipient, amount)

    def burn(self, account: str, amount: int) -> None:
        self.debit(account, amount)
        self.total_supply -= amount
        self.total_burned += amount

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmount(f"Token amount must be a non-negative integer, got {amount!r}")
