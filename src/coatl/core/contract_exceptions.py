"""
Named revert reasons for the Coatl token, sale and vesting contracts.

Every business-rule failure is a ``ContractRevert`` whose ``reason`` is the
ABI error name (``"HardcapReached"``, ``"NothingToRelease"`` ...). Categories
group the reasons so callers can handle, say, every access-control failure at
once without listing the individual names.

Raise with keyword context, which lands in ``details``::

    raise HardcapReached(requested=tokens, remaining=hard_cap - sold)
"""

from __future__ import annotations

from typing import Any, Optional

from coatl.core.vm.exceptions import RevertError, get_error_context


class ContractRevert(RevertError):
    """Base of every named contract failure.

    The reason defaults to the class name, matching the custom error the
    contract ABI declares.
    """

    def __init__(self, message: Optional[str] = None, **details: Any) -> None:
        reason = type(self).__name__
        super().__init__(
            message or reason,
            reason=reason,
            details=details,
            recoverable=False,
        )


# ==================== Access Control ====================


class AccessControlError(ContractRevert):
    """Caller lacks the privilege the operation requires."""
    pass


class UnauthorizedCaller(AccessControlError):
    """Caller is not the multisig wallet."""
    pass


class OwnableUnauthorizedAccount(AccessControlError):
    """Caller is not the contract owner."""
    pass


class OwnableInvalidOwner(AccessControlError):
    """Ownership cannot be handed to the zero address."""
    pass


# ==================== List Enforcement ====================


class ListEnforcementError(ContractRevert):
    pass


class SenderBlacklisted(ListEnforcementError):
    pass


class RecipientBlacklisted(ListEnforcementError):
    pass


# ==================== Lifecycle State ====================


class LifecycleStateError(ContractRevert):
    """Operation is not allowed in the contract's current phase."""
    pass


class Paused(LifecycleStateError):
    pass


class ICONotActive(LifecycleStateError):
    pass


class ICOnotEnded(LifecycleStateError):
    pass


class NotFinalized(LifecycleStateError):
    pass


class UnsoldTokensNotRecovered(LifecycleStateError):
    pass


class AlreadyFinalized(LifecycleStateError):
    pass


# ==================== Capacity ====================


class CapacityViolationError(ContractRevert):
    """A purchase would break a sale cap or contribution limit."""
    pass


class HardcapReached(CapacityViolationError):
    pass


class ContributionTooLow(CapacityViolationError):
    pass


class ContributionTooHigh(CapacityViolationError):
    pass


class InvalidCaps(CapacityViolationError):
    """Soft cap is zero or above the hard cap."""
    pass


# ==================== Funds State ====================


class FundsStateError(ContractRevert):
    pass


class SoftcapNotReached(FundsStateError):
    pass


class SoftCapAlreadyReached(FundsStateError):
    """Refunds are closed once the soft cap has been met."""
    pass


class NoContribution(FundsStateError):
    pass


# ==================== Schedule Validation ====================


class ScheduleValidationError(ContractRevert):
    """Invalid vesting schedule input or release request."""
    pass


class ZeroAddressNotAllowed(ScheduleValidationError):
    pass


class AmountZero(ScheduleValidationError):
    pass


class StartDateInPast(ScheduleValidationError):
    pass


class EndBeforeStart(ScheduleValidationError):
    pass


class AlreadyVested(ScheduleValidationError):
    pass


class InsufficientTokensForVesting(ScheduleValidationError):
    pass


class NothingToRelease(ScheduleValidationError):
    pass


class CannotWithdrawVestedTokens(ScheduleValidationError):
    pass


class NoVestingSchedule(ScheduleValidationError):
    pass


class AlreadyRevoked(ScheduleValidationError):
    pass


# ==================== Ledger ====================


class LedgerError(ContractRevert):
    pass


class InsufficientBalance(LedgerError):
    pass


class InvalidFee(LedgerError):
    """Fee percentage outside 0-100."""
    pass


# ==================== Oracle ====================


class OracleError(ContractRevert):
    """The price feed reading cannot be trusted."""
    pass


class StalePrice(OracleError):
    pass


class InvalidPrice(OracleError):
    pass


__all__ = [
    "ContractRevert",
    "AccessControlError",
    "UnauthorizedCaller",
    "OwnableUnauthorizedAccount",
    "OwnableInvalidOwner",
    "ListEnforcementError",
    "SenderBlacklisted",
    "RecipientBlacklisted",
    "LifecycleStateError",
    "Paused",
    "ICONotActive",
    "ICOnotEnded",
    "NotFinalized",
    "UnsoldTokensNotRecovered",
    "AlreadyFinalized",
    "CapacityViolationError",
    "HardcapReached",
    "ContributionTooLow",
    "ContributionTooHigh",
    "InvalidCaps",
    "FundsStateError",
    "SoftcapNotReached",
    "SoftCapAlreadyReached",
    "NoContribution",
    "ScheduleValidationError",
    "ZeroAddressNotAllowed",
    "AmountZero",
    "StartDateInPast",
    "EndBeforeStart",
    "AlreadyVested",
    "InsufficientTokensForVesting",
    "NothingToRelease",
    "CannotWithdrawVestedTokens",
    "NoVestingSchedule",
    "AlreadyRevoked",
    "LedgerError",
    "InsufficientBalance",
    "InvalidFee",
    "OracleError",
    "StalePrice",
    "InvalidPrice",
    "get_error_context",
]
