"""
Coatl team vesting.

Holds CTL on behalf of founders and contributors and releases it over time.
Each beneficiary has at most one schedule: nothing is claimable before the
cliff, then the amount accrued linearly since ``start`` becomes releasable,
reaching the full allocation at ``end``. Founder schedules end a fixed
number of days after their start.

Schedules are funded by the contract's own token balance; the owner may only
withdraw what exceeds the outstanding obligations.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List

from coatl.core.config import Config
from coatl.core.contract_exceptions import (
    AlreadyRevoked,
    AlreadyVested,
    AmountZero,
    CannotWithdrawVestedTokens,
    EndBeforeStart,
    InsufficientTokensForVesting,
    NothingToRelease,
    NoVestingSchedule,
    StartDateInPast,
    ZeroAddressNotAllowed,
)
from coatl.core.units import days
from coatl.core.vm.contract import ZERO_ADDRESS, CallContext, Contract, normalize_address, require_uint
from coatl.core.vm.exceptions import InvalidAmount

from .capabilities import AccessControlled

logger = logging.getLogger(__name__)

FOUNDER = "founder"
CONTRIBUTOR = "contributor"


@dataclass
class VestingSchedule:
    total_amount: int
    start: int
    cliff: int
    end: int
    released: int = 0
    revoked: bool = False
    kind: str = CONTRIBUTOR

    def vested_amount(self, now: int) -> int:
        """Tokens vested at ``now``, ignoring revocation and releases."""
        if now < self.cliff:
            return 0
        if now >= self.end:
            return self.total_amount
        return self.total_amount * (now - self.start) // (self.end - self.start)

    def releasable_amount(self, now: int) -> int:
        if self.revoked:
            return 0
        return self.vested_amount(now) - self.released

    @property
    def unclaimed(self) -> int:
        return self.total_amount - self.released

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CoatlVesting(Contract):
    """Cliff plus linear vesting for founders and contributors."""

    def initialize(self, ctx: CallContext, token: str, founder_vesting_days: int | None = None) -> None:
        token = normalize_address(token)
        if token == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        self.access = AccessControlled(ctx.sender)
        self._token = token
        if founder_vesting_days is None:
            founder_vesting_days = Config.FOUNDER_VESTING_DAYS
        self._founder_duration = days(require_uint(founder_vesting_days, "founder_vesting_days", minimum=1))
        self._schedules: Dict[str, VestingSchedule] = {}
        self._vested_accounts: List[str] = []

    # ==================== View Functions ====================

    def token(self, ctx: CallContext) -> str:
        return self._token

    def owner(self, ctx: CallContext) -> str:
        return self.access.owner

    def contract_token_balance(self, ctx: CallContext) -> int:
        return self.call(self._token, "balance_of", self.address)

    def total_unclaimed_obligation(self, ctx: CallContext) -> int:
        """Tokens still owed under non-revoked schedules."""
        return sum(s.unclaimed for s in self._schedules.values() if not s.revoked)

    def get_vested_accounts(self, ctx: CallContext) -> List[str]:
        return list(self._vested_accounts)

    def get_schedule(self, ctx: CallContext, beneficiary: str) -> VestingSchedule:
        return replace(self._get_schedule(beneficiary))

    def vested_amount(self, ctx: CallContext, beneficiary: str) -> int:
        schedule = self._schedules.get(normalize_address(beneficiary))
        return schedule.vested_amount(ctx.timestamp) if schedule else 0

    def releasable_amount(self, ctx: CallContext, beneficiary: str) -> int:
        schedule = self._schedules.get(normalize_address(beneficiary))
        return schedule.releasable_amount(ctx.timestamp) if schedule else 0

    # ==================== Schedule Creation ====================

    def add_founder(self, ctx: CallContext, beneficiary: str, total_amount: int, start: int, cliff: int) -> bool:
        """Add a founder schedule ending ``FOUNDER_VESTING_DAYS`` after ``start``."""
        self.access.require_owner(ctx.sender)
        self._add_schedule(ctx, beneficiary, total_amount, start, cliff, None, FOUNDER)
        return True

    def add_contributor(
        self,
        ctx: CallContext,
        beneficiary: str,
        total_amount: int,
        start: int,
        cliff: int,
        end: int,
    ) -> bool:
        self.access.require_owner(ctx.sender)
        self._add_schedule(ctx, beneficiary, total_amount, start, cliff, end, CONTRIBUTOR)
        return True

    def _add_schedule(
        self,
        ctx: CallContext,
        beneficiary: str,
        total_amount: int,
        start: int,
        cliff: int,
        end: int | None,
        kind: str,
    ) -> None:
        beneficiary = normalize_address(beneficiary)
        if beneficiary == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()
        if isinstance(total_amount, bool) or not isinstance(total_amount, int):
            raise InvalidAmount(f"total_amount must be an integer, got {total_amount!r}")
        if total_amount <= 0:
            raise AmountZero()
        start = require_uint(start, "start")
        cliff = require_uint(cliff, "cliff")
        # Founder schedules end a fixed duration after start
        end = start + self._founder_duration if end is None else require_uint(end, "end")
        if start < ctx.timestamp:
            raise StartDateInPast(start=start, now=ctx.timestamp)
        # A founder cliff may fall after the implied end; contributors must cliff inside their window
        if cliff <= start or end <= start or (kind == CONTRIBUTOR and cliff > end):
            raise EndBeforeStart(start=start, cliff=cliff, end=end)
        if beneficiary in self._schedules:
            raise AlreadyVested(beneficiary=beneficiary)

        available = self.contract_token_balance(ctx) - self.total_unclaimed_obligation(ctx)
        if available < total_amount:
            raise InsufficientTokensForVesting(available=available, requested=total_amount)

        self._schedules[beneficiary] = VestingSchedule(
            total_amount=total_amount,
            start=start,
            cliff=cliff,
            end=end,
            kind=kind,
        )
        self._vested_accounts.append(beneficiary)
        self.emit(
            "VestingAdded",
            beneficiary=beneficiary,
            total_amount=total_amount,
            start=start,
            cliff=cliff,
            end=end,
            kind=kind,
        )
        logger.info(
            "Vesting schedule added",
            extra={
                "event": "vesting.added",
                "beneficiary": beneficiary[:10],
                "kind": kind,
                "total_amount": total_amount,
                "start": start,
                "cliff": cliff,
                "end": end,
            },
        )

    # ==================== Release and Revocation ====================

    def release(self, ctx: CallContext) -> int:
        """Transfer everything currently releasable to the caller."""
        beneficiary = normalize_address(ctx.sender)
        schedule = self._schedules.get(beneficiary)
        amount = schedule.releasable_amount(ctx.timestamp) if schedule else 0
        if amount <= 0:
            raise NothingToRelease(beneficiary=beneficiary)

        schedule.released += amount
        self.emit("TokensReleased", beneficiary=beneficiary, amount=amount)

        self.call(self._token, "transfer", beneficiary, amount)

        logger.info(
            "Vested tokens released",
            extra={
                "event": "vesting.released",
                "beneficiary": beneficiary[:10],
                "amount": amount,
                "released_total": schedule.released,
            },
        )
        return amount

    def revoke_vesting(self, ctx: CallContext, beneficiary: str) -> bool:
        """Stop a schedule; its unreleased tokens return to the free balance."""
        self.access.require_owner(ctx.sender)
        schedule = self._get_schedule(beneficiary)
        if schedule.revoked:
            raise AlreadyRevoked(beneficiary=normalize_address(beneficiary))

        schedule.revoked = True
        self.emit("VestingRevoked", beneficiary=normalize_address(beneficiary))
        logger.warning(
            "Vesting schedule revoked",
            extra={
                "event": "vesting.revoked",
                "beneficiary": normalize_address(beneficiary)[:10],
                "unreleased": schedule.unclaimed,
            },
        )
        return True

    def recover_unused_tokens(self, ctx: CallContext, to: str, amount: int) -> bool:
        """Withdraw tokens not backing any outstanding schedule."""
        self.access.require_owner(ctx.sender)
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        amount = require_uint(amount)
        free = self.contract_token_balance(ctx) - self.total_unclaimed_obligation(ctx)
        if amount > free:
            raise CannotWithdrawVestedTokens(requested=amount, available=free)

        self.call(self._token, "transfer", to, amount)
        logger.info(
            "Unused vesting tokens recovered",
            extra={"event": "vesting.recovered", "to": to, "amount": amount},
        )
        return True

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> bool:
        previous, new_owner = self.access.transfer_ownership(ctx.sender, new_owner)
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)
        return True

    # ==================== Helpers ====================

    def _get_schedule(self, beneficiary: str) -> VestingSchedule:
        schedule = self._schedules.get(normalize_address(beneficiary))
        if schedule is None:
            raise NoVestingSchedule(beneficiary=normalize_address(beneficiary))
        return schedule

    def to_dict(self, ctx: CallContext | None = None) -> Dict[str, Any]:
        data = super().to_dict(ctx)
        data.update(
            {
                "owner": self.access.owner,
                "token": self._token,
                "founder_duration": self._founder_duration,
                "vested_accounts": list(self._vested_accounts),
                "schedules": {a: s.to_dict() for a, s in self._schedules.items()},
            }
        )
        return data
