"""
Coatl ICO.

Capped crowdsale selling CTL at a fixed USD price against native currency.
Purchases are priced through an ETH/USD feed; the contribution limits are
USD amounts converted to wei at the current price on every call.

Lifecycle: PENDING (before ``start``) -> ACTIVE (``start`` to ``end``
inclusive) -> ENDED -> FINALIZED (owner, after unsold tokens are recovered).
If the soft cap is met the raised funds go to the project wallet, otherwise
contributors reclaim them once the sale has ended.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict

from coatl.core.config import Config
from coatl.core.contract_exceptions import (
    AlreadyFinalized,
    ContributionTooHigh,
    ContributionTooLow,
    EndBeforeStart,
    HardcapReached,
    ICONotActive,
    ICOnotEnded,
    InvalidCaps,
    NoContribution,
    NotFinalized,
    SoftCapAlreadyReached,
    SoftcapNotReached,
    UnsoldTokensNotRecovered,
    ZeroAddressNotAllowed,
)
from coatl.core.defi.price_feed import validate_price_reading
from coatl.core.units import CENTS_PER_USD, PRICE_TO_WEI_SCALE, WEI_PER_ETHER
from coatl.core.vm.contract import ZERO_ADDRESS, CallContext, Contract, normalize_address, payable, require_uint
from coatl.core.vm.exceptions import InvalidAmount

from .capabilities import AccessControlled

logger = logging.getLogger(__name__)


def _setting(value: int | None, default: int, name: str) -> int:
    """Explicit deployment parameter, or the configured default when omitted."""
    return require_uint(default if value is None else value, name, minimum=1)


class SaleState(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ENDED = "ended"
    FINALIZED = "finalized"


class CoatlICO(Contract):
    """
    Token sale contract.

    The sale must hold the tokens it sells: the token owner transfers up to
    ``hard_cap`` tokens to the sale address after deployment.
    """

    def initialize(
        self,
        ctx: CallContext,
        token: str,
        price_feed: str,
        soft_cap: int,
        hard_cap: int,
        start: int,
        end: int,
        project_wallet: str,
        token_usd_price_cents: int | None = None,
        min_contribution_usd: int | None = None,
        max_contribution_usd: int | None = None,
        max_price_age: int | None = None,
    ) -> None:
        token = normalize_address(token)
        price_feed = normalize_address(price_feed)
        project_wallet = normalize_address(project_wallet)
        if ZERO_ADDRESS in (token, price_feed, project_wallet):
            raise ZeroAddressNotAllowed()
        soft_cap = require_uint(soft_cap, "soft_cap")
        hard_cap = require_uint(hard_cap, "hard_cap")
        start = require_uint(start, "start")
        end = require_uint(end, "end")
        if soft_cap <= 0 or soft_cap > hard_cap:
            raise InvalidCaps(soft_cap=soft_cap, hard_cap=hard_cap)
        if end <= start:
            raise EndBeforeStart(start=start, end=end)

        self.access = AccessControlled(ctx.sender)

        self._token = token
        self._price_feed = price_feed
        self._soft_cap = soft_cap
        self._hard_cap = hard_cap
        self._start = start
        self._end = end
        self._project_wallet = project_wallet

        self._token_usd_price_cents = _setting(token_usd_price_cents, Config.TOKEN_USD_PRICE_CENTS, "token_usd_price_cents")
        self._min_contribution_usd = _setting(min_contribution_usd, Config.MIN_CONTRIBUTION_USD, "min_contribution_usd")
        self._max_contribution_usd = _setting(max_contribution_usd, Config.MAX_CONTRIBUTION_USD, "max_contribution_usd")
        self._max_price_age = _setting(max_price_age, Config.MAX_PRICE_AGE_SECONDS, "max_price_age")
        if self._min_contribution_usd > self._max_contribution_usd:
            raise InvalidAmount(
                f"min_contribution_usd ({self._min_contribution_usd}) exceeds "
                f"max_contribution_usd ({self._max_contribution_usd})"
            )

        self._contributions: Dict[str, int] = {}
        self._tokens_purchased: Dict[str, int] = {}
        self._total_tokens_sold = 0
        self._soft_cap_reached = False
        self._started = False
        self._unsold_recovered = False
        self._finalized = False

        logger.info(
            "ICO initialized",
            extra={
                "event": "ico.initialized",
                "token": token,
                "soft_cap": soft_cap,
                "hard_cap": hard_cap,
                "start": start,
                "end": end,
            },
        )

    # ==================== View Functions ====================

    def token(self, ctx: CallContext) -> str:
        return self._token

    def price_feed(self, ctx: CallContext) -> str:
        return self._price_feed

    def soft_cap(self, ctx: CallContext) -> int:
        return self._soft_cap

    def hard_cap(self, ctx: CallContext) -> int:
        return self._hard_cap

    def start(self, ctx: CallContext) -> int:
        return self._start

    def end(self, ctx: CallContext) -> int:
        return self._end

    def project_wallet(self, ctx: CallContext) -> str:
        return self._project_wallet

    def owner(self, ctx: CallContext) -> str:
        return self.access.owner

    def contributions(self, ctx: CallContext, account: str) -> int:
        return self._contributions.get(normalize_address(account), 0)

    def tokens_purchased(self, ctx: CallContext, account: str) -> int:
        return self._tokens_purchased.get(normalize_address(account), 0)

    def total_tokens_sold(self, ctx: CallContext) -> int:
        return self._total_tokens_sold

    def soft_cap_reached(self, ctx: CallContext) -> bool:
        return self._soft_cap_reached

    def unsold_recovered(self, ctx: CallContext) -> bool:
        return self._unsold_recovered

    def finalized(self, ctx: CallContext) -> bool:
        return self._finalized

    def sale_state(self, ctx: CallContext) -> SaleState:
        if self._finalized:
            return SaleState.FINALIZED
        if ctx.timestamp < self._start:
            return SaleState.PENDING
        if ctx.timestamp <= self._end:
            return SaleState.ACTIVE
        return SaleState.ENDED

    def get_current_price(self, ctx: CallContext) -> int:
        """Validated ETH/USD price with 8 decimals."""
        reading = self.call(self._price_feed, "latest_round_data")
        return validate_price_reading(reading, ctx.timestamp, self._max_price_age)

    def get_min_wei_allowed(self, ctx: CallContext) -> int:
        """Smallest accepted contribution in wei at the current price."""
        return self._min_wei(self.get_current_price(ctx) * PRICE_TO_WEI_SCALE)

    def get_max_wei_allowed(self, ctx: CallContext) -> int:
        """Largest accepted contribution in wei at the current price."""
        return self._max_wei(self.get_current_price(ctx) * PRICE_TO_WEI_SCALE)

    def token_balance(self, ctx: CallContext) -> int:
        """Tokens the sale still holds."""
        return self.call(self._token, "balance_of", self.address)

    # ==================== Purchases ====================

    @payable
    def buy_tokens(self, ctx: CallContext) -> int:
        """
        Buy tokens with the attached value; returns the tokens allocated.

        Raises:
            ICONotActive: Outside the sale window or after finalization
            StalePrice / InvalidPrice: If the price feed cannot be trusted
            ContributionTooLow / ContributionTooHigh: Outside the USD limits
            HardcapReached: If the purchase would exceed the hard cap
        """
        if self.sale_state(ctx) is not SaleState.ACTIVE:
            raise ICONotActive(now=ctx.timestamp, start=self._start, end=self._end)

        buyer = normalize_address(ctx.sender)
        paid = ctx.value

        price = self.get_current_price(ctx)
        price18 = price * PRICE_TO_WEI_SCALE
        min_wei = self._min_wei(price18)
        max_wei = self._max_wei(price18)
        if paid < min_wei:
            raise ContributionTooLow(paid=paid, min_wei=min_wei)
        if paid > max_wei:
            raise ContributionTooHigh(paid=paid, max_wei=max_wei)

        tokens = paid * price18 * CENTS_PER_USD // (self._token_usd_price_cents * WEI_PER_ETHER)
        if self._total_tokens_sold + tokens > self._hard_cap:
            raise HardcapReached(requested=tokens, remaining=self._hard_cap - self._total_tokens_sold)

        self._contributions[buyer] = self._contributions.get(buyer, 0) + paid
        self._tokens_purchased[buyer] = self._tokens_purchased.get(buyer, 0) + tokens
        self._total_tokens_sold += tokens

        if not self._started:
            self._started = True
            self.emit(
                "ICOStarted",
                start=self._start,
                end=self._end,
                soft_cap=self._soft_cap,
                hard_cap=self._hard_cap,
            )
        if not self._soft_cap_reached and self._total_tokens_sold >= self._soft_cap:
            self._soft_cap_reached = True
            logger.info(
                "ICO soft cap reached",
                extra={"event": "ico.soft_cap_reached", "total_sold": self._total_tokens_sold},
            )
        self.emit("TokensPurchased", buyer=buyer, paid=paid, tokens=tokens)

        self.call(self._token, "transfer", buyer, tokens)

        logger.info(
            "Tokens purchased",
            extra={
                "event": "ico.purchase",
                "buyer": buyer[:10],
                "paid": paid,
                "tokens": tokens,
                "price": price,
                "total_sold": self._total_tokens_sold,
            },
        )
        return tokens

    def claim_refund(self, ctx: CallContext) -> int:
        """Return the caller's contribution after a sale that missed its soft cap."""
        if ctx.timestamp <= self._end:
            raise ICOnotEnded(now=ctx.timestamp, end=self._end)
        if self._soft_cap_reached:
            raise SoftCapAlreadyReached()

        contributor = normalize_address(ctx.sender)
        amount = self._contributions.get(contributor, 0)
        if amount == 0:
            raise NoContribution(account=contributor)

        self._contributions[contributor] = 0
        self.emit("RefundClaimed", contributor=contributor, amount=amount)

        self.send_value(contributor, amount)

        logger.info(
            "Refund claimed",
            extra={"event": "ico.refund", "contributor": contributor[:10], "amount": amount},
        )
        return amount

    # ==================== Admin Functions ====================

    def release_funds(self, ctx: CallContext) -> int:
        """Send all raised funds to the project wallet once the soft cap is met."""
        self.access.require_owner(ctx.sender)
        if not self._soft_cap_reached:
            raise SoftcapNotReached(total_sold=self._total_tokens_sold, soft_cap=self._soft_cap)

        amount = self.native_balance()
        self.emit("FundsReleased", wallet=self._project_wallet, amount=amount)
        self.send_value(self._project_wallet, amount)

        logger.info(
            "ICO funds released",
            extra={"event": "ico.funds_released", "wallet": self._project_wallet, "amount": amount},
        )
        return amount

    def recover_unsold_tokens(self, ctx: CallContext, to: str) -> int:
        self.access.require_owner(ctx.sender)
        if ctx.timestamp <= self._end:
            raise ICOnotEnded(now=ctx.timestamp, end=self._end)
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        amount = self.call(self._token, "balance_of", self.address)
        self._unsold_recovered = True
        self.emit("UnsoldTokensRecovered", to=to, amount=amount)

        if amount:
            self.call(self._token, "transfer", to, amount)

        logger.info(
            "Unsold tokens recovered",
            extra={"event": "ico.unsold_recovered", "to": to, "amount": amount},
        )
        return amount

    def finalize(self, ctx: CallContext) -> bool:
        self.access.require_owner(ctx.sender)
        if self._finalized:
            raise AlreadyFinalized()
        if not self._unsold_recovered:
            raise UnsoldTokensNotRecovered()

        self._finalized = True
        self.emit("Finalized")
        logger.info(
            "ICO finalized",
            extra={
                "event": "ico.finalized",
                "total_sold": self._total_tokens_sold,
                "soft_cap_reached": self._soft_cap_reached,
            },
        )
        return True

    def emergency_withdraw(self, ctx: CallContext, to: str) -> int:
        """Sweep residual native balance after finalization."""
        self.access.require_owner(ctx.sender)
        if not self._finalized:
            raise NotFinalized()
        to = normalize_address(to)
        if to == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        amount = self.native_balance()
        self.emit("EmergencyWithdrawal", to=to, amount=amount)
        self.send_value(to, amount)

        logger.warning(
            "ICO emergency withdrawal",
            extra={"event": "ico.emergency_withdraw", "to": to, "amount": amount},
        )
        return amount

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> bool:
        previous, new_owner = self.access.transfer_ownership(ctx.sender, new_owner)
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)
        return True

    # ==================== Helpers ====================

    def _min_wei(self, price18: int) -> int:
        # Rounded up so a contribution at the limit is never worth less than the USD minimum
        return -(-self._min_contribution_usd * WEI_PER_ETHER * WEI_PER_ETHER // price18)

    def _max_wei(self, price18: int) -> int:
        return self._max_contribution_usd * WEI_PER_ETHER * WEI_PER_ETHER // price18

    # ==================== Serialization ====================

    def to_dict(self, ctx: CallContext | None = None) -> Dict[str, Any]:
        """Serialize sale state to dictionary."""
        data = super().to_dict(ctx)
        data.update(
            {
                "owner": self.access.owner,
                "token": self._token,
                "price_feed": self._price_feed,
                "soft_cap": self._soft_cap,
                "hard_cap": self._hard_cap,
                "start": self._start,
                "end": self._end,
                "project_wallet": self._project_wallet,
                "token_usd_price_cents": self._token_usd_price_cents,
                "min_contribution_usd": self._min_contribution_usd,
                "max_contribution_usd": self._max_contribution_usd,
                "contributions": dict(self._contributions),
                "tokens_purchased": dict(self._tokens_purchased),
                "total_tokens_sold": self._total_tokens_sold,
                "soft_cap_reached": self._soft_cap_reached,
                "unsold_recovered": self._unsold_recovered,
                "finalized": self._finalized,
            }
        )
        return data
