"""
Coatl Token (CTL).

Fee-bearing fungible token with:
- Transfer and burn fees routed to a fee receiver (whole percentages)
- Blacklist enforcement on both sides of a transfer
- Whitelist tracking for off-chain consumers
- Owner-controlled pause and fee schedule
- Multisig-controlled access lists

The full supply is minted once, to the multisig wallet, at deployment.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from coatl.core.config import Config
from coatl.core.contract_exceptions import (
    RecipientBlacklisted,
    SenderBlacklisted,
    UnauthorizedCaller,
    ZeroAddressNotAllowed,
)
from coatl.core.units import TOKEN_DECIMALS
from coatl.core.vm.contract import ZERO_ADDRESS, CallContext, Contract, normalize_address
from coatl.security.address_filter import AddressFilter

from .capabilities import (
    AccessControlled,
    FungibleLedger,
    Pausable,
    calculate_fee,
    validate_fee,
)

logger = logging.getLogger(__name__)


class CoatlToken(Contract):
    """
    The Coatl ledger contract.

    Fees are percentages in [0, 100]: a transfer of ``amount`` credits the
    recipient ``amount - amount * fee // 100`` and the fee receiver the rest.
    """

    def initialize(
        self,
        ctx: CallContext,
        initial_supply: int,
        multi_sig_wallet: str,
        fee_receiver: str,
        initial_blacklist: Iterable[str] = (),
        name: str | None = None,
        symbol: str | None = None,
    ) -> None:
        multi_sig_wallet = normalize_address(multi_sig_wallet)
        fee_receiver = normalize_address(fee_receiver)
        if ZERO_ADDRESS in (multi_sig_wallet, fee_receiver):
            raise ZeroAddressNotAllowed()

        self._name = name or Config.TOKEN_NAME
        self._symbol = symbol or Config.TOKEN_SYMBOL
        self._multi_sig_wallet = multi_sig_wallet
        self._fee_receiver = fee_receiver
        self._transfer_fee = validate_fee(Config.DEFAULT_TRANSFER_FEE)
        self._burn_fee = validate_fee(Config.DEFAULT_BURN_FEE)

        self.access = AccessControlled(ctx.sender)
        self.pausable = Pausable()
        self.ledger = FungibleLedger()
        self.access_lists = AddressFilter(initial_blacklist)

        self.ledger.mint(multi_sig_wallet, initial_supply)
        self.emit("OwnershipTransferred", previous_owner=ZERO_ADDRESS, new_owner=self.access.owner)
        self.emit("Transfer", sender=ZERO_ADDRESS, recipient=multi_sig_wallet, value=initial_supply)

        logger.info(
            "Coatl token initialized",
            extra={
                "event": "token.initialized",
                "symbol": self._symbol,
                "supply": initial_supply,
                "multisig": multi_sig_wallet,
                "fee_receiver": fee_receiver,
                "blacklisted": len(self.access_lists.blacklist),
            },
        )

    # ==================== View Functions ====================

    def name(self, ctx: CallContext) -> str:
        return self._name

    def symbol(self, ctx: CallContext) -> str:
        return self._symbol

    def decimals(self, ctx: CallContext) -> int:
        return TOKEN_DECIMALS

    def total_supply(self, ctx: CallContext) -> int:
        return self.ledger.total_supply

    def total_burned(self, ctx: CallContext) -> int:
        return self.ledger.total_burned

    def balance_of(self, ctx: CallContext, account: str) -> int:
        return self.ledger.balance_of(account)

    def transfer_fee(self, ctx: CallContext) -> int:
        return self._transfer_fee

    def burn_fee(self, ctx: CallContext) -> int:
        return self._burn_fee

    def fee_receiver(self, ctx: CallContext) -> str:
        return self._fee_receiver

    def multi_sig_wallet(self, ctx: CallContext) -> str:
        return self._multi_sig_wallet

    def owner(self, ctx: CallContext) -> str:
        return self.access.owner

    def paused(self, ctx: CallContext) -> bool:
        return self.pausable.paused

    def is_blacklisted(self, ctx: CallContext, account: str) -> bool:
        return self.access_lists.is_blacklisted(account)

    def is_whitelisted(self, ctx: CallContext, account: str) -> bool:
        return self.access_lists.is_whitelisted(account)

    # ==================== State-Changing Functions ====================

    def transfer(self, ctx: CallContext, to: str, amount: int) -> bool:
        """
        Transfer ``amount`` from the caller, routing the transfer fee.

        Raises:
            Paused: While the token is paused
            SenderBlacklisted / RecipientBlacklisted: If either side is listed
            ZeroAddressNotAllowed: If ``to`` is the zero address
            InsufficientBalance: If the caller holds less than ``amount``
        """
        self.pausable.require_not_paused()
        sender = normalize_address(ctx.sender)
        to = normalize_address(to)

        if self.access_lists.is_blacklisted(sender):
            raise SenderBlacklisted(account=sender)
        if self.access_lists.is_blacklisted(to):
            raise RecipientBlacklisted(account=to)
        if to == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        self.ledger.require_balance(sender, amount)
        fee = calculate_fee(amount, self._transfer_fee)
        self.ledger.move(sender, to, amount - fee)
        if fee:
            self.ledger.move(sender, self._fee_receiver, fee)

        self.emit("Transfer", sender=sender, recipient=to, value=amount - fee)
        if fee:
            self.emit("Transfer", sender=sender, recipient=self._fee_receiver, value=fee)

        logger.debug(
            "Coatl transfer",
            extra={
                "event": "token.transfer",
                "from": sender[:10],
                "to": to[:10],
                "amount": amount,
                "fee": fee,
            },
        )
        return True

    def burn(self, ctx: CallContext, amount: int) -> bool:
        """Destroy ``amount`` of the caller's tokens less the burn fee, which goes to the fee receiver."""
        sender = normalize_address(ctx.sender)
        self.ledger.require_balance(sender, amount)
        fee = calculate_fee(amount, self._burn_fee)

        self.ledger.burn(sender, amount - fee)
        if fee:
            self.ledger.move(sender, self._fee_receiver, fee)

        self.emit("Transfer", sender=sender, recipient=ZERO_ADDRESS, value=amount - fee)
        if fee:
            self.emit("Transfer", sender=sender, recipient=self._fee_receiver, value=fee)

        logger.info(
            "Coatl burn",
            extra={"event": "token.burn", "holder": sender[:10], "burned": amount - fee, "fee": fee},
        )
        return True

    # ==================== Access Lists (multisig) ====================

    def add_blacklist(self, ctx: CallContext, account: str) -> bool:
        self._require_multisig(ctx.sender)
        self.access_lists.add_to_blacklist(account)
        self._emit_list_status(account)
        return True

    def remove_blacklist(self, ctx: CallContext, account: str) -> bool:
        self._require_multisig(ctx.sender)
        self.access_lists.remove_from_blacklist(account)
        self._emit_list_status(account)
        return True

    def add_whitelist(self, ctx: CallContext, account: str) -> bool:
        self._require_multisig(ctx.sender)
        self.access_lists.add_to_whitelist(account)
        self._emit_list_status(account)
        return True

    def remove_whitelist(self, ctx: CallContext, account: str) -> bool:
        self._require_multisig(ctx.sender)
        self.access_lists.remove_from_whitelist(account)
        self._emit_list_status(account)
        return True

    def update_multi_sig_wallet(self, ctx: CallContext, new_wallet: str) -> bool:
        """Hand the multisig role to another wallet (current multisig only)."""
        self._require_multisig(ctx.sender)
        new_wallet = normalize_address(new_wallet)
        if new_wallet == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        previous, self._multi_sig_wallet = self._multi_sig_wallet, new_wallet
        self.emit("MultiSigWalletUpdated", previous_wallet=previous, new_wallet=new_wallet)
        logger.info(
            "Multisig wallet updated",
            extra={"event": "token.multisig_updated", "previous": previous, "new": new_wallet},
        )
        return True

    # ==================== Admin Functions (owner) ====================

    def update_fee(self, ctx: CallContext, new_fee: int) -> bool:
        """Set the transfer fee percentage (owner only)."""
        self.access.require_owner(ctx.sender)
        previous, self._transfer_fee = self._transfer_fee, validate_fee(new_fee)
        self.emit("FeeUpdated", kind="transfer", previous_fee=previous, new_fee=new_fee)
        logger.info(
            "Transfer fee updated",
            extra={"event": "token.fee_updated", "kind": "transfer", "previous": previous, "new": new_fee},
        )
        return True

    def update_burn_fee(self, ctx: CallContext, new_fee: int) -> bool:
        """Set the burn fee percentage (owner only)."""
        self.access.require_owner(ctx.sender)
        previous, self._burn_fee = self._burn_fee, validate_fee(new_fee)
        self.emit("FeeUpdated", kind="burn", previous_fee=previous, new_fee=new_fee)
        logger.info(
            "Burn fee updated",
            extra={"event": "token.fee_updated", "kind": "burn", "previous": previous, "new": new_fee},
        )
        return True

    def update_fee_receiver(self, ctx: CallContext, new_receiver: str) -> bool:
        self.access.require_owner(ctx.sender)
        new_receiver = normalize_address(new_receiver)
        if new_receiver == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()
        previous, self._fee_receiver = self._fee_receiver, new_receiver
        self.emit("FeeReceiverUpdated", previous_receiver=previous, new_receiver=new_receiver)
        return True

    def pause(self, ctx: CallContext) -> bool:
        """Pause token transfers (owner only)."""
        self.access.require_owner(ctx.sender)
        if self.pausable.pause():
            self.emit("Paused", account=normalize_address(ctx.sender))
            logger.warning("Coatl transfers paused", extra={"event": "token.paused", "by": ctx.sender})
        return True

    def unpause(self, ctx: CallContext) -> bool:
        """Unpause token transfers (owner only)."""
        self.access.require_owner(ctx.sender)
        if self.pausable.unpause():
            self.emit("Unpaused", account=normalize_address(ctx.sender))
            logger.info("Coatl transfers resumed", extra={"event": "token.unpaused", "by": ctx.sender})
        return True

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        previous, new_owner = self.access.transfer_ownership(ctx.sender, new_owner)
        self.emit("OwnershipTransferred", previous_owner=previous, new_owner=new_owner)
        logger.info(
            "Token ownership transferred",
            extra={"event": "token.ownership_transferred", "previous": previous, "new": new_owner},
        )
        return True

    # ==================== Helpers ====================

    def _require_multisig(self, caller: str) -> None:
        if normalize_address(caller) != self._multi_sig_wallet:
            logger.warning(
                "Multisig-only call rejected",
                extra={"event": "token.unauthorized", "caller": caller},
            )
            raise UnauthorizedCaller(account=caller)

    def _emit_list_status(self, account: str) -> None:
        whitelisted, blacklisted = self.access_lists.status(account)
        self.emit(
            "ListStatusUpdated",
            account=normalize_address(account),
            whitelisted=whitelisted,
            blacklisted=blacklisted,
        )

    # ==================== Serialization ====================

    def to_dict(self, ctx: CallContext | None = None) -> Dict[str, Any]:
        """Serialize token state to dictionary."""
        data = super().to_dict(ctx)
        data.update(
            {
                "name": self._name,
                "symbol": self._symbol,
                "decimals": TOKEN_DECIMALS,
                "total_supply": self.ledger.total_supply,
                "total_burned": self.ledger.total_burned,
                "owner": self.access.owner,
                "multi_sig_wallet": self._multi_sig_wallet,
                "fee_receiver": self._fee_receiver,
                "transfer_fee": self._transfer_fee,
                "burn_fee": self._burn_fee,
                "paused": self.pausable.paused,
                "balances": dict(self.ledger.balances),
                **self.access_lists.to_dict(),
            }
        )
        return data

