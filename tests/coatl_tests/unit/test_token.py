"""
Unit tests for the Coatl token.

Coverage targets:
- Supply minted to the multisig, deployer owns the contract
- Transfer and burn fee routing
- Pause, blacklist and whitelist enforcement
- Owner-only and multisig-only administration
"""

import pytest

from coatl.core.contract_exceptions import (
    InsufficientBalance,
    InvalidFee,
    OwnableInvalidOwner,
    OwnableUnauthorizedAccount,
    Paused,
    RecipientBlacklisted,
    SenderBlacklisted,
    UnauthorizedCaller,
    ZeroAddressNotAllowed,
)
from coatl.core.contracts.token import CoatlToken
from coatl.core.units import TOKEN_DECIMALS, parse_ether
from coatl.core.vm.contract import ZERO_ADDRESS
from coatl.core.vm.exceptions import InvalidAmount

from ..conftest import INITIAL_SUPPLY


def balance(executor, token, account):
    return executor.view(token.address, "balance_of", account)


class TestDeployment:
    def test_supply_minted_to_multisig(self, executor, token, accounts):
        assert balance(executor, token, accounts.multisig) == INITIAL_SUPPLY
        assert executor.view(token.address, "total_supply") == INITIAL_SUPPLY
        assert balance(executor, token, accounts.deployer) == 0

    def test_deployer_is_owner(self, executor, token, accounts):
        assert executor.view(token.address, "owner") == accounts.deployer
        assert executor.view(token.address, "multi_sig_wallet") == accounts.multisig
        assert executor.view(token.address, "fee_receiver") == accounts.fee_receiver

    def test_metadata_and_default_fees(self, executor, token):
        assert executor.view(token.address, "name") == "Coatl"
        assert executor.view(token.address, "symbol") == "CTL"
        assert executor.view(token.address, "decimals") == TOKEN_DECIMALS
        assert executor.view(token.address, "transfer_fee") == 0
        assert executor.view(token.address, "burn_fee") == 0
        assert executor.view(token.address, "paused") is False

    def test_initial_blacklist_applied(self, executor, accounts):
        listed = executor.deploy(
            accounts.deployer,
            CoatlToken,
            parse_ether(1000),
            accounts.multisig,
            accounts.fee_receiver,
            [accounts.bob.upper().replace("0X", "0x")],
        )
        assert executor.view(listed.address, "is_blacklisted", accounts.bob) is True

    def test_zero_multisig_rejected(self, executor, accounts):
        with pytest.raises(ZeroAddressNotAllowed):
            executor.deploy(accounts.deployer, CoatlToken, 1, ZERO_ADDRESS, accounts.fee_receiver, [])
        assert len(executor.contracts) == 0

    def test_mint_event_emitted(self, executor, token, accounts):
        transfers = executor.get_events(token.address, "Transfer")
        assert transfers[0].args == {
            "sender": ZERO_ADDRESS,
            "recipient": accounts.multisig,
            "value": INITIAL_SUPPLY,
        }


class TestTransfers:
    def test_transfer_without_fee(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, parse_ether(100))
        assert balance(executor, token, accounts.alice) == parse_ether(100)
        assert balance(executor, token, accounts.multisig) == INITIAL_SUPPLY - parse_ether(100)

    def test_one_percent_fee_routed_to_receiver(self, executor, token, accounts):
        """500 tokens at 1% fee: recipient +495, fee receiver +5."""
        executor.transact(accounts.deployer, token.address, "update_fee", 1)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, parse_ether(500))

        assert balance(executor, token, accounts.alice) == parse_ether(495)
        assert balance(executor, token, accounts.fee_receiver) == parse_ether(5)
        assert balance(executor, token, accounts.multisig) == INITIAL_SUPPLY - parse_ether(500)

    def test_fee_rounds_down(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "update_fee", 3)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 99)
        # 99 * 3 // 100 == 2
        assert balance(executor, token, accounts.fee_receiver) == 2
        assert balance(executor, token, accounts.alice) == 97

    def test_insufficient_balance_reverts(self, executor, token, accounts):
        with pytest.raises(InsufficientBalance):
            executor.transact(accounts.alice, token.address, "transfer", accounts.bob, 1)

    def test_transfer_to_zero_address_rejected(self, executor, token, accounts):
        with pytest.raises(ZeroAddressNotAllowed):
            executor.transact(accounts.multisig, token.address, "transfer", ZERO_ADDRESS, 1)

    def test_negative_amount_rejected(self, executor, token, accounts):
        with pytest.raises(InvalidAmount):
            executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, -1)

    def test_failed_transfer_leaves_state_untouched(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "update_fee", 1)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, parse_ether(10))
        before = token.to_dict()

        with pytest.raises(InsufficientBalance):
            executor.transact(accounts.alice, token.address, "transfer", accounts.bob, parse_ether(11))

        assert token.to_dict() == before


class TestBurn:
    def test_burn_reduces_supply(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "burn", parse_ether(100))
        assert balance(executor, token, accounts.multisig) == INITIAL_SUPPLY - parse_ether(100)
        assert executor.view(token.address, "total_supply") == INITIAL_SUPPLY - parse_ether(100)
        assert executor.view(token.address, "total_burned") == parse_ether(100)

    def test_burn_fee_goes_to_receiver(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "update_burn_fee", 10)
        executor.transact(accounts.multisig, token.address, "burn", parse_ether(100))

        assert balance(executor, token, accounts.fee_receiver) == parse_ether(10)
        assert executor.view(token.address, "total_burned") == parse_ether(90)
        assert executor.view(token.address, "total_supply") == INITIAL_SUPPLY - parse_ether(90)

    def test_burn_allowed_while_paused(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "pause")
        executor.transact(accounts.multisig, token.address, "burn", parse_ether(1))
        assert executor.view(token.address, "total_burned") == parse_ether(1)

    def test_burn_more_than_balance_reverts(self, executor, token, accounts):
        with pytest.raises(InsufficientBalance):
            executor.transact(accounts.alice, token.address, "burn", 1)


class TestPause:
    def test_pause_blocks_transfers(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "pause")
        assert executor.view(token.address, "paused") is True

        with pytest.raises(Paused):
            executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 1)

        executor.transact(accounts.deployer, token.address, "unpause")
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 1)
        assert balance(executor, token, accounts.alice) == 1

    def test_only_owner_can_pause(self, executor, token, accounts):
        with pytest.raises(OwnableUnauthorizedAccount):
            executor.transact(accounts.alice, token.address, "pause")
        assert executor.view(token.address, "paused") is False

    def test_only_owner_can_unpause(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "pause")
        with pytest.raises(OwnableUnauthorizedAccount):
            executor.transact(accounts.alice, token.address, "unpause")
        assert executor.view(token.address, "paused") is True

    def test_pause_event_only_on_change(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "pause")
        executor.transact(accounts.deployer, token.address, "pause")
        assert len(executor.get_events(token.address, "Paused")) == 1


class TestAccessLists:
    def test_blacklisted_sender_blocked(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 10)
        executor.transact(accounts.multisig, token.address, "add_blacklist", accounts.alice)

        with pytest.raises(SenderBlacklisted):
            executor.transact(accounts.alice, token.address, "transfer", accounts.bob, 1)

    def test_blacklisted_recipient_blocked(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "add_blacklist", accounts.bob)
        with pytest.raises(RecipientBlacklisted):
            executor.transact(accounts.multisig, token.address, "transfer", accounts.bob, 1)

        executor.transact(accounts.multisig, token.address, "remove_blacklist", accounts.bob)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.bob, 1)
        assert balance(executor, token, accounts.bob) == 1

    def test_list_updates_are_idempotent_and_emit_status(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "add_whitelist", accounts.carol)
        executor.transact(accounts.multisig, token.address, "add_whitelist", accounts.carol)
        executor.transact(accounts.multisig, token.address, "add_blacklist", accounts.carol)

        assert executor.view(token.address, "is_whitelisted", accounts.carol) is True
        assert executor.view(token.address, "is_blacklisted", accounts.carol) is True

        events = executor.get_events(token.address, "ListStatusUpdated")
        assert len(events) == 3
        assert events[-1].args == {"account": accounts.carol, "whitelisted": True, "blacklisted": True}

    def test_whitelist_does_not_gate_transfers(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "add_whitelist", accounts.alice)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.bob, 5)
        assert balance(executor, token, accounts.bob) == 5

    @pytest.mark.parametrize(
        "method", ["add_blacklist", "remove_blacklist", "add_whitelist", "remove_whitelist"]
    )
    def test_lists_are_multisig_only(self, executor, token, accounts, method):
        # Even the owner cannot edit access lists
        with pytest.raises(UnauthorizedCaller):
            executor.transact(accounts.deployer, token.address, method, accounts.bob)

    def test_update_multisig(self, executor, token, accounts):
        with pytest.raises(UnauthorizedCaller):
            executor.transact(accounts.deployer, token.address, "update_multi_sig_wallet", accounts.alice)

        executor.transact(accounts.multisig, token.address, "update_multi_sig_wallet", accounts.alice)
        assert executor.view(token.address, "multi_sig_wallet") == accounts.alice

        # The old wallet lost the role
        with pytest.raises(UnauthorizedCaller):
            executor.transact(accounts.multisig, token.address, "add_blacklist", accounts.bob)
        executor.transact(accounts.alice, token.address, "add_blacklist", accounts.bob)


class TestAdministration:
    def test_update_fee_owner_only(self, executor, token, accounts):
        with pytest.raises(OwnableUnauthorizedAccount):
            executor.transact(accounts.alice, token.address, "update_fee", 5)

    @pytest.mark.parametrize("fee", [-1, 101, 1000])
    def test_fee_out_of_range_rejected(self, executor, token, accounts, fee):
        with pytest.raises(InvalidFee):
            executor.transact(accounts.deployer, token.address, "update_fee", fee)
        assert executor.view(token.address, "transfer_fee") == 0

    def test_fee_bounds_accepted(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "update_fee", 100)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 50)
        assert balance(executor, token, accounts.alice) == 0
        assert balance(executor, token, accounts.fee_receiver) == 50

    def test_update_fee_receiver(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "update_fee_receiver", accounts.carol)
        executor.transact(accounts.deployer, token.address, "update_fee", 10)
        executor.transact(accounts.multisig, token.address, "transfer", accounts.alice, 100)
        assert balance(executor, token, accounts.carol) == 10

    def test_transfer_ownership(self, executor, token, accounts):
        executor.transact(accounts.deployer, token.address, "transfer_ownership", accounts.alice)
        assert executor.view(token.address, "owner") == accounts.alice

        with pytest.raises(OwnableUnauthorizedAccount):
            executor.transact(accounts.deployer, token.address, "pause")
        with pytest.raises(OwnableInvalidOwner):
            executor.transact(accounts.alice, token.address, "transfer_ownership", ZERO_ADDRESS)

    def test_to_dict_exports_state(self, executor, token, accounts):
        executor.transact(accounts.multisig, token.address, "add_blacklist", accounts.bob)
        state = executor.view(token.address, "to_dict")
        assert state["type"] == "CoatlToken"
        assert state["blacklist"] == [accounts.bob]
        assert state["balances"][accounts.multisig] == INITIAL_SUPPLY
