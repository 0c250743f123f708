import logging

import pytest

from coatl.core.vm.exceptions import InvalidAddress
from coatl.security.address_filter import AddressFilter

from ..conftest import make_address

ALICE = make_address("filter-alice")
BOB = make_address("filter-bob")


def test_initial_blacklist_is_normalized():
    address_filter = AddressFilter([ALICE.upper().replace("0X", "0x")])
    assert address_filter.is_blacklisted(ALICE)
    assert not address_filter.is_whitelisted(ALICE)


def test_add_and_remove_are_idempotent():
    address_filter = AddressFilter()

    assert address_filter.add_to_whitelist(ALICE) is True
    assert address_filter.add_to_whitelist(ALICE) is False
    assert address_filter.remove_from_whitelist(ALICE) is True
    assert address_filter.remove_from_whitelist(ALICE) is False

    assert address_filter.add_to_blacklist(BOB) is True
    assert address_filter.add_to_blacklist(BOB) is False
    assert address_filter.remove_from_blacklist(BOB) is True
    assert address_filter.remove_from_blacklist(BOB) is False


def test_lists_are_independent():
    address_filter = AddressFilter()
    address_filter.add_to_whitelist(ALICE)
    address_filter.add_to_blacklist(ALICE)

    assert address_filter.status(ALICE) == (True, True)
    assert address_filter.status(BOB) == (False, False)


def test_to_dict_sorted():
    address_filter = AddressFilter([BOB, ALICE])
    assert address_filter.to_dict() == {"whitelist": [], "blacklist": sorted([ALICE, BOB])}


def test_rejects_malformed_address():
    with pytest.raises(InvalidAddress):
        AddressFilter().add_to_blacklist("0x1234")


def test_blacklisting_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="coatl.security.address_filter")
    AddressFilter().add_to_blacklist(BOB)

    record = next(r for r in caplog.records if getattr(r, "event", None) == "address_filter.blacklist_add")
    assert record.levelno == logging.WARNING
    assert record.address == BOB
