from __future__ import annotations

import logging
from typing import Iterable, Tuple

from coatl.core.vm.contract import normalize_address

logger = logging.getLogger(__name__)


class AddressFilter:
    """
    Blacklist and whitelist membership for token accounts.

    The two sets are independent: an address may sit on both. Only the
    blacklist gates transfers; whitelist membership is recorded for off-chain
    consumers. Mutations are idempotent and report whether anything changed.
    """

    def __init__(self, initial_blacklist: Iterable[str] = ()):
        self.whitelist: set[str] = set()
        self.blacklist: set[str] = {normalize_address(a) for a in initial_blacklist}

    def add_to_whitelist(self, address: str) -> bool:
        address = normalize_address(address)
        if address in self.whitelist:
            return False
        self.whitelist.add(address)
        logger.info("Address added to whitelist", extra={"event": "address_filter.whitelist_add", "address": address})
        return True

    def remove_from_whitelist(self, address: str) -> bool:
        address = normalize_address(address)
        if address in self.whitelist:
            self.whitelist.remove(address)
            logger.info("Address removed from whitelist", extra={"event": "address_filter.whitelist_remove", "address": address})
            return True
        logger.info("Address not found in whitelist", extra={"event": "address_filter.whitelist_missing", "address": address})
        return False

    def add_to_blacklist(self, address: str) -> bool:
        address = normalize_address(address)
        if address in self.blacklist:
            return False
        self.blacklist.add(address)
        logger.warning("Address added to blacklist", extra={"event": "address_filter.blacklist_add", "address": address})
        return True

    def remove_from_blacklist(self, address: str) -> bool:
        address = normalize_address(address)
        if address in self.blacklist:
            self.blacklist.remove(address)
            logger.info("Address removed from blacklist", extra={"event": "address_filter.blacklist_remove", "address": address})
            return True
        logger.info("Address not found in blacklist", extra={"event": "address_filter.blacklist_missing", "address": address})
        return False

    def is_whitelisted(self, address: str) -> bool:
        return normalize_address(address) in self.whitelist

    def is_blacklisted(self, address: str) -> bool:
        return normalize_address(address) in self.blacklist

    def status(self, address: str) -> Tuple[bool, bool]:
        """(whitelisted, blacklisted) for an address."""
        return self.is_whitelisted(address), self.is_blacklisted(address)

    def to_dict(self) -> dict:
        return {
            "whitelist": sorted(self.whitelist),
            "blacklist": sorted(self.blacklist),
        }
