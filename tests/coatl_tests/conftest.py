"""
Shared fixtures for the Coatl contract suites.

Mirrors the production deployment: an 875M CTL token minted
to a multisig, a mock ETH/USD feed at $2000 and a sale priced at $0.10.
"""

import hashlib
from types import SimpleNamespace

import pytest

from coatl.core.contracts.ico import CoatlICO
from coatl.core.contracts.token import CoatlToken
from coatl.core.contracts.vesting import CoatlVesting
from coatl.core.defi.price_feed import MockPriceFeed
from coatl.core.units import days, parse_ether, to_price_units
from coatl.core.vm.executor import ContractExecutor, ManualClock

GENESIS_TIME = 1_700_000_000
INITIAL_SUPPLY = parse_ether(875_000_000)
ETH_USD_PRICE = to_price_units(2000)
SOFT_CAP = parse_ether(5_000_000)
HARD_CAP = parse_ether(20_000_000)
SALE_DURATION = days(90)
VESTING_FUNDING = parse_ether(100_000)


def make_address(label: str) -> str:
    """Deterministic test address for a human-readable label."""
    return "0x" + hashlib.sha3_256(label.encode()).hexdigest()[:40]


@pytest.fixture
def clock():
    return ManualClock(GENESIS_TIME)


@pytest.fixture
def executor(clock):
    return ContractExecutor(time_provider=clock, allow_faucet=True)


@pytest.fixture
def accounts():
    names = [
        "deployer",
        "multisig",
        "fee_receiver",
        "project_wallet",
        "alice",
        "bob",
        "carol",
        "founder",
        "contributor",
        "other",
    ]
    return SimpleNamespace(**{name: make_address(name) for name in names})


@pytest.fixture
def buyers(executor):
    """Twenty funded purchasers, enough to walk the sale up to its hard cap."""
    addresses = [make_address(f"buyer-{i}") for i in range(20)]
    for address in addresses:
        executor.fund(address, parse_ether(1_000))
    return addresses


@pytest.fixture
def token(executor, accounts):
    return executor.deploy(
        accounts.deployer,
        CoatlToken,
        INITIAL_SUPPLY,
        accounts.multisig,
        accounts.fee_receiver,
        [],
    )


@pytest.fixture
def price_feed(executor, accounts):
    return executor.deploy(accounts.deployer, MockPriceFeed, ETH_USD_PRICE)


@pytest.fixture
def ico(executor, accounts, clock, token, price_feed):
    start = clock() + 10
    sale = executor.deploy(
        accounts.deployer,
        CoatlICO,
        token.address,
        price_feed.address,
        SOFT_CAP,
        HARD_CAP,
        start,
        start + SALE_DURATION,
        accounts.project_wallet,
    )
    executor.transact(accounts.multisig, token.address, "transfer", sale.address, HARD_CAP)
    return sale


@pytest.fixture
def vesting(executor, accounts, token):
    manager = executor.deploy(accounts.deployer, CoatlVesting, token.address)
    executor.transact(accounts.multisig, token.address, "transfer", manager.address, VESTING_FUNDING)
    return manager
