"""
Coatl Contract Configuration

Supports testnet and mainnet profiles with separate defaults.

All tunables are read from ``COATL_*`` environment variables at import time.
Contracts copy the values they need into their own state when they are
deployed, so changing the environment later never alters a live contract.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int, minimum: int = 0, maximum: int | None = None) -> int:
    """Read an integer setting, enforcing its allowed range."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < minimum or (maximum is not None and value > maximum):
        raise ConfigurationError(
            f"{env_var}={value} outside allowed range [{minimum}, {maximum if maximum is not None else 'inf'}]"
        )
    return value


def _get_required_int(env_var: str, network: str, default: int, **bounds: int) -> int:
    """Get a sale-critical setting; mainnet refuses to fall back to defaults."""
    if os.getenv(env_var, "").strip():
        return _get_int(env_var, default, **bounds)

    if network.lower() == "mainnet":
        raise ConfigurationError(
            f"CRITICAL: {env_var} environment variable required for mainnet."
        )

    logger.warning(
        "%s not set, using testnet default %s",
        env_var,
        default,
        extra={"event": "config.default_used", "env_var": env_var},
    )
    return default


# Get network type from environment variable
NETWORK = os.getenv("COATL_NETWORK", "testnet")  # Default to testnet for safety

TOKEN_NAME = os.getenv("COATL_TOKEN_NAME", "Coatl")
TOKEN_SYMBOL = os.getenv("COATL_TOKEN_SYMBOL", "CTL")

# Fees are whole percentages (0-100)
DEFAULT_TRANSFER_FEE = _get_int("COATL_DEFAULT_TRANSFER_FEE", 0, maximum=100)
DEFAULT_BURN_FEE = _get_int("COATL_DEFAULT_BURN_FEE", 0, maximum=100)

# Sale pricing: fixed token price in USD cents, contribution limits in whole USD
TOKEN_USD_PRICE_CENTS = _get_int("COATL_TOKEN_USD_PRICE_CENTS", 10, minimum=1)
MIN_CONTRIBUTION_USD = _get_required_int("COATL_MIN_CONTRIBUTION_USD", NETWORK, 50, minimum=1)
MAX_CONTRIBUTION_USD = _get_required_int("COATL_MAX_CONTRIBUTION_USD", NETWORK, 150_000, minimum=1)
MAX_PRICE_AGE_SECONDS = _get_int("COATL_MAX_PRICE_AGE_SECONDS", 3600, minimum=1)

FOUNDER_VESTING_DAYS = _get_int("COATL_FOUNDER_VESTING_DAYS", 365, minimum=1)

LOG_LEVEL = os.getenv("COATL_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("COATL_LOG_FILE", "").strip() or None

if MIN_CONTRIBUTION_USD > MAX_CONTRIBUTION_USD:
    raise ConfigurationError(
        "COATL_MIN_CONTRIBUTION_USD must not exceed COATL_MAX_CONTRIBUTION_USD "
        f"({MIN_CONTRIBUTION_USD} > {MAX_CONTRIBUTION_USD})"
    )


class TestnetConfig:
    """Testnet Configuration (local simulation and test suites)"""

    NETWORK_TYPE = NetworkType.TESTNET

    TOKEN_NAME = TOKEN_NAME
    TOKEN_SYMBOL = TOKEN_SYMBOL
    DEFAULT_TRANSFER_FEE = DEFAULT_TRANSFER_FEE
    DEFAULT_BURN_FEE = DEFAULT_BURN_FEE

    TOKEN_USD_PRICE_CENTS = TOKEN_USD_PRICE_CENTS
    MIN_CONTRIBUTION_USD = MIN_CONTRIBUTION_USD
    MAX_CONTRIBUTION_USD = MAX_CONTRIBUTION_USD
    MAX_PRICE_AGE_SECONDS = MAX_PRICE_AGE_SECONDS

    FOUNDER_VESTING_DAYS = FOUNDER_VESTING_DAYS

    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE

    # Accounts may be funded with native currency out of thin air
    ALLOW_FAUCET = True


class MainnetConfig:
    """Mainnet Configuration (production deployment)"""

    NETWORK_TYPE = NetworkType.MAINNET

    TOKEN_NAME = TOKEN_NAME
    TOKEN_SYMBOL = TOKEN_SYMBOL
    DEFAULT_TRANSFER_FEE = DEFAULT_TRANSFER_FEE
    DEFAULT_BURN_FEE = DEFAULT_BURN_FEE

    TOKEN_USD_PRICE_CENTS = TOKEN_USD_PRICE_CENTS
    MIN_CONTRIBUTION_USD = MIN_CONTRIBUTION_USD
    MAX_CONTRIBUTION_USD = MAX_CONTRIBUTION_USD
    MAX_PRICE_AGE_SECONDS = MAX_PRICE_AGE_SECONDS

    FOUNDER_VESTING_DAYS = FOUNDER_VESTING_DAYS

    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE

    ALLOW_FAUCET = False


# Select config based on network
if NETWORK.lower() == "mainnet":
    Config = MainnetConfig
else:
    Config = TestnetConfig


# Export config
__all__ = [
    "Config",
    "ConfigurationError",
    "NetworkType",
    "TestnetConfig",
    "MainnetConfig",
    "TOKEN_USD_PRICE_CENTS",
    "MIN_CONTRIBUTION_USD",
    "MAX_CONTRIBUTION_USD",
    "MAX_PRICE_AGE_SECONDS",
    "FOUNDER_VESTING_DAYS",
]
