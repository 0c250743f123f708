"""Price data consumed by the Coatl sale."""

from .price_feed import MockPriceFeed, PriceOracle, PriceReading, validate_price_reading

__all__ = ["MockPriceFeed", "PriceOracle", "PriceReading", "validate_price_reading"]
