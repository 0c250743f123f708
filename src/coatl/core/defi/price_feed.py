"""
ETH/USD price feed interface and validation.

The sale reads the settlement-currency price through the Chainlink-style
``latest_round_data`` call and accepts it only if the reading is positive,
comes from a completed round and is recent enough. ``MockPriceFeed`` is a
deployable feed for test networks whose answer the owner sets by hand.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Protocol

from coatl.core.contract_exceptions import InvalidPrice, StalePrice
from coatl.core.contracts.capabilities import AccessControlled
from coatl.core.units import PRICE_DECIMALS
from coatl.core.vm.contract import CallContext, Contract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceReading:
    """One round of an aggregator feed (answer has 8 decimals)."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class PriceOracle(Protocol):
    """Interface that price feed contracts must implement."""

    def latest_round_data(self, ctx: CallContext) -> PriceReading:
        """Most recent round."""
        ...

    def decimals(self, ctx: CallContext) -> int:
        ...


def validate_price_reading(reading: PriceReading, now: int, max_age_seconds: int) -> int:
    """
    Return the reading's price if it can be trusted.

    Raises:
        InvalidPrice: If the answer is zero or negative, or stamped after ``now``
        StalePrice: If the round is incomplete or older than ``max_age_seconds``
    """
    if reading.answer <= 0:
        raise InvalidPrice(answer=reading.answer, round_id=reading.round_id)
    if reading.updated_at == 0 or reading.answered_in_round < reading.round_id:
        raise StalePrice(
            round_id=reading.round_id,
            answered_in_round=reading.answered_in_round,
            updated_at=reading.updated_at,
        )
    age = now - reading.updated_at
    if age < 0:
        logger.warning(
            "Rejected price reading from the future",
            extra={"event": "price_feed.future", "updated_at": reading.updated_at, "now": now},
        )
        raise InvalidPrice(updated_at=reading.updated_at, now=now)
    if age > max_age_seconds:
        logger.warning(
            "Rejected stale price reading",
            extra={"event": "price_feed.stale", "age": age, "max_age": max_age_seconds},
        )
        raise StalePrice(age=age, max_age=max_age_seconds, updated_at=reading.updated_at)
    return reading.answer


class MockPriceFeed(Contract):
    """
    Owner-driven aggregator for test networks.

    Every ``update_price`` opens a new round stamped with the block time.
    ``update_round_data`` writes an arbitrary round, which lets tests build
    stale or incomplete readings.
    """

    def initialize(self, ctx: CallContext, initial_answer: int, decimals: int = PRICE_DECIMALS) -> None:
        self.access = AccessControlled(ctx.sender)
        self._decimals = decimals
        self._round = PriceReading(
            round_id=1,
            answer=initial_answer,
            started_at=ctx.timestamp,
            updated_at=ctx.timestamp,
            answered_in_round=1,
        )

    def decimals(self, ctx: CallContext) -> int:
        return self._decimals

    def latest_round_data(self, ctx: CallContext) -> PriceReading:
        return self._round

    def latest_answer(self, ctx: CallContext) -> int:
        return self._round.answer

    def update_price(self, ctx: CallContext, answer: int) -> int:
        """Publish a new answer in a fresh round; returns the round id."""
        self.access.require_owner(ctx.sender)
        round_id = self._round.round_id + 1
        self._round = PriceReading(
            round_id=round_id,
            answer=answer,
            started_at=ctx.timestamp,
            updated_at=ctx.timestamp,
            answered_in_round=round_id,
        )
        self.emit("AnswerUpdated", current=answer, round_id=round_id, updated_at=ctx.timestamp)
        logger.info(
            "Mock price updated",
            extra={"event": "price_feed.updated", "answer": answer, "round_id": round_id},
        )
        return round_id

    def update_round_data(
        self,
        ctx: CallContext,
        round_id: int,
        answer: int,
        started_at: int,
        updated_at: int,
        answered_in_round: int,
    ) -> bool:
        self.access.require_owner(ctx.sender)
        self._round = PriceReading(round_id, answer, started_at, updated_at, answered_in_round)
        return True

    def to_dict(self, ctx: CallContext | None = None) -> Dict[str, Any]:
        data = super().to_dict(ctx)
        data.update({"decimals": self._decimals, "owner": self.access.owner, **self._round.to_dict()})
        return data
