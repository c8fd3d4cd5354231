from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Literal

from pydantic import BaseModel, ConfigDict

AcquisitionStatus = Literal["IDLE", "LOADING", "READY", "FAILED"]


def exact_product(left: Decimal, right: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(left.as_tuple().digits) + len(right.as_tuple().digits))
        return left * right


class PriceLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: Decimal
    amount: Decimal

    @property
    def total(self) -> Decimal:
        return exact_product(self.price, self.amount)


class OrderBookSnapshot(BaseModel):
    """Full replacement view of the book; asks ascending, bids descending as received."""

    model_config = ConfigDict(frozen=True)

    asks: tuple[PriceLevel, ...] = ()
    bids: tuple[PriceLevel, ...] = ()
    fetched_at: float

    def same_levels(self, other: OrderBookSnapshot) -> bool:
        return self.asks == other.asks and self.bids == other.bids


class SpreadMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    absolute_spread: Decimal
    spread_percent: Decimal


class DepthContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_total: Decimal


class AcquisitionState(BaseModel):
    status: AcquisitionStatus = "IDLE"
    snapshot: OrderBookSnapshot | None = None
    fetched_at: float | None = None
    error: str | None = None
    stale: bool = False
    cycle_seq: int = 0


class BookRow(BaseModel):
    price: str
    amount: str
    total: str
    depth_ratio: float


class SpreadView(BaseModel):
    absolute_spread: str
    spread_percent: str


class OrderBookView(BaseModel):
    symbol: str
    status: AcquisitionStatus
    error: str | None = None
    stale: bool = False
    fetched_at: float | None = None
    cycle_seq: int = 0
    spread: SpreadView | None = None
    max_total: str
    asks_view: list[BookRow] = []
    bids_view: list[BookRow] = []
    asks_hidden: int = 0
    bids_hidden: int = 0
    total_asks: int = 0
    total_bids: int = 0
    best_ask: str | None = None
    best_bid: str | None = None
