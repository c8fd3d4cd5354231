from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from orderbook_gateway.schemas.orderbook import (
    DepthContext,
    OrderBookSnapshot,
    PriceLevel,
    SpreadMetrics,
    exact_product,
)

PRICE_PLACES = Decimal("0.000001")
AMOUNT_PLACES = Decimal("0.01")
TOTAL_PLACES = Decimal("0.01")
SPREAD_PLACES = Decimal("0.000001")
SPREAD_PERCENT_PLACES = Decimal("0.0001")
MIN_MAX_TOTAL = Decimal(1)
HUNDRED = Decimal(100)
ZERO = Decimal(0)


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value).strip())


def _quantize(value: Decimal, places: Decimal) -> Decimal:
    # integer digits + fraction digits + one for a rounding carry
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 2 - places.as_tuple().exponent)
        return value.quantize(places, rounding=ROUND_HALF_UP)


def _fixed(value: Decimal, places: Decimal) -> str:
    return str(_quantize(value, places))


def format_price(price: Any) -> str:
    return _fixed(_as_decimal(price), PRICE_PLACES)


def format_amount(amount: Any) -> str:
    return _fixed(_as_decimal(amount), AMOUNT_PLACES)


def format_total(price: Any, amount: Any) -> str:
    return _fixed(exact_product(_as_decimal(price), _as_decimal(amount)), TOTAL_PLACES)


def spread(snapshot: OrderBookSnapshot) -> SpreadMetrics | None:
    """Best-ask minus best-bid; a crossed book yields a negative spread."""
    if not snapshot.asks or not snapshot.bids:
        return None

    lowest_ask = snapshot.asks[0].price
    highest_bid = snapshot.bids[0].price
    if highest_bid == 0:
        return None

    with localcontext() as ctx:
        # wide enough for an exact difference of far-apart magnitudes
        lowest_exponent = min(lowest_ask.as_tuple().exponent, highest_bid.as_tuple().exponent)
        ctx.prec = max(ctx.prec, max(lowest_ask.adjusted(), highest_bid.adjusted()) - lowest_exponent + 12)
        absolute = lowest_ask - highest_bid
        percent = absolute / highest_bid * HUNDRED
    return SpreadMetrics(
        absolute_spread=_quantize(absolute, SPREAD_PLACES),
        spread_percent=_quantize(percent, SPREAD_PERCENT_PLACES),
    )


def depth_context(snapshot: OrderBookSnapshot) -> DepthContext:
    max_total = MIN_MAX_TOTAL
    for level in snapshot.asks + snapshot.bids:
        if level.total > max_total:
            max_total = level.total
    return DepthContext(max_total=max_total)


def depth_ratio(level: PriceLevel, context: DepthContext) -> Decimal:
    return level.total / context.max_total * HUNDRED


def format_max_total(context: DepthContext) -> str:
    return _fixed(context.max_total, TOTAL_PLACES)
