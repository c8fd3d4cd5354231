from __future__ import annotations

import json
import math
import time
from decimal import Decimal, InvalidOperation
from typing import Any

from orderbook_gateway.errors import MalformedPayloadError
from orderbook_gateway.schemas.orderbook import OrderBookSnapshot, PriceLevel


def _to_decimal(value: Any, *, field_name: str) -> Decimal:
    # bool is an int subclass; a JSON true/false is never a price
    if isinstance(value, bool) or value is None or value == "":
        raise MalformedPayloadError(f"invalid numeric value for {field_name}: {value!r}")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"invalid numeric value for {field_name}: {value!r}") from exc
    # finite as a double, the range a JSON number can carry
    if not number.is_finite() or not math.isfinite(float(number)):
        raise MalformedPayloadError(f"non-finite value for {field_name}: {value!r}")
    return number


def _parse_side(raw: dict, side: str) -> tuple[PriceLevel, ...]:
    entries = raw.get(side)
    if entries is None:
        return ()
    if not isinstance(entries, (list, tuple)):
        raise MalformedPayloadError(f"{side} must be a list of [price, amount] pairs")

    levels: list[PriceLevel] = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            raise MalformedPayloadError(f"{side}[{idx}] must be a [price, amount] pair: {entry!r}")
        levels.append(
            PriceLevel(
                price=_to_decimal(entry[0], field_name=f"{side}[{idx}].price"),
                amount=_to_decimal(entry[1], field_name=f"{side}[{idx}].amount"),
            )
        )
    return tuple(levels)


def parse_order_book(payload: dict | str, fetched_at: float | None = None) -> OrderBookSnapshot:
    """Validate a raw `{asks, bids}` payload into an immutable snapshot.

    Missing sides become empty. Level order is kept exactly as received and
    prices are not checked for positivity.
    """
    if isinstance(payload, str):
        try:
            decoded = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedPayloadError("payload must be valid JSON string or dict") from exc
        payload = decoded
    if not isinstance(payload, dict):
        raise MalformedPayloadError("order book payload must be an object")

    return OrderBookSnapshot(
        asks=_parse_side(payload, "asks"),
        bids=_parse_side(payload, "bids"),
        fetched_at=time.time() if fetched_at is None else fetched_at,
    )
