from __future__ import annotations

from orderbook_gateway.schemas.orderbook import (
    AcquisitionState,
    BookRow,
    DepthContext,
    OrderBookView,
    PriceLevel,
    SpreadView,
)
from orderbook_gateway.services.book_metrics import (
    HUNDRED,
    MIN_MAX_TOTAL,
    ZERO,
    depth_context,
    depth_ratio,
    format_amount,
    format_max_total,
    format_price,
    format_total,
    spread,
)


def _rows(levels: tuple[PriceLevel, ...], limit: int, context: DepthContext) -> list[BookRow]:
    return [
        BookRow(
            price=format_price(level.price),
            amount=format_amount(level.amount),
            total=format_total(level.price, level.amount),
            depth_ratio=float(max(min(depth_ratio(level, context), HUNDRED), ZERO)),
        )
        for level in levels[:limit]
    ]


def build_book_view(state: AcquisitionState, *, symbol: str, row_limit: int = 30) -> OrderBookView:
    """Render-ready model: truncated best-first columns plus hidden counts."""
    view = OrderBookView(
        symbol=symbol,
        status=state.status,
        error=state.error,
        stale=state.stale,
        fetched_at=state.fetched_at,
        cycle_seq=state.cycle_seq,
        max_total=format_max_total(DepthContext(max_total=MIN_MAX_TOTAL)),
    )
    snapshot = state.snapshot
    if snapshot is None:
        return view

    context = depth_context(snapshot)
    metrics = spread(snapshot)
    asks_view = _rows(snapshot.asks, row_limit, context)
    bids_view = _rows(snapshot.bids, row_limit, context)

    return view.model_copy(
        update={
            "spread": SpreadView(
                absolute_spread=str(metrics.absolute_spread),
                spread_percent=str(metrics.spread_percent),
            )
            if metrics is not None
            else None,
            "max_total": format_max_total(context),
            "asks_view": asks_view,
            "bids_view": bids_view,
            "asks_hidden": max(len(snapshot.asks) - len(asks_view), 0),
            "bids_hidden": max(len(snapshot.bids) - len(bids_view), 0),
            "total_asks": len(snapshot.asks),
            "total_bids": len(snapshot.bids),
            "best_ask": format_price(snapshot.asks[0].price) if snapshot.asks else None,
            "best_bid": format_price(snapshot.bids[0].price) if snapshot.bids else None,
        }
    )
