from fastapi import APIRouter, HTTPException, Request

from orderbook_gateway.errors import OrderBookError
from orderbook_gateway.services.book_view import build_book_view

router = APIRouter()


def _current_view(request: Request) -> dict:
    scheduler = request.app.state.poll_scheduler
    settings = request.app.state.get_settings()
    state = scheduler.state()
    try:
        view = build_book_view(
            state,
            symbol=settings.ORDERBOOK_SYMBOL,
            row_limit=settings.ORDERBOOK_DEPTH_ROW_LIMIT,
        )
    except (ArithmeticError, OrderBookError) as exc:
        print(
            f"[API][view_error] seq={state.cycle_seq} error_type={exc.__class__.__name__} error={exc}",
            flush=True,
        )
        raise HTTPException(status_code=502, detail='ORDERBOOK_VIEW_UNAVAILABLE') from exc
    return view.model_dump()


@router.get('/orderbook')
def get_orderbook(request: Request):
    return _current_view(request)


@router.post('/orderbook/refresh')
def refresh_orderbook(request: Request):
    scheduler = request.app.state.poll_scheduler
    triggered = scheduler.trigger()
    return {'triggered': triggered, **_current_view(request)}


@router.get('/metrics/poll')
def poll_metrics(request: Request):
    metrics = request.app.state.poll_scheduler.metrics()
    client = request.app.state.failover_client
    if client is not None:
        metrics.update(client.metrics())
    return metrics
