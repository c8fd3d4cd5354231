from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from orderbook_gateway.api.routes import router
from orderbook_gateway.config.settings import Settings, get_settings
from orderbook_gateway.integrations.endpoints import build_endpoints
from orderbook_gateway.integrations.failover_rest import FailoverRestClient
from orderbook_gateway.services.poll_scheduler import PollScheduler


def build_runtime(settings: Settings, session=None) -> tuple[FailoverRestClient, PollScheduler]:
    client = FailoverRestClient(
        build_endpoints(settings),
        session=session,
        timeout_sec=settings.ORDERBOOK_REQUEST_TIMEOUT_SEC,
    )
    scheduler = PollScheduler(
        client.fetch_payload,
        interval_sec=settings.poll_interval_sec,
        retain_snapshot_on_error=settings.ORDERBOOK_RETAIN_SNAPSHOT_ON_ERROR,
    )
    return client, scheduler


def _bind_runtime(app: FastAPI, settings: Settings) -> None:
    client, scheduler = build_runtime(settings)
    app.state.failover_client = client
    app.state.poll_scheduler = scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    print(
        f"[APP][startup] symbol={settings.ORDERBOOK_SYMBOL} "
        f"interval_ms={settings.ORDERBOOK_POLL_INTERVAL_MS}",
        flush=True,
    )
    app.state.poll_scheduler.start()
    try:
        yield
    finally:
        app.state.poll_scheduler.stop()
        print("[APP][shutdown] poller stopped", flush=True)


app = FastAPI(title="Order Book Gateway", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: tests swap the runtime on app.state before entering the lifespan.
app.state.get_settings = get_settings
_bind_runtime(app, get_settings())
