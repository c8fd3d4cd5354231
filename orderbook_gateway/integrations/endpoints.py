from __future__ import annotations

from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict

from orderbook_gateway.config.settings import Settings


class EndpointDescriptor(BaseModel):
    """Fully-formed request target; query string already embedded in `url`."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


def direct_url(api_url: str, symbol: str) -> str:
    separator = "&" if "?" in api_url else "?"
    return f"{api_url}{separator}{urlencode({'symbol': symbol})}"


def relayed_url(proxy_prefix: str, target_url: str) -> str:
    return f"{proxy_prefix}{quote(target_url, safe='')}"


def build_endpoints(settings: Settings) -> list[EndpointDescriptor]:
    if settings.ORDERBOOK_ENDPOINTS:
        return [
            EndpointDescriptor(name=f"configured-{idx}", url=url)
            for idx, url in enumerate(settings.ORDERBOOK_ENDPOINTS)
        ]

    direct = direct_url(settings.ORDERBOOK_API_URL, settings.ORDERBOOK_SYMBOL)
    out: list[EndpointDescriptor] = []
    if settings.ORDERBOOK_PROXY_PREFIX:
        out.append(EndpointDescriptor(name="proxy", url=relayed_url(settings.ORDERBOOK_PROXY_PREFIX, direct)))
    out.append(EndpointDescriptor(name="direct", url=direct))
    return out
