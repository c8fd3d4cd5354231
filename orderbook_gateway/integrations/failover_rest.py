from __future__ import annotations

from typing import Any, Optional, Sequence

import requests

from orderbook_gateway.errors import AllEndpointsExhaustedError, TransportError
from orderbook_gateway.integrations.endpoints import EndpointDescriptor

GENERIC_EXHAUSTED_MESSAGE = "Unable to fetch order book from any endpoint."


class FailoverRestClient:
    """Order book REST client that walks an ordered endpoint list until one answers."""

    def __init__(
        self,
        endpoints: Sequence[EndpointDescriptor],
        *,
        session: Optional[Any] = None,
        timeout_sec: float = 5.0,
    ) -> None:
        self.endpoints = list(endpoints)
        self.session = session or requests
        self.timeout_sec = timeout_sec
        self.requests_sent = 0
        self.endpoint_failures = 0
        self.exhausted_count = 0
        self.last_endpoint: str | None = None

    @staticmethod
    def _status_code_from_error(exc: Exception) -> int | None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
        return None

    def _attempt(self, endpoint: EndpointDescriptor) -> Any:
        self.requests_sent += 1
        try:
            response = self.session.get(
                endpoint.url,
                headers={"accept": "application/json"},
                timeout=self.timeout_sec,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise TransportError(
                endpoint.name,
                str(exc),
                status_code=self._status_code_from_error(exc),
            ) from exc
        except ValueError as exc:
            # 2xx with a body that is not JSON (relay error pages)
            raise TransportError(endpoint.name, f"invalid JSON body: {exc}") from exc

    def fetch_payload(self) -> Any:
        last_error: TransportError | None = None

        for endpoint in self.endpoints:
            try:
                payload = self._attempt(endpoint)
            except TransportError as exc:
                last_error = exc
                self.endpoint_failures += 1
                print(
                    f"[FAILOVER][endpoint_error] endpoint={endpoint.name} "
                    f"status={exc.status_code} error={exc}",
                    flush=True,
                )
                continue

            self.last_endpoint = endpoint.name
            return payload

        self.exhausted_count += 1
        message = str(last_error) if last_error is not None else GENERIC_EXHAUSTED_MESSAGE
        print(
            f"[FAILOVER][exhausted] attempts={len(self.endpoints)} last_error={message}",
            flush=True,
        )
        raise AllEndpointsExhaustedError(message, last_error=last_error, attempts=len(self.endpoints))

    def metrics(self) -> dict[str, int | str | None]:
        return {
            "requests_sent": self.requests_sent,
            "endpoint_failures": self.endpoint_failures,
            "exhausted_count": self.exhausted_count,
            "last_endpoint": self.last_endpoint,
        }
