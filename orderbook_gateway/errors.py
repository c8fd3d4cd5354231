from __future__ import annotations


class OrderBookError(Exception):
    """Base error for order book acquisition."""


class TransportError(OrderBookError):
    def __init__(self, endpoint: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class AllEndpointsExhaustedError(OrderBookError):
    def __init__(self, message: str, last_error: TransportError | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class MalformedPayloadError(OrderBookError, ValueError):
    pass
