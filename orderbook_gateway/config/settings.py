import os
from functools import lru_cache

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    ORDERBOOK_SYMBOL: str = "FTN-USDT"
    ORDERBOOK_API_URL: str = "https://exchange.fastex.com/api/spot/v1/orderbook"
    ORDERBOOK_PROXY_PREFIX: str = "https://corsproxy.io/?"
    ORDERBOOK_ENDPOINTS: list[str] = []
    ORDERBOOK_POLL_INTERVAL_MS: int = 5000
    ORDERBOOK_DEPTH_ROW_LIMIT: int = 30
    ORDERBOOK_REQUEST_TIMEOUT_SEC: float = 5.0
    ORDERBOOK_RETAIN_SNAPSHOT_ON_ERROR: bool = False

    @field_validator("ORDERBOOK_POLL_INTERVAL_MS", "ORDERBOOK_REQUEST_TIMEOUT_SEC")
    @classmethod
    def must_be_positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("ORDERBOOK_DEPTH_ROW_LIMIT")
    @classmethod
    def row_limit_at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def poll_interval_sec(self) -> float:
        return self.ORDERBOOK_POLL_INTERVAL_MS / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        raw_endpoints = os.getenv("ORDERBOOK_ENDPOINTS", "")
        endpoints = [e.strip() for e in raw_endpoints.split(",") if e.strip()]

        values = {
            "ORDERBOOK_SYMBOL": os.getenv("ORDERBOOK_SYMBOL"),
            "ORDERBOOK_API_URL": os.getenv("ORDERBOOK_API_URL"),
            "ORDERBOOK_PROXY_PREFIX": os.getenv("ORDERBOOK_PROXY_PREFIX"),
            "ORDERBOOK_POLL_INTERVAL_MS": os.getenv("ORDERBOOK_POLL_INTERVAL_MS"),
            "ORDERBOOK_DEPTH_ROW_LIMIT": os.getenv("ORDERBOOK_DEPTH_ROW_LIMIT"),
            "ORDERBOOK_REQUEST_TIMEOUT_SEC": os.getenv("ORDERBOOK_REQUEST_TIMEOUT_SEC"),
            "ORDERBOOK_RETAIN_SNAPSHOT_ON_ERROR": os.getenv("ORDERBOOK_RETAIN_SNAPSHOT_ON_ERROR"),
        }
        # unset variables fall back to the model defaults
        payload = {k: v for k, v in values.items() if v is not None}
        payload["ORDERBOOK_ENDPOINTS"] = endpoints
        return cls.model_validate(payload)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
