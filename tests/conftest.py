"""
Shared fixtures: a fixed rate table, settings pointing at a fake upstream,
and an httpx client whose transport is a plain Python handler.
"""
from typing import Callable, List

import httpx
import pytest

from app.core.config import Settings
from app.domain.models.product import RateTable

UPSTREAM = "http://otapi.test/service-json"


@pytest.fixture
def rates() -> RateTable:
    return RateTable(rates={"CNY": 1.0, "USD": 0.14, "COP": 550.0}, as_of="2025-01-01T00:00:00+00:00")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        OTAPI_BASE_URL=UPSTREAM,
        OTAPI_INSTANCE_KEY="",
        REDIS_URL="",
        CURRENCY_API_URL="http://fx.test/latest/CNY",
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_http():
    def _make(handler):
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        client.transport_log = transport.requests
        return client

    return _make
