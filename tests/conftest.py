"""Shared fixtures: an app wired to a stubbed upstream."""

import json
from typing import Callable, Dict, List

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from herhomes.config import Settings
from herhomes.main import create_app
from herhomes.services.listings_service import HerHomesService

Handler = Callable[[httpx.Request], httpx.Response]

UPSTREAM = "https://upstream.test"


class Upstream:
    """Records requests and answers them with a swappable handler."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.handler: Handler = lambda request: httpx.Response(
            200, json={"success": True, "message": "ok", "data": []}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_params(self) -> Dict[str, str]:
        return dict(self.last.url.params)

    def last_json(self) -> dict:
        return json.loads(self.last.content)


def listing(listing_id: str = "abc123", **overrides) -> dict:
    item = {
        "_id": listing_id,
        "name": "Ocean View Duplex",
        "propertyType": "Duplex",
        "location": "Lagos",
        "price": 45_000_000,
        "bedrooms": 4,
        "minMonthlyPayment": 750_000,
        "rating": 4.5,
        "images": ["https://cdn.test/1.jpg"],
        "tags": ["new"],
        "__v": 0,
    }
    item.update(overrides)
    return item


@pytest.fixture
def settings() -> Settings:
    return Settings(
        listings_api_base_url=UPSTREAM,
        listings_cache_ttl_seconds=60,
    )


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def service(settings: Settings, upstream: Upstream) -> HerHomesService:
    return HerHomesService(settings, transport=httpx.MockTransport(upstream))


@pytest.fixture
def app(settings: Settings, service: HerHomesService) -> FastAPI:
    app = create_app(settings)
    app.state.service = service
    return app


@pytest.fixture
def client(app: FastAPI):
    with TestClient(app) as client:
        yield client
