"""Pytest configuration and fixtures."""

import random
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.services.price_cache import PriceCache
from app.services.price_data import PriceDataClient


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def make_response(payload=None, status: int = 200, json_error: Exception = None):
    """Create a mock aiohttp response."""
    response = MagicMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=payload)
    return response


def make_session_factory(*outcomes):
    """Create a mock aiohttp.ClientSession factory.

    Each outcome is consumed by one session.get() call: a response mock is
    returned as the request context, an exception is raised by get().
    """
    session = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False

    side_effects = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            side_effects.append(outcome)
        else:
            request_ctx = MagicMock()
            request_ctx.__aenter__.return_value = outcome
            request_ctx.__aexit__.return_value = False
            side_effects.append(request_ctx)
    session.get = Mock(side_effect=side_effects)

    return Mock(return_value=session), session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return PriceCache(ttl_seconds=10.0, clock=clock)


@pytest.fixture
def build_client(cache):
    """Build a PriceDataClient whose HTTP calls play back the given outcomes."""

    def _build(*outcomes, seed: int = 42):
        factory, session = make_session_factory(*outcomes)
        client = PriceDataClient(
            base_url="https://api.test/api/v3",
            cache=cache,
            session_factory=factory,
            rng=random.Random(seed),
        )
        return client, session

    return _build


@pytest.fixture(scope="function")
async def client():
    """Create an HTTP test client against the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def patched_price_client(build_client):
    """Swap the router's process-wide client for one with scripted responses."""

    def _patch(*outcomes):
        client, session = build_client(*outcomes)
        patcher = patch("app.routers.bitcoin.price_data_client", client)
        patcher.start()
        patchers.append(patcher)
        return client, session

    patchers = []
    yield _patch
    for patcher in patchers:
        patcher.stop()


@pytest.fixture
def response():
    """Factory for mock aiohttp responses."""
    return make_response
