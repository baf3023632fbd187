"""Global test configuration and fixtures for MatchMap API."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.modules.map.engine import MapEngine
from src.modules.map.models import MapVariant
from src.modules.map.visibility import VisibleListingsStore
from src.utils.settings.map import MapSettings
from tests.factories import InteractionStateFactory, PointFactory
from tests.utils.fakes import FakeClock, PixelProjection, RecordingSurface


@pytest.fixture
def point_factory():
    return PointFactory


@pytest.fixture
def state_factory():
    return InteractionStateFactory


@pytest.fixture
def map_settings() -> MapSettings:
    """Settings independent of any local .env file."""
    return MapSettings(_env_file=None)


@pytest.fixture
def projection() -> PixelProjection:
    return PixelProjection()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1.0)


@pytest.fixture
def visible_store() -> VisibleListingsStore:
    return VisibleListingsStore()


@pytest.fixture
def make_engine(surface, projection, map_settings, visible_store, clock):
    """Build an engine that runs every pass inline (no debounce)."""

    def _make(variant: MapVariant = MapVariant.DESKTOP, **kwargs) -> MapEngine:
        kwargs.setdefault("debounce_ms", 0)
        return MapEngine(
            kwargs.pop("surface", surface),
            kwargs.pop("projection", projection),
            variant=variant,
            settings=kwargs.pop("settings", map_settings),
            visible_store=kwargs.pop("visible_store", visible_store),
            clock=kwargs.pop("clock", clock),
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def app():
    """Create FastAPI application with lifespan manager for testing."""
    from src.main import app

    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-matchmap-api",
    ) as ac:
        yield ac
