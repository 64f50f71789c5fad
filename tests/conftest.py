"""
Test configuration for the crypto stats tests.
"""

import asyncio
import os
import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

# Add project root to path before importing our modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import our modules after path setup
from crypto_stats.api.service import app, get_snapshot_storage  # noqa: E402
from crypto_stats.storage.models import Snapshot  # noqa: E402
from crypto_stats.storage.snapshot_storage import SnapshotStorage  # noqa: E402

BASE_TIME = datetime(2025, 1, 15, tzinfo=UTC)


def make_snapshot(
    coin_id: str = "bitcoin",
    price: float = 45000.0,
    minutes: int = 0,
    market_cap: float = 880_000_000_000.0,
    change_24h: float = 1.5,
) -> Snapshot:
    """Build a snapshot observed ``minutes`` after BASE_TIME."""
    return Snapshot(
        coin_id=coin_id,
        price=price,
        market_cap=market_cap,
        change_24h=change_24h,
        observed_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest_asyncio.fixture
async def temp_storage():
    """Create a temporary storage instance for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        storage = SnapshotStorage(tmp.name)
        await storage.initialize()
        try:
            yield storage
        finally:
            await storage.close()
            await asyncio.sleep(0.1)
            try:
                os.unlink(tmp.name)
            except PermissionError:
                # On Windows, sometimes the file is still locked
                pass


@pytest_asyncio.fixture
async def api_client(temp_storage):
    """Async HTTP client for the API backed by the temporary storage."""

    async def override_storage():
        yield temp_storage

    app.dependency_overrides[get_snapshot_storage] = override_storage
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_snapshots():
    """Provide sample snapshots for testing."""
    return [
        make_snapshot("bitcoin", 45000.0, minutes=0),
        make_snapshot("ethereum", 3000.0, minutes=0, market_cap=360_000_000_000.0),
        make_snapshot("matic-network", 0.45, minutes=0, change_24h=-2.3),
    ]


@pytest.fixture
def snapshot_factory():
    """Provide the snapshot builder to tests."""
    return make_snapshot


@pytest_asyncio.fixture
async def seed_snapshots(temp_storage):
    """Provide a helper that appends snapshots to the temporary storage."""

    async def seed(snapshots):
        for snapshot in snapshots:
            await temp_storage.save_snapshot(snapshot)

    return seed


class PriceAPIStub:
    """Canned responses for a local stand-in of the CoinGecko price endpoint."""

    def __init__(self) -> None:
        self.status = 200
        self.body = "{}"
        self.content_type = "application/json"
        self.delay = 0.0
        self.requests: list[dict[str, str]] = []
        self.url = ""

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(dict(request.query))
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(
            status=self.status, text=self.body, content_type=self.content_type
        )


@pytest_asyncio.fixture
async def price_api():
    """Run a local HTTP server that answers like the price API."""
    stub = PriceAPIStub()
    application = web.Application()
    application.router.add_get("/simple/price", stub.handle)

    server = TestServer(application)
    await server.start_server()
    stub.url = str(server.make_url("/simple/price"))
    try:
        yield stub
    finally:
        await server.close()
