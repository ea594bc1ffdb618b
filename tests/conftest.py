"""
Pytest configuration and fixtures.
"""
import asyncio
from typing import Any, AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from payways.db import KeyValueStore
from payways.main import create_app
from payways.schemas import RiskLevel, RiskVerdict
from payways.state import AppState

ADMIN_EMAIL = "admin@payways.com"


class StubGateway:
    """Risk gateway double: returns a fixed verdict, optionally waits on a gate."""

    configured = True

    def __init__(self, level: RiskLevel = RiskLevel.LOW, reason: str = "ok", indicators: Optional[List[str]] = None):
        self.verdict = RiskVerdict(risk_level=level, reason=reason, indicators=indicators or [])
        self.calls: List[dict] = []
        self.gate: Optional[asyncio.Event] = None

    async def assess(self, **kwargs: Any) -> RiskVerdict:
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        return self.verdict


@pytest_asyncio.fixture
async def kv(tmp_path) -> AsyncGenerator[KeyValueStore, Any]:
    store = await KeyValueStore.open(str(tmp_path / "payways-test.db"))
    yield store
    await store.close()


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest_asyncio.fixture
async def state(kv: KeyValueStore, gateway: StubGateway) -> AppState:
    return await AppState.load(kv, gateway=gateway, admin_email=ADMIN_EMAIL, display_delay=0.05)


@pytest_asyncio.fixture
async def client(state: AppState) -> AsyncGenerator[AsyncClient, Any]:
    app = create_app(state)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient) -> AsyncClient:
    resp = await client.post("/v1/auth/register", json={"email": ADMIN_EMAIL, "password": "x"})
    assert resp.status_code == 200
    return client
