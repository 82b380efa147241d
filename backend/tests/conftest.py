from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from querygate.core import concurrent
from querygate.core.config import settings
from querygate.core.pool import ConnectionPool, PoolManager
from querygate.main import app
from querygate.models import ProductTypeEnum
from tests.utils.fakes import FakeDatabase


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def make_pool(fake_db: FakeDatabase) -> Generator:
    """Factory for opened pools over *fake_db*; all are closed at teardown."""
    pools: list[ConnectionPool] = []

    def _make(name: str = "test", **kwargs) -> ConnectionPool:
        kwargs.setdefault("product_type", ProductTypeEnum.POSTGRES)
        pool = ConnectionPool(name, fake_db.connect, **kwargs)
        pool.open(reap_interval=60)
        pools.append(pool)
        return pool

    yield _make
    for p in pools:
        p.close()


@pytest.fixture
def client(fake_db: FakeDatabase) -> Generator[TestClient, None, None]:
    """TestClient over fake connections; the startup lifespan is not run."""
    pools = PoolManager(settings, connect_fn=fake_db.connect)
    app.state.pools = pools
    app.state.monitors = {}
    concurrent._memory.clear()
    yield TestClient(app)
    pools.dispose()
    concurrent._memory.clear()
