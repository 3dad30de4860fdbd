"""Shared test fixtures for the APR sampling service."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from apr_service.config import (
    AppSettings,
    BalanceFeedSettings,
    ChainSettings,
    PriceFeedSettings,
    ScheduleSettings,
    StorageSettings,
)
from apr_service.data.database import SampleDatabase
from apr_service.data.store import SampleStore

T0 = datetime(2026, 1, 15, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (local endpoints, tmp database)."""
    return AppSettings(
        log_level="DEBUG",
        chain=ChainSettings(
            rpc_url="http://localhost:8545",
            views_contract_address="0x" + "ab" * 20,
        ),
        prices=PriceFeedSettings(base_url="https://prices.test/api/v3"),
        balances=BalanceFeedSettings(
            explorer_url="https://explorer.test",
            oracle_url="https://oracle.test",
        ),
        schedule=ScheduleSettings(),
        storage=StorageSettings(db_path=str(tmp_path / "apr.db")),
    )


@pytest_asyncio.fixture
async def database(tmp_path):
    """Connected SampleDatabase in a temporary directory."""
    db = SampleDatabase(str(tmp_path / "apr.db"))
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def store(database: SampleDatabase) -> SampleStore:
    """SampleStore with a fixed insertion clock."""
    return SampleStore(database, clock=lambda: T0)
