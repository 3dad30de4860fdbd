"""aiosqlite connection owner for the apr_samples table.

The file runs in WAL mode: a collection cycle's insert and a concurrent
history read never block each other.
"""

from pathlib import Path
from typing import Self

import aiosqlite

from apr_service.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS apr_samples (
    id TEXT PRIMARY KEY,
    timestamp_ms INTEGER NOT NULL UNIQUE,
    raw_index_value TEXT NOT NULL,
    eth_price TEXT NOT NULL,
    ssv_price TEXT NOT NULL,
    current_apr TEXT,
    apr_projected TEXT,
    delta_index TEXT,
    delta_time TEXT,
    created_at_ms INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_apr_samples_timestamp
    ON apr_samples(timestamp_ms DESC);
"""

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


class SampleDatabase:
    """Opens the SQLite file, applies the schema and hands out the connection.

    Usage:
        async with SampleDatabase("data/apr.db") as database:
            store = SampleStore(database)
    """

    def __init__(self, db_path: str = "data/apr.db") -> None:
        self._path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def db(self) -> aiosqlite.Connection:
        """The open connection. RuntimeError before connect() or after close()."""
        if self._conn is None:
            raise RuntimeError(f"SampleDatabase {self._path} is not connected")
        return self._conn

    async def connect(self) -> None:
        """Open the file (creating its directory), set pragmas, apply the schema."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self._path)
        for pragma in _PRAGMAS:
            await conn.execute(pragma)

        await conn.executescript(_SCHEMA_SQL)
        await self._check_schema_version(conn)
        await conn.commit()

        self._conn = conn
        logger.info("sample_db_connected", db_path=str(self._path))

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info("sample_db_closed", db_path=str(self._path))

    @staticmethod
    async def _check_schema_version(conn: aiosqlite.Connection) -> None:
        async with conn.execute("SELECT MAX(version) FROM schema_version") as cursor:
            (stored,) = await cursor.fetchone()

        if stored is None:
            await conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            logger.info("schema_version_set", version=SCHEMA_VERSION)
        elif stored > SCHEMA_VERSION:
            await conn.close()
            raise RuntimeError(
                f"Database schema version {stored} is newer than supported {SCHEMA_VERSION}"
            )

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
