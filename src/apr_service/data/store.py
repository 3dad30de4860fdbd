"""Typed SQLite read/write abstraction for APR samples.

Provides SampleStore with typed methods for inserting, querying and pruning
samples. All SQL is isolated behind this interface.

CRITICAL: Raw index values, prices and percentages are stored as TEXT in SQLite
and restored as str/Decimal/int on read. Never REAL.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from apr_service.data.database import SampleDatabase
from apr_service.exceptions import DuplicateTimestamp
from apr_service.logging import get_logger
from apr_service.models import Sample, from_epoch_ms, to_epoch_ms

logger = get_logger(__name__)

_COLUMNS = (
    "id, timestamp_ms, raw_index_value, eth_price, ssv_price, "
    "current_apr, apr_projected, delta_index, delta_time, created_at_ms"
)


def _optional_str(value: object | None) -> str | None:
    return str(value) if value is not None else None


def _row_to_sample(row: tuple) -> Sample:
    return Sample(
        id=row[0],
        timestamp=from_epoch_ms(row[1]),
        raw_index_value=row[2],
        eth_price=Decimal(row[3]),
        ssv_price=Decimal(row[4]),
        current_apr=Decimal(row[5]) if row[5] is not None else None,
        apr_projected=Decimal(row[6]) if row[6] is not None else None,
        delta_index=int(row[7]) if row[7] is not None else None,
        delta_time=Decimal(row[8]) if row[8] is not None else None,
        created_at=from_epoch_ms(row[9]),
    )


class SampleStore:
    """Append-only async SQLite store for APR samples.

    Wraps SampleDatabase with typed read/write methods. Each write commits in
    its own transaction, so readers only ever see fully inserted samples.

    Args:
        database: Connected SampleDatabase.
        clock: Source of the wall-clock insertion time (UTC).
    """

    def __init__(
        self,
        database: SampleDatabase,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._database = database
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def insert(self, sample: Sample) -> Sample:
        """Insert a sample and return it with its generated id and created_at.

        Raises:
            DuplicateTimestamp: If a sample with the same timestamp exists.
        """
        persisted = sample.persisted(str(uuid4()), self._clock())
        db = self._database.db
        try:
            await db.execute(
                f"INSERT INTO apr_samples ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    persisted.id,
                    to_epoch_ms(persisted.timestamp),
                    persisted.raw_index_value,
                    str(persisted.eth_price),
                    str(persisted.ssv_price),
                    _optional_str(persisted.current_apr),
                    _optional_str(persisted.apr_projected),
                    _optional_str(persisted.delta_index),
                    _optional_str(persisted.delta_time),
                    to_epoch_ms(persisted.created_at),
                ),
            )
            await db.commit()
        except sqlite3.IntegrityError as e:
            await db.rollback()
            logger.warning(
                "duplicate_sample_timestamp",
                timestamp=persisted.timestamp.isoformat(),
            )
            raise DuplicateTimestamp(
                f"Sample with timestamp {persisted.timestamp.isoformat()} already exists"
            ) from e

        logger.debug("sample_inserted", sample_id=persisted.id)
        return persisted

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete samples whose timestamp is strictly before cutoff.

        Returns the number of deleted rows.
        """
        db = self._database.db
        cursor = await db.execute(
            "DELETE FROM apr_samples WHERE timestamp_ms < ?",
            (to_epoch_ms(cutoff),),
        )
        await db.commit()
        return cursor.rowcount

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def latest(self) -> Sample | None:
        """Return the sample with the greatest timestamp, or None if empty."""
        samples = await self.latest_n(1)
        return samples[0] if samples else None

    async def latest_n(self, n: int) -> list[Sample]:
        """Return up to n samples, most recent first."""
        return await self.query(limit=n)

    async def query(
        self,
        limit: int,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Sample]:
        """Query samples within an optional inclusive date range.

        Returns at most ``limit`` samples ordered by timestamp DESC.
        """
        if limit <= 0:
            return []

        conditions: list[str] = []
        params: list = []

        if start_date is not None:
            conditions.append("timestamp_ms >= ?")
            params.append(to_epoch_ms(start_date))
        if end_date is not None:
            conditions.append("timestamp_ms <= ?")
            params.append(to_epoch_ms(end_date))

        where = f"WHERE {' AND '.join(conditions)} " if conditions else ""
        params.append(limit)
        cursor = await self._database.db.execute(
            f"SELECT {_COLUMNS} FROM apr_samples {where}"
            "ORDER BY timestamp_ms DESC LIMIT ?",
            params,
        )
        rows = await cursor.fetchall()
        return [_row_to_sample(row) for row in rows]

    async def count(self) -> int:
        """Return the total number of stored samples."""
        cursor = await self._database.db.execute("SELECT COUNT(*) FROM apr_samples")
        row = await cursor.fetchone()
        return row[0] if row else 0
