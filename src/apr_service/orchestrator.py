"""Sampling orchestrator -- runs APR collection cycles and serves APR views.

A collection cycle has four steps and persists nothing until the last one:
  1. FETCH: index reader, price reader and the latest stored sample, concurrently
  2. COMPUTE: baseline APR against the latest sample, then projected APR (best effort)
  3. ASSEMBLE: build the Sample with the cycle timestamp
  4. PERSIST: insert via SampleStore

The scheduler and the manual POST /apr/collect both call collect(); there is
no second code path. current() runs steps 1-2 only and never writes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import structlog

from apr_service.apr.formula import compute_baseline_apr, compute_projected_apr
from apr_service.data.store import SampleStore
from apr_service.exceptions import CollectionFailed
from apr_service.feeds.base import BalanceReader, IndexReader, PriceReader
from apr_service.logging import cycle_context, get_logger
from apr_service.models import CurrentApr, Sample, TokenPrices
from apr_service.numeric import format_percentage

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = 365


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _fmt(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "--"


class SamplingOrchestrator:
    """Coordinates feed reads, APR computation and sample persistence.

    Holds no mutable state between cycles: overlapping cycles may read the same
    baseline and each insert its own sample; only identical timestamps collide.

    Args:
        index_reader: accEthPerShare feed.
        price_reader: ETH/SSV spot price feed.
        store: Append-only sample store.
        balance_reader: Effective balance feed for projected APR (optional).
        retention_days: Age after which prune() deletes samples.
        clock: Source of "now" (UTC). Injected for deterministic tests.
        log: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        index_reader: IndexReader,
        price_reader: PriceReader,
        store: SampleStore,
        balance_reader: BalanceReader | None = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], datetime] | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._index_reader = index_reader
        self._price_reader = price_reader
        self._balance_reader = balance_reader
        self._store = store
        self._retention_days = retention_days
        self._clock = clock or _utcnow
        self._log = log or logger

    # ──────────────────────────────────────────────
    # Collection cycle
    # ──────────────────────────────────────────────

    async def collect(
        self,
        timestamp: datetime | None = None,
        trigger: str = "manual",
    ) -> Sample:
        """Run one full collection cycle and return the persisted sample.

        Args:
            timestamp: Sample timestamp; defaults to the clock's now after fetching.
            trigger: Label bound to every log line of the cycle ("schedule"/"manual").

        Raises:
            CollectionFailed: If a baseline feed or the insert fails. Nothing is stored.
        """
        with cycle_context(trigger):
            self._log.info("apr_collection_started")

            try:
                current_raw, prices, previous = await self._fetch()
            except Exception as e:
                self._log.error("apr_collection_failed", stage="fetch", error=str(e))
                raise CollectionFailed(f"Feed fetch failed: {e}") from e

            sample_time = timestamp or self._clock()
            baseline = compute_baseline_apr(
                current_raw=current_raw,
                current_timestamp=sample_time,
                eth_price=prices.eth_price,
                ssv_price=prices.ssv_price,
                previous=previous,
            )
            if baseline.apr is None:
                self._log.info("baseline_apr_unavailable", reason=baseline.reason)

            apr_projected = await self._projected_apr(baseline.apr)

            sample = Sample(
                timestamp=sample_time,
                raw_index_value=str(current_raw),
                eth_price=prices.eth_price,
                ssv_price=prices.ssv_price,
                current_apr=(
                    format_percentage(baseline.apr) if baseline.apr is not None else None
                ),
                apr_projected=(
                    format_percentage(apr_projected) if apr_projected is not None else None
                ),
                delta_index=baseline.delta_index,
                delta_time=baseline.delta_time,
            )

            try:
                persisted = await self._store.insert(sample)
            except Exception as e:
                self._log.error("apr_collection_failed", stage="persist", error=str(e))
                raise CollectionFailed(f"Failed to persist sample: {e}") from e

            self._log.info(
                "apr_sample_collected",
                sample_id=persisted.id,
                apr=_fmt(baseline.apr),
                apr_projected=_fmt(apr_projected),
                precision_loss=baseline.precision_loss,
            )
            return persisted

    async def current(self, now: datetime | None = None) -> CurrentApr:
        """Compute APR from fresh feeds against the latest stored sample.

        Read-only: nothing is persisted. apr is None when no baseline sample
        exists yet or the formula's edge-case policy applies.

        Raises:
            UpstreamUnavailable / MalformedResponse: If a baseline feed fails.
        """
        current_raw, prices, previous = await self._fetch()
        now = now or self._clock()

        baseline = compute_baseline_apr(
            current_raw=current_raw,
            current_timestamp=now,
            eth_price=prices.eth_price,
            ssv_price=prices.ssv_price,
            previous=previous,
        )
        apr_projected = await self._projected_apr(baseline.apr)

        return CurrentApr(
            apr=baseline.apr,
            apr_projected=apr_projected,
            last_updated=int(now.timestamp()),
            baseline=previous,
        )

    async def _fetch(self) -> tuple[int, TokenPrices, Sample | None]:
        """Read index, prices and the latest stored sample concurrently."""
        current_raw, prices, previous = await asyncio.gather(
            self._index_reader.read(),
            self._price_reader.read(),
            self._store.latest(),
        )
        return current_raw, prices, previous

    async def _projected_apr(self, apr: float | None) -> float | None:
        """Best-effort projected APR. Any balance failure degrades to None."""
        if apr is None or self._balance_reader is None:
            return None

        try:
            balances = await self._balance_reader.read()
        except Exception as e:
            self._log.warning("projected_apr_unavailable", error=str(e))
            return None

        return compute_projected_apr(apr, balances)

    # ──────────────────────────────────────────────
    # Read views and retention
    # ──────────────────────────────────────────────

    async def history(
        self,
        limit: int = 30,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Sample]:
        """Stored samples, most recent first, within an optional inclusive range."""
        return await self._store.query(limit, start_date, end_date)

    async def latest_two(self) -> list[Sample]:
        """The two most recent stored samples, most recent first."""
        return await self._store.latest_n(2)

    async def prune(self, now: datetime | None = None) -> int:
        """Delete samples older than the retention window. Returns the count."""
        cutoff = (now or self._clock()) - timedelta(days=self._retention_days)
        deleted = await self._store.delete_older_than(cutoff)
        self._log.info(
            "old_apr_samples_pruned",
            deleted=deleted,
            cutoff=cutoff.isoformat(),
        )
        return deleted
