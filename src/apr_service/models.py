"""Shared data models for the APR sampling service.

Prices, stored percentages and balances use Decimal. Raw index values are kept
as exact decimal text so that a corrupted row never crashes a read; they are
parsed into Python ints only where arithmetic happens.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to UTC epoch milliseconds. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _ONE_MS


def from_epoch_ms(value: int) -> datetime:
    """Convert UTC epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=value)


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class TokenPrices:
    """ETH and SSV spot prices in USD."""

    eth_price: Decimal
    ssv_price: Decimal


@dataclass(frozen=True)
class EffectiveBalances:
    """Effective balance quantities used to scale the baseline APR."""

    clusters_effective_balance: Decimal
    validators_effective_balance: Decimal


@dataclass(frozen=True)
class Sample:
    """A single persisted APR sample.

    Immutable once inserted. id and created_at are assigned by the store.
    delta_time is in seconds with millisecond resolution.
    """

    timestamp: datetime
    raw_index_value: str
    eth_price: Decimal
    ssv_price: Decimal
    current_apr: Decimal | None = None
    apr_projected: Decimal | None = None
    delta_index: int | None = None
    delta_time: Decimal | None = None
    id: str | None = None
    created_at: datetime | None = None

    def persisted(self, sample_id: str, created_at: datetime) -> Sample:
        """Return a copy carrying the storage-assigned id and insertion time."""
        return replace(self, id=sample_id, created_at=created_at)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation. Decimals and big integers render as strings."""
        return {
            "id": self.id,
            "timestamp": _isoformat(self.timestamp),
            "rawIndexValue": self.raw_index_value,
            "ethPrice": str(self.eth_price),
            "ssvPrice": str(self.ssv_price),
            "currentApr": str(self.current_apr) if self.current_apr is not None else None,
            "aprProjected": (
                str(self.apr_projected) if self.apr_projected is not None else None
            ),
            "deltaIndex": str(self.delta_index) if self.delta_index is not None else None,
            "deltaTime": str(self.delta_time) if self.delta_time is not None else None,
            "createdAt": _isoformat(self.created_at) if self.created_at else None,
        }


@dataclass(frozen=True)
class CurrentApr:
    """Ephemeral APR computed from fresh feeds against the latest stored sample.

    Never persisted. last_updated is Unix seconds.
    """

    apr: float | None
    apr_projected: float | None
    last_updated: int
    baseline: Sample | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "apr": self.apr,
            "aprProjected": self.apr_projected,
            "lastUpdated": self.last_updated,
        }
