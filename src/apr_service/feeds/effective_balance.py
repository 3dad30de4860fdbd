"""Effective balance reader for the projected APR.

clusters:   explorer center  GET /clusters/effective-balance
validators: oracle           GET /api/v1/commit?full=true  (sum of cluster balances)

Both requests run concurrently. Projected APR is best-effort, so callers
treat any failure here as "no projected value", never as a failed cycle.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from apr_service.config import BalanceFeedSettings
from apr_service.exceptions import MalformedResponse, UpstreamUnavailable
from apr_service.feeds.base import BalanceReader
from apr_service.feeds.schemas import ClustersEffectiveBalanceResponse, OracleCommitResponse
from apr_service.logging import get_logger
from apr_service.models import EffectiveBalances

logger = get_logger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_PLACEHOLDER_MARKERS = ("EXPLORER_CENTER", "ORACLE_URL", "YOUR_")


def _is_configured(url: str) -> bool:
    return bool(url) and not any(marker in url for marker in _PLACEHOLDER_MARKERS)


class EffectiveBalanceReader(BalanceReader):
    """Fetches cluster and validator effective balances.

    Args:
        settings: Explorer/oracle URLs and timeout.
        explorer_client: Optional httpx client for the explorer center.
        oracle_client: Optional httpx client for the oracle.
    """

    def __init__(
        self,
        settings: BalanceFeedSettings,
        explorer_client: httpx.AsyncClient | None = None,
        oracle_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owned: list[httpx.AsyncClient] = []
        self._explorer = explorer_client or self._build_client(settings.explorer_url)
        self._oracle = oracle_client or self._build_client(settings.oracle_url)

        if not self.configured:
            logger.warning(
                "balance_feeds_not_configured",
                explorer_url=settings.explorer_url or None,
                oracle_url=settings.oracle_url or None,
                note="Projected APR will be null",
            )

    def _build_client(self, base_url: str) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            base_url=base_url,
            timeout=self._settings.timeout_seconds,
        )
        self._owned.append(client)
        return client

    @property
    def configured(self) -> bool:
        return _is_configured(self._settings.explorer_url) and _is_configured(
            self._settings.oracle_url
        )

    async def read(self) -> EffectiveBalances:
        if not self.configured:
            raise UpstreamUnavailable("Explorer center or oracle URL is not configured")

        clusters, validators = await asyncio.gather(
            self._clusters_effective_balance(),
            self._validators_effective_balance(),
        )
        return EffectiveBalances(
            clusters_effective_balance=clusters,
            validators_effective_balance=validators,
        )

    async def _clusters_effective_balance(self) -> Decimal:
        body = await self._get_json(
            self._explorer, "/clusters/effective-balance", ClustersEffectiveBalanceResponse
        )
        return body.total_effective_balance

    async def _validators_effective_balance(self) -> Decimal:
        body = await self._get_json(
            self._oracle, "/api/v1/commit", OracleCommitResponse, params={"full": "true"}
        )
        return body.total_effective_balance()

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        path: str,
        schema: type[_ModelT],
        params: dict | None = None,
    ) -> _ModelT:
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error("balance_feed_failed", path=path, error=str(e))
            raise UpstreamUnavailable(f"Balance feed {path} failed: {e}") from e
        except ValueError as e:
            raise MalformedResponse(f"Balance feed {path} returned a non-JSON body") from e

        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            logger.error("balance_feed_malformed", path=path, payload=payload)
            raise MalformedResponse(f"Invalid payload from {path}: {e}") from e

    async def close(self) -> None:
        for client in self._owned:
            await client.aclose()
