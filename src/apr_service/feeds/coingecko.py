"""CoinGecko spot price reader for ETH and SSV.

GET {base_url}/simple/price?ids=ethereum,ssv-network&vs_currencies=usd
"""

from __future__ import annotations

import time

import httpx
from pydantic import ValidationError

from apr_service.config import PriceFeedSettings
from apr_service.exceptions import MalformedResponse, UpstreamUnavailable
from apr_service.feeds.base import PriceReader
from apr_service.feeds.schemas import UsdQuote
from apr_service.logging import get_logger
from apr_service.models import TokenPrices

logger = get_logger(__name__)


class CoinGeckoPriceReader(PriceReader):
    """Fetches ETH/USD and SSV/USD spot prices from CoinGecko.

    Args:
        settings: Price feed configuration (base URL, coin ids, timeout).
        client: Optional pre-built httpx client (tests inject a MockTransport).
    """

    def __init__(
        self,
        settings: PriceFeedSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )
        logger.info("price_reader_initialized", base_url=settings.base_url)

    async def read(self) -> TokenPrices:
        eth_id = self._settings.eth_id
        ssv_id = self._settings.ssv_id
        params = {"ids": f"{eth_id},{ssv_id}", "vs_currencies": "usd"}
        start = time.monotonic()

        try:
            response = await self._client.get("/simple/price", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "price_feed_failed",
                status=e.response.status_code,
                elapsed_ms=round((time.monotonic() - start) * 1000),
            )
            raise UpstreamUnavailable(
                f"CoinGecko returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "price_feed_failed",
                error=str(e),
                elapsed_ms=round((time.monotonic() - start) * 1000),
            )
            raise UpstreamUnavailable(f"CoinGecko request failed: {e}") from e
        except ValueError as e:
            raise MalformedResponse("CoinGecko returned a non-JSON body") from e

        if not isinstance(payload, dict):
            raise MalformedResponse(f"Unexpected CoinGecko payload: {payload!r}")

        try:
            eth = UsdQuote.model_validate(payload[eth_id])
            ssv = UsdQuote.model_validate(payload[ssv_id])
        except (KeyError, ValidationError) as e:
            logger.error("price_feed_malformed", payload=payload, error=str(e))
            raise MalformedResponse(
                f"Missing or invalid price data from CoinGecko: {e}"
            ) from e

        logger.debug("prices_fetched", eth_price=str(eth.usd), ssv_price=str(ssv.usd))
        return TokenPrices(eth_price=eth.usd, ssv_price=ssv.usd)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
