"""Tests for CoinGeckoPriceReader against a mocked HTTP transport."""

from decimal import Decimal

import httpx
import pytest

from apr_service.config import PriceFeedSettings
from apr_service.exceptions import MalformedResponse, UpstreamUnavailable
from apr_service.feeds.coingecko import CoinGeckoPriceReader

BASE_URL = "https://prices.test/api/v3"


def _reader(handler) -> CoinGeckoPriceReader:
    settings = PriceFeedSettings(base_url=BASE_URL)
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return CoinGeckoPriceReader(settings, client=client)


class TestCoinGeckoPriceReader:
    @pytest.mark.asyncio
    async def test_reads_both_prices(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"ethereum": {"usd": 2450.5}, "ssv-network": {"usd": 45.25}},
            )

        prices = await _reader(handler).read()

        assert prices.eth_price == Decimal("2450.5")
        assert prices.ssv_price == Decimal("45.25")
        assert seen[0].url.path == "/api/v3/simple/price"
        assert seen[0].url.params["ids"] == "ethereum,ssv-network"
        assert seen[0].url.params["vs_currencies"] == "usd"

    @pytest.mark.asyncio
    async def test_http_error_is_upstream_unavailable(self) -> None:
        reader = _reader(lambda request: httpx.Response(429, json={"error": "rate limited"}))
        with pytest.raises(UpstreamUnavailable):
            await reader.read()

    @pytest.mark.asyncio
    async def test_transport_error_is_upstream_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnavailable):
            await _reader(handler).read()

    @pytest.mark.asyncio
    async def test_missing_coin_is_malformed(self) -> None:
        reader = _reader(
            lambda request: httpx.Response(200, json={"ethereum": {"usd": 2450.5}})
        )
        with pytest.raises(MalformedResponse):
            await reader.read()

    @pytest.mark.asyncio
    async def test_missing_usd_field_is_malformed(self) -> None:
        reader = _reader(
            lambda request: httpx.Response(
                200, json={"ethereum": {"usd": 2450.5}, "ssv-network": {}}
            )
        )
        with pytest.raises(MalformedResponse):
            await reader.read()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [0, -1, "abc"])
    async def test_invalid_price_is_malformed(self, price: object) -> None:
        reader = _reader(
            lambda request: httpx.Response(
                200, json={"ethereum": {"usd": 2450.5}, "ssv-network": {"usd": price}}
            )
        )
        with pytest.raises(MalformedResponse):
            await reader.read()

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self) -> None:
        reader = _reader(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(MalformedResponse):
            await reader.read()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self) -> None:
        client = httpx.AsyncClient(
            base_url=BASE_URL,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
        )
        reader = CoinGeckoPriceReader(PriceFeedSettings(base_url=BASE_URL), client=client)

        await reader.close()

        assert client.is_closed is False
        await client.aclose()
