"""Tests for ContractIndexReader with a mocked AsyncWeb3 instance."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from apr_service.config import ChainSettings
from apr_service.exceptions import MalformedResponse, UpstreamUnavailable
from apr_service.feeds.contract_index import ContractIndexReader

CONTRACT_ADDRESS = "0x" + "ab" * 20


def _mock_web3(call: AsyncMock) -> MagicMock:
    web3 = MagicMock()
    web3.eth.contract.return_value.functions.accEthPerShare.return_value.call = call
    return web3


def _settings(**overrides) -> ChainSettings:
    values = {
        "rpc_url": "http://localhost:8545",
        "views_contract_address": CONTRACT_ADDRESS,
        "timeout_seconds": 0.5,
    }
    values.update(overrides)
    return ChainSettings(**values)


class TestContractIndexReader:
    @pytest.mark.asyncio
    async def test_reads_uint(self) -> None:
        web3 = _mock_web3(AsyncMock(return_value=1_000_987_654_321_000_000))
        reader = ContractIndexReader(_settings(), web3=web3)

        assert await reader.read() == 1_000_987_654_321_000_000

        _, kwargs = web3.eth.contract.call_args
        assert kwargs["abi"][0]["name"] == "accEthPerShare"

    @pytest.mark.asyncio
    async def test_contract_built_once(self) -> None:
        web3 = _mock_web3(AsyncMock(return_value=1))
        reader = ContractIndexReader(_settings(), web3=web3)

        await reader.read()
        await reader.read()

        assert web3.eth.contract.call_count == 1

    @pytest.mark.asyncio
    async def test_keeps_values_beyond_float_precision(self) -> None:
        value = 2**256 - 1
        reader = ContractIndexReader(_settings(), web3=_mock_web3(AsyncMock(return_value=value)))
        assert await reader.read() == value

    @pytest.mark.asyncio
    async def test_rpc_error_is_upstream_unavailable(self) -> None:
        call = AsyncMock(side_effect=ConnectionError("rpc refused"))
        reader = ContractIndexReader(_settings(), web3=_mock_web3(call))

        with pytest.raises(UpstreamUnavailable):
            await reader.read()

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_unavailable(self) -> None:
        async def slow_call() -> int:
            await asyncio.sleep(5)
            return 1

        reader = ContractIndexReader(
            _settings(timeout_seconds=0.01), web3=_mock_web3(AsyncMock(side_effect=slow_call))
        )

        with pytest.raises(UpstreamUnavailable):
            await reader.read()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [-1, "1000", None, True])
    async def test_non_uint_is_malformed(self, value: object) -> None:
        reader = ContractIndexReader(
            _settings(), web3=_mock_web3(AsyncMock(return_value=value))
        )
        with pytest.raises(MalformedResponse):
            await reader.read()

    @pytest.mark.asyncio
    async def test_unconfigured_rpc(self) -> None:
        web3 = _mock_web3(AsyncMock(return_value=1))
        reader = ContractIndexReader(_settings(rpc_url=""), web3=web3)

        with pytest.raises(UpstreamUnavailable):
            await reader.read()
        web3.eth.contract.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_web3(self) -> None:
        web3 = _mock_web3(AsyncMock(return_value=1))
        web3.provider.disconnect = AsyncMock()
        reader = ContractIndexReader(_settings(), web3=web3)

        await reader.close()

        web3.provider.disconnect.assert_not_awaited()
