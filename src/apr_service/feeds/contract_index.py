"""accEthPerShare reader for the SSV Network Views contract.

Calls the view function through web3's async HTTP provider. The provider's
built-in retry is disabled: a failed read raises UpstreamUnavailable at once
and the cycle waits for the next trigger.
"""

from __future__ import annotations

import asyncio

from web3 import AsyncWeb3

from apr_service.config import ChainSettings
from apr_service.exceptions import MalformedResponse, UpstreamUnavailable
from apr_service.feeds.base import IndexReader
from apr_service.logging import get_logger

logger = get_logger(__name__)

VIEWS_CONTRACT_ABI = [
    {
        "inputs": [],
        "name": "accEthPerShare",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class ContractIndexReader(IndexReader):
    """Reads accEthPerShare from the Views contract.

    Args:
        settings: RPC URL, contract address and call timeout.
        web3: Optional pre-built AsyncWeb3 instance (tests inject a mock).
    """

    def __init__(self, settings: ChainSettings, web3: AsyncWeb3 | None = None) -> None:
        self._settings = settings
        self._owns_web3 = web3 is None
        self._web3 = web3
        self._contract = None

        if not self.configured:
            logger.warning(
                "chain_not_configured",
                note="RPC_URL or Views contract address missing; index reads will fail",
            )

    @property
    def configured(self) -> bool:
        rpc_url = self._settings.rpc_url
        return (
            bool(rpc_url)
            and "YOUR_" not in rpc_url
            and bool(self._settings.views_contract_address)
        )

    def _get_contract(self):  # type: ignore[no-untyped-def]
        if self._contract is None:
            if self._web3 is None:
                self._web3 = AsyncWeb3(
                    AsyncWeb3.AsyncHTTPProvider(
                        self._settings.rpc_url,
                        exception_retry_configuration=None,
                    )
                )
            address = AsyncWeb3.to_checksum_address(self._settings.views_contract_address)
            self._contract = self._web3.eth.contract(address=address, abi=VIEWS_CONTRACT_ABI)
            logger.info("views_contract_initialized", address=address)
        return self._contract

    async def read(self) -> int:
        if not self.configured:
            raise UpstreamUnavailable("Views contract RPC is not configured")

        try:
            contract = self._get_contract()
            value = await asyncio.wait_for(
                contract.functions.accEthPerShare().call(),
                timeout=self._settings.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("acc_eth_per_share_timeout", timeout=self._settings.timeout_seconds)
            raise UpstreamUnavailable("accEthPerShare call timed out") from e
        except Exception as e:
            logger.error("acc_eth_per_share_failed", error=str(e))
            raise UpstreamUnavailable(f"accEthPerShare call failed: {e}") from e

        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedResponse(f"accEthPerShare returned {value!r}, expected uint256")

        logger.debug("acc_eth_per_share_read", value=str(value))
        return value

    async def close(self) -> None:
        if self._owns_web3 and self._web3 is not None:
            await self._web3.provider.disconnect()
