"""Abstract feed reader interfaces.

Defines the contract for the three numeric feeds the APR engine consumes.
The orchestrator depends only on these interfaces, keeping web3 and HTTP
details isolated in the concrete adapters.

Adapters fail fast: they enforce their own timeout and raise
UpstreamUnavailable or MalformedResponse. No retries happen in the core.
"""

from abc import ABC, abstractmethod

from apr_service.models import EffectiveBalances, TokenPrices


class IndexReader(ABC):
    """Reads the accumulated reward-per-share index (wei-scaled)."""

    @abstractmethod
    async def read(self) -> int:
        """Return the current non-negative index value.

        Raises:
            UpstreamUnavailable: If the RPC/contract call fails.
            MalformedResponse: If the call returns something other than a uint.
        """
        ...

    async def close(self) -> None:
        """Release network resources."""


class PriceReader(ABC):
    """Reads ETH and SSV spot prices in USD."""

    @abstractmethod
    async def read(self) -> TokenPrices:
        """Return positive, finite ETH and SSV prices.

        Raises:
            UpstreamUnavailable: If the price API call fails.
            MalformedResponse: If a price field is missing or invalid.
        """
        ...

    async def close(self) -> None:
        """Release network resources."""


class BalanceReader(ABC):
    """Reads the effective balances used for the projected APR."""

    @abstractmethod
    async def read(self) -> EffectiveBalances:
        """Return clusters and validators effective balances.

        Raises:
            UpstreamUnavailable: If either balance API call fails.
            MalformedResponse: If a balance field is missing or invalid.
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
