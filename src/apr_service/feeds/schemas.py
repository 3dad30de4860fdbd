"""Response schemas for the upstream HTTP feeds.

Every field the engine relies on is required here, so a payload that omits
it fails validation at the boundary instead of surfacing as None later.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

PositivePrice = Annotated[Decimal, Field(gt=0, allow_inf_nan=False)]
NonNegativeBalance = Annotated[Decimal, Field(ge=0, allow_inf_nan=False)]


class UsdQuote(BaseModel):
    """One entry of CoinGecko /simple/price, e.g. {"usd": 2450.5}."""

    usd: PositivePrice


class ClustersEffectiveBalanceResponse(BaseModel):
    """Explorer center /clusters/effective-balance payload."""

    model_config = ConfigDict(populate_by_name=True)

    total_effective_balance: NonNegativeBalance = Field(alias="totalEffectiveBalance")


class OracleCluster(BaseModel):
    """A cluster entry in the oracle commit."""

    model_config = ConfigDict(populate_by_name=True)

    cluster_id: str | None = Field(default=None, alias="clusterId")
    effective_balance: NonNegativeBalance = Field(alias="effectiveBalance")


class OracleCommitResponse(BaseModel):
    """Oracle /api/v1/commit?full=true payload (only the fields we use)."""

    epoch: int | None = None
    clusters: list[OracleCluster]

    def total_effective_balance(self) -> Decimal:
        return sum((c.effective_balance for c in self.clusters), Decimal("0"))
