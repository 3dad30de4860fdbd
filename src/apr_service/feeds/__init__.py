"""Feed layer -- index, price and effective-balance readers."""

from apr_service.feeds.base import BalanceReader, IndexReader, PriceReader
from apr_service.feeds.coingecko import CoinGeckoPriceReader
from apr_service.feeds.contract_index import ContractIndexReader
from apr_service.feeds.effective_balance import EffectiveBalanceReader

__all__ = [
    "BalanceReader",
    "CoinGeckoPriceReader",
    "ContractIndexReader",
    "EffectiveBalanceReader",
    "IndexReader",
    "PriceReader",
]
