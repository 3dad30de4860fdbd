"""APR formulas for SSV staking rewards (delta-based accumulator rate).

Baseline:
    APR% = (dIndex / dTime_s) * SECONDS_PER_YEAR * (eth_price / ssv_price) * 100

where dIndex is the growth of accEthPerShare (18 implied decimals) between the
previous stored sample and the current reading, and dTime_s is the gap between
their timestamps in seconds.

Projected:
    APR_projected% = APR% * (clusters_effective_balance / validators_effective_balance)

Both functions are pure: identical inputs always produce identical outputs.
"Cannot compute" is expressed as None, never as zero. The single-sample spot
rate is a different, numerically incompatible formula and is not used here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from apr_service.exceptions import InvalidNumericInput
from apr_service.logging import get_logger
from apr_service.models import EffectiveBalances, Sample, to_epoch_ms
from apr_service.numeric import WEI_DECIMALS, parse_index_value, scaled_integer_to_float

logger = get_logger(__name__)

SECONDS_PER_YEAR = 31_536_000  # 365 * 24 * 60 * 60, leap years ignored


@dataclass(frozen=True)
class BaselineApr:
    """Outcome of the baseline APR formula.

    apr is None when the rate could not be computed; reason then names the
    first edge-case rule that matched. delta_index is reported whenever the
    previous index parsed and did not decrease; delta_time (seconds) whenever
    a previous sample exists.
    """

    apr: float | None
    delta_index: int | None = None
    delta_time: Decimal | None = None
    precision_loss: bool = False
    reason: str | None = None


def compute_baseline_apr(
    current_raw: int,
    current_timestamp: datetime,
    eth_price: Decimal,
    ssv_price: Decimal,
    previous: Sample | None,
) -> BaselineApr:
    """Compute the baseline APR from the current reading and the previous sample.

    Edge cases are checked in order and the first match yields apr=None:
        1. no previous sample
        2. previous raw index does not parse as a non-negative integer
        3. index did not strictly increase
        4. elapsed time is not positive
        5. a price is not finite (non-positive prices only warn)
        6. the resulting APR is not finite

    Args:
        current_raw: accEthPerShare just read, in wei-scaled units.
        current_timestamp: Instant the current reading is valid for.
        eth_price: ETH/USD spot price.
        ssv_price: SSV/USD spot price.
        previous: Latest stored sample, or None if the store is empty.

    Returns:
        BaselineApr with the APR percentage and the deltas used.
    """
    if previous is None:
        return BaselineApr(apr=None, reason="no_previous_sample")

    delta_ms = to_epoch_ms(current_timestamp) - to_epoch_ms(previous.timestamp)
    delta_time = Decimal(delta_ms) / Decimal(1000)

    try:
        previous_raw = parse_index_value(previous.raw_index_value)
    except InvalidNumericInput:
        logger.warning(
            "invalid_previous_index",
            previous_id=previous.id,
            raw_index_value=previous.raw_index_value,
        )
        return BaselineApr(apr=None, delta_time=delta_time, reason="invalid_previous_index")

    delta_index = current_raw - previous_raw
    if delta_index <= 0:
        logger.warning(
            "non_increasing_index",
            previous_raw=str(previous_raw),
            current_raw=str(current_raw),
        )
        return BaselineApr(
            apr=None,
            delta_index=delta_index if delta_index == 0 else None,
            delta_time=delta_time,
            reason="non_increasing_index",
        )

    delta_seconds = delta_ms / 1000
    if not math.isfinite(delta_seconds) or delta_seconds <= 0:
        logger.warning("non_positive_delta_time", delta_seconds=delta_seconds)
        return BaselineApr(
            apr=None,
            delta_index=delta_index,
            delta_time=delta_time,
            reason="non_positive_delta_time",
        )

    eth = float(eth_price)
    ssv = float(ssv_price)
    if not math.isfinite(eth) or not math.isfinite(ssv):
        logger.warning("non_finite_price", eth_price=str(eth_price), ssv_price=str(ssv_price))
        return BaselineApr(
            apr=None,
            delta_index=delta_index,
            delta_time=delta_time,
            reason="non_finite_price",
        )
    if eth <= 0 or ssv <= 0:
        logger.warning(
            "non_positive_price",
            eth_price=str(eth_price),
            ssv_price=str(ssv_price),
        )

    conversion = scaled_integer_to_float(delta_index, WEI_DECIMALS)
    rate_per_second = conversion.value / delta_seconds

    try:
        apr = rate_per_second * SECONDS_PER_YEAR * (eth / ssv) * 100
    except ZeroDivisionError:
        apr = math.nan

    if not math.isfinite(apr):
        logger.warning("non_finite_apr", apr=str(apr))
        return BaselineApr(
            apr=None,
            delta_index=delta_index,
            delta_time=delta_time,
            precision_loss=conversion.precision_loss,
            reason="non_finite_apr",
        )

    logger.debug(
        "baseline_apr_computed",
        apr=round(apr, 4),
        delta_index=str(delta_index),
        delta_seconds=delta_seconds,
    )
    return BaselineApr(
        apr=apr,
        delta_index=delta_index,
        delta_time=delta_time,
        precision_loss=conversion.precision_loss,
    )


def compute_projected_apr(
    apr: float | None,
    balances: EffectiveBalances | None,
) -> float | None:
    """Scale the baseline APR by clusters / validators effective balance.

    Returns None if apr is None, balances are missing or non-finite,
    validators_effective_balance is not positive, or the product is not finite.
    """
    if apr is None or balances is None:
        return None

    clusters = float(balances.clusters_effective_balance)
    validators = float(balances.validators_effective_balance)

    if not math.isfinite(clusters) or not math.isfinite(validators):
        logger.warning(
            "invalid_effective_balance",
            clusters=str(balances.clusters_effective_balance),
            validators=str(balances.validators_effective_balance),
        )
        return None

    if validators <= 0:
        logger.warning(
            "non_positive_validators_effective_balance",
            validators=str(balances.validators_effective_balance),
        )
        return None

    projected = apr * (clusters / validators)
    if not math.isfinite(projected):
        logger.warning("non_finite_projected_apr", projected=str(projected))
        return None

    return projected
