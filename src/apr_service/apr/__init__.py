"""APR formulas: delta-based baseline rate and effective-balance projection."""

from apr_service.apr.formula import (
    SECONDS_PER_YEAR,
    BaselineApr,
    compute_baseline_apr,
    compute_projected_apr,
)

__all__ = [
    "SECONDS_PER_YEAR",
    "BaselineApr",
    "compute_baseline_apr",
    "compute_projected_apr",
]
