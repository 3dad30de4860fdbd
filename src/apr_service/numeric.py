"""Exact conversions between minor-unit integers and decimal values.

Blockchain values arrive as arbitrary-precision integers scaled by a fixed
number of implied decimals (18 for wei-based accumulators). This module keeps
those values exact as long as possible:

- scaled_integer_to_decimal_string / parse_decimal_string_to_scaled_integer
  convert losslessly in both directions (parsing truncates, never rounds).
- scaled_integer_to_float is the ONLY place where a big integer crosses into
  float arithmetic. Magnitudes above MAX_SAFE_INTEGER are flagged, not refused.
- format_percentage renders a float percentage to 2 fractional digits for storage.
"""

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal

from apr_service.exceptions import InvalidNumericInput
from apr_service.logging import get_logger

logger = get_logger(__name__)

WEI_DECIMALS = 18
MAX_SAFE_INTEGER = 2**53 - 1

_INTEGER_RE = re.compile(r"[0-9]+")
_DECIMAL_RE = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?")
_CENT = Decimal("0.01")
# Wide enough for any finite float (max ~1.8e308) plus two fractional digits
_PERCENT_CONTEXT = Context(prec=400)


@dataclass(frozen=True)
class ScaledInteger:
    """Result of parsing a decimal string into minor units.

    truncated is True when non-zero digits beyond the scale were dropped.
    """

    value: int
    truncated: bool = False


@dataclass(frozen=True)
class FloatConversion:
    """Result of crossing the integer -> float boundary.

    precision_loss is True when the integer operand exceeded MAX_SAFE_INTEGER.
    """

    value: float
    precision_loss: bool = False


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidNumericInput(f"decimals must be a non-negative int, got {decimals!r}")


def parse_index_value(value: int | str) -> int:
    """Parse a raw index value as a non-negative integer.

    Accepts a Python int or a string of ASCII digits (the exact text form used
    in storage). Anything else raises InvalidNumericInput.
    """
    if isinstance(value, bool):
        raise InvalidNumericInput(f"Not an integer literal: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise InvalidNumericInput(f"Index value must be non-negative, got {value}")
        return value
    if isinstance(value, str) and _INTEGER_RE.fullmatch(value):
        return int(value)
    raise InvalidNumericInput(f"Not a non-negative integer literal: {value!r}")


def scaled_integer_to_decimal_string(raw: int | str, decimals: int) -> str:
    """Convert a minor-unit integer to an exact decimal string.

    Trailing fractional zeros are trimmed, so 1500000000000000000 at 18
    decimals becomes "1.5" and 10**18 becomes "1".

    Args:
        raw: Non-negative integer (or its digit string) in minor units.
        decimals: Number of implied decimal places.

    Returns:
        Exact decimal representation with at most ``decimals`` fractional digits.

    Raises:
        InvalidNumericInput: If raw is not a non-negative integer literal.
    """
    _check_decimals(decimals)
    value = parse_index_value(raw)

    if decimals == 0:
        return str(value)

    whole, frac = divmod(value, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}" if frac_str else str(whole)


def parse_decimal_string_to_scaled_integer(value: str, decimals: int) -> ScaledInteger:
    """Convert a non-negative decimal string to minor units.

    Fractional digits beyond ``decimals`` are truncated (never rounded). If any
    dropped digit is non-zero the result is flagged as truncated and a warning
    is logged; the conversion itself still succeeds.

    Raises:
        InvalidNumericInput: If value is not a non-negative decimal literal.
    """
    _check_decimals(decimals)
    if not isinstance(value, str):
        raise InvalidNumericInput(f"Expected a decimal string, got {type(value).__name__}")

    match = _DECIMAL_RE.fullmatch(value)
    if match is None:
        raise InvalidNumericInput(f"Not a non-negative decimal literal: {value!r}")

    whole = match.group("whole")
    frac = match.group("frac") or ""
    if not whole and not frac:
        raise InvalidNumericInput(f"Not a non-negative decimal literal: {value!r}")

    kept, dropped = frac[:decimals], frac[decimals:]
    truncated = dropped.strip("0") != ""
    if truncated:
        logger.warning(
            "decimal_precision_truncated",
            value=value,
            decimals=decimals,
            dropped_digits=dropped,
        )

    scaled = int(whole or "0") * 10**decimals + int(kept.ljust(decimals, "0") or "0")
    return ScaledInteger(value=scaled, truncated=truncated)


def scaled_integer_to_float(raw: int, decimals: int) -> FloatConversion:
    """Convert a (possibly signed) minor-unit integer to a float decimal value.

    This is the single lossy seam between exact integer arithmetic and the
    fractional float math of the APR formula. The operand's magnitude is
    checked against MAX_SAFE_INTEGER first; exceeding it is reported through
    ``precision_loss`` and a warning log, and the conversion proceeds.
    """
    _check_decimals(decimals)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidNumericInput(f"Expected an int, got {type(raw).__name__}")

    precision_loss = abs(raw) > MAX_SAFE_INTEGER
    if precision_loss:
        logger.warning(
            "float_precision_loss",
            raw=str(raw),
            max_safe_integer=MAX_SAFE_INTEGER,
        )

    # int / int true division is correctly rounded for arbitrarily large operands
    return FloatConversion(value=raw / 10**decimals, precision_loss=precision_loss)


def format_percentage(value: float) -> Decimal:
    """Render a percentage to exactly 2 fractional digits (ROUND_HALF_UP).

    Raises:
        InvalidNumericInput: If value is NaN or infinite.
    """
    if not math.isfinite(value):
        raise InvalidNumericInput(f"Cannot store non-finite percentage: {value!r}")
    return Decimal(str(value)).quantize(
        _CENT, rounding=ROUND_HALF_UP, context=_PERCENT_CONTEXT
    )
