"""Tests for minor-unit conversions and the integer -> float boundary."""

from decimal import Decimal

import pytest

from apr_service.exceptions import InvalidNumericInput
from apr_service.numeric import (
    MAX_SAFE_INTEGER,
    WEI_DECIMALS,
    format_percentage,
    parse_decimal_string_to_scaled_integer,
    parse_index_value,
    scaled_integer_to_decimal_string,
    scaled_integer_to_float,
)


class TestScaledIntegerToDecimalString:
    """Exact minor-unit -> decimal text conversion."""

    def test_one_ether(self) -> None:
        assert scaled_integer_to_decimal_string(10**18, 18) == "1"

    def test_trailing_zeros_trimmed(self) -> None:
        assert scaled_integer_to_decimal_string(1_500_000_000_000_000_000, 18) == "1.5"

    def test_small_delta(self) -> None:
        assert scaled_integer_to_decimal_string(987_654_321_000_000, 18) == "0.000987654321"

    def test_zero(self) -> None:
        assert scaled_integer_to_decimal_string(0, 18) == "0"

    def test_one_wei(self) -> None:
        assert scaled_integer_to_decimal_string(1, 18) == "0.000000000000000001"

    def test_digit_string_input(self) -> None:
        assert scaled_integer_to_decimal_string("1000000000", 9) == "1"

    def test_zero_decimals(self) -> None:
        assert scaled_integer_to_decimal_string(42, 0) == "42"

    def test_uint256_max(self) -> None:
        raw = 2**256 - 1
        text = scaled_integer_to_decimal_string(raw, 18)
        whole, frac = text.split(".")
        assert int(whole + frac.ljust(18, "0")) == raw

    @pytest.mark.parametrize("bad", [-1, "1.5", "abc", " 1", "-5", "", True, 1.0, None])
    def test_rejects_non_integer_literals(self, bad: object) -> None:
        with pytest.raises(InvalidNumericInput):
            scaled_integer_to_decimal_string(bad, 18)  # type: ignore[arg-type]

    def test_rejects_negative_decimals(self) -> None:
        with pytest.raises(InvalidNumericInput):
            scaled_integer_to_decimal_string(1, -1)


class TestParseDecimalString:
    """Decimal text -> minor units, truncating beyond the scale."""

    def test_fractional(self) -> None:
        result = parse_decimal_string_to_scaled_integer("1.5", 18)
        assert result.value == 1_500_000_000_000_000_000
        assert result.truncated is False

    def test_small_value(self) -> None:
        result = parse_decimal_string_to_scaled_integer("0.000987654321", 18)
        assert result.value == 987_654_321_000_000

    def test_leading_point_and_trailing_point(self) -> None:
        assert parse_decimal_string_to_scaled_integer(".5", 18).value == 5 * 10**17
        assert parse_decimal_string_to_scaled_integer("1.", 18).value == 10**18

    def test_truncates_instead_of_rounding(self) -> None:
        # 19 fractional digits: the final 9 must be dropped, not rounded up
        result = parse_decimal_string_to_scaled_integer("0.1234567890123456789", 18)
        assert result.value == 123_456_789_012_345_678
        assert result.truncated is True

    def test_dropped_zeros_are_not_truncation(self) -> None:
        result = parse_decimal_string_to_scaled_integer("1.0000000000000000000000", 18)
        assert result.value == 10**18
        assert result.truncated is False

    def test_gwei_scale(self) -> None:
        result = parse_decimal_string_to_scaled_integer("32.0000000005", 9)
        assert result.value == 32_000_000_000
        assert result.truncated is True

    @pytest.mark.parametrize("bad", ["", ".", "-1", "1e18", "abc", "1.2.3", " 1"])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(InvalidNumericInput):
            parse_decimal_string_to_scaled_integer(bad, 18)

    def test_rejects_non_string(self) -> None:
        with pytest.raises(InvalidNumericInput):
            parse_decimal_string_to_scaled_integer(1.5, 18)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "raw",
        [0, 1, 10**18, 987_654_321_000_000, 1_000_987_654_321_000_000, 2**256 - 1],
    )
    def test_round_trip(self, raw: int) -> None:
        text = scaled_integer_to_decimal_string(raw, WEI_DECIMALS)
        assert parse_decimal_string_to_scaled_integer(text, WEI_DECIMALS).value == raw


class TestParseIndexValue:
    def test_int_and_text(self) -> None:
        assert parse_index_value(5) == 5
        assert parse_index_value("1000000000000000000") == 10**18

    @pytest.mark.parametrize("bad", [-1, "-1", "1.0", "", "0x10", False])
    def test_rejects(self, bad: object) -> None:
        with pytest.raises(InvalidNumericInput):
            parse_index_value(bad)  # type: ignore[arg-type]


class TestScaledIntegerToFloat:
    """The single audited integer -> float seam."""

    def test_safe_magnitude(self) -> None:
        result = scaled_integer_to_float(987_654_321_000_000, 18)
        assert result.value == pytest.approx(0.000987654321, rel=1e-15)
        assert result.precision_loss is False

    def test_at_threshold_is_safe(self) -> None:
        assert scaled_integer_to_float(MAX_SAFE_INTEGER, 18).precision_loss is False

    def test_above_threshold_flags_but_converts(self) -> None:
        result = scaled_integer_to_float(MAX_SAFE_INTEGER + 2, 18)
        assert result.precision_loss is True
        assert result.value == pytest.approx((MAX_SAFE_INTEGER + 2) / 1e18)

    def test_negative_delta_within_safe_range(self) -> None:
        result = scaled_integer_to_float(-5 * 10**15, 18)
        assert result.value == -0.005
        assert result.precision_loss is False

    def test_negative_delta_beyond_safe_range_is_flagged(self) -> None:
        result = scaled_integer_to_float(-5 * 10**17, 18)
        assert result.value == -0.5
        assert result.precision_loss is True

    def test_rejects_non_int(self) -> None:
        with pytest.raises(InvalidNumericInput):
            scaled_integer_to_float("10", 18)  # type: ignore[arg-type]


class TestFormatPercentage:
    """Storage-boundary rendering to 2 fractional digits."""

    def test_rounds_to_cents(self) -> None:
        assert format_percentage(1954.4029280262) == Decimal("1954.40")

    def test_half_up(self) -> None:
        assert format_percentage(0.005) == Decimal("0.01")
        assert format_percentage(-1.235) == Decimal("-1.24")

    def test_always_two_digits(self) -> None:
        assert str(format_percentage(5.0)) == "5.00"

    def test_huge_value(self) -> None:
        assert format_percentage(1e30) == Decimal("1000000000000000000000000000000.00")

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_rejects_non_finite(self, bad: float) -> None:
        with pytest.raises(InvalidNumericInput):
            format_percentage(bad)
