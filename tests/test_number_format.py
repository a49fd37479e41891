"""
Pruebas de AdaptiveNumberFormatter con símbolos alemanes (',' decimal, '.' miles).
"""

from decimal import Decimal

import pytest

from number_format import (
    NEGATE,
    AdaptiveNumberFormatter,
    DecimalFormatConfig,
    FormatError,
    as_decimal,
)


def german(grouping_used=True, **kwargs):
    return DecimalFormatConfig(
        decimal_separator=",",
        grouping_separator=".",
        grouping_used=grouping_used,
        **kwargs,
    )


class TestFormatWithoutGrouping:
    """Longitud máxima 6, sin separador de miles."""

    def setup_method(self):
        self.formatter = AdaptiveNumberFormatter(german(grouping_used=False))

    @pytest.mark.parametrize("value,expected", [
        (123456, "123456"),
        (1234.1, "1234,1"),
        (12345.1, "12345"),
        (123456.7, "123457"),
        (1234567.8, "1,23E6"),
        (1231231230.0, "1,23E9"),
        (12312312300.0, "1,2E10"),
        (-12312312300000.0, "-1E13"),
    ])
    def test_format(self, value, expected):
        assert self.formatter.format(value, 6) == expected


class TestFormatGreaterOrEqualOne:
    """Longitud máxima 7 con separador de miles."""

    def setup_method(self):
        self.formatter = AdaptiveNumberFormatter(german(max_length=7))

    @pytest.mark.parametrize("value,expected", [
        (1, "1"),
        (1.1, "1,1"),
        (123456, "123.456"),
        (1234.1, "1.234,1"),
        (12345.1, "12.345"),
        (0.12345, "0,12345"),
        (0.123456, "0,12346"),
        (123456.7, "123.457"),
        (1234567.8, "1,235E6"),
        (123123123.0, "1,231E8"),
        (12312312300.0, "1,23E10"),
        (-12312312300000.0, "-1,2E13"),
    ])
    def test_format_uses_configured_length(self, value, expected):
        assert self.formatter.format(value) == expected

    def test_explicit_length_overrides_configuration(self):
        assert self.formatter.format(1234567.8, 6) == "1,23E6"


class TestFormatBetweenZeroAndOne:

    def setup_method(self):
        self.formatter = AdaptiveNumberFormatter(german())

    @pytest.mark.parametrize("value,expected", [
        (0.1, "0,1"),
        (0.1234, "0,1234"),
        (0.12342, "0,1234"),
        (0.34567, "0,3457"),
        (0.0067, "0,0067"),
        (0.00067, "6,7E-4"),
        (0.00007, "7E-5"),
    ])
    def test_positive_values_in_six_characters(self, value, expected):
        assert self.formatter.format(value, 6) == expected

    @pytest.mark.parametrize("value,expected", [
        (-0.1, "-0,1"),
        (-0.1234, "-0,1234"),
        (-0.12342, "-0,1234"),
        (-0.34567, "-0,3457"),
        (-0.0067, "-0,0067"),
        (-0.00067, "-6,7E-4"),
        (-0.00007, "-7E-5"),
    ])
    def test_negative_values_in_seven_characters(self, value, expected):
        assert self.formatter.format(value, 7) == expected


class TestFormatBudget:

    def test_zero_is_plain(self):
        formatter = AdaptiveNumberFormatter(german())
        assert formatter.format(0, 6) == "0"
        assert formatter.format(Decimal("-0.0000001"), 6) == "-1E-7"

    @pytest.mark.parametrize("value", [
        1e-300, 9.99999999e99, -987654321.123, 1 / 3, 2 ** 60, -0.000123456789,
    ])
    @pytest.mark.parametrize("max_length", [6, 7, 10, 14])
    def test_result_never_exceeds_length(self, value, max_length):
        formatter = AdaptiveNumberFormatter(german())
        assert len(formatter.format(value, max_length)) <= max_length

    def test_mantissa_rounding_carries_into_exponent(self):
        formatter = AdaptiveNumberFormatter(german(grouping_used=False))
        assert formatter.format(9999999.9, 6) == "1E7"

    def test_without_length_uses_max_fraction_digits(self):
        formatter = AdaptiveNumberFormatter(DecimalFormatConfig(grouping_used=True))
        assert formatter.format(1234567.891) == "1,234,567.891"
        assert formatter.format(1 / 3) == "0.3333333333"

    def test_half_even_rounding(self):
        formatter = AdaptiveNumberFormatter(german(max_fraction_digits=0))
        assert formatter.format(Decimal("2.5")) == "2"
        assert formatter.format(Decimal("3.5")) == "4"


class TestParse:

    def setup_method(self):
        self.formatter = AdaptiveNumberFormatter(german())

    @pytest.mark.parametrize("text,expected", [
        ("1", "1"),
        ("1,1", "1.1"),
        ("123.456", "123456"),
        ("1.234,1", "1234.1"),
        ("12.345", "12345"),
        ("0,12345", "0.12345"),
        ("1,235E6", "1235000"),
        ("-1,2E13", "-12000000000000"),
        ("0,0067", "0.0067"),
        ("6,7E-4", "0.00067"),
        ("7E-5", "0.00007"),
        ("-0,1234", "-0.1234"),
        ("-6,7E-4", "-0.00067"),
        ("5,", "5"),
        (",5", "0.5"),
        (NEGATE + "3", "-3"),
    ])
    def test_parse(self, text, expected):
        assert self.formatter.parse(text) == Decimal(expected)

    @pytest.mark.parametrize("text", ["", "abc", ",", "1,2,3", "E5", "1E", "--1", "1.5.0,2E"])
    def test_invalid_text_raises(self, text):
        with pytest.raises(FormatError):
            self.formatter.parse(text)

    def test_format_error_is_value_error(self):
        assert issubclass(FormatError, ValueError)

    @pytest.mark.parametrize("value", [0.1, 1234.5, -0.00067, 1e20, 123456789.25])
    def test_formatted_text_parses_back_within_length(self, value):
        text = self.formatter.format(value, 10)
        assert abs(self.formatter.parse(text) - as_decimal(value)) <= abs(as_decimal(value)) / 1000

    def test_to_plain_uses_python_literal(self):
        assert self.formatter.to_plain("1.234,5") == "1234.5"
        assert self.formatter.to_plain("6,7E-4") == "0.00067"


class TestDecimalFormatConfig:

    @pytest.mark.parametrize("kwargs", [
        {"decimal_separator": ",", "grouping_separator": ","},
        {"decimal_separator": ",,"},
        {"decimal_separator": "E"},
        {"grouping_separator": "1"},
        {"max_length": 5},
        {"max_fraction_digits": -1},
        {"max_integer_digits": 0},
    ])
    def test_invalid_configuration_raises(self, kwargs):
        with pytest.raises(ValueError):
            DecimalFormatConfig(**kwargs)

    def test_defaults(self):
        config = DecimalFormatConfig()
        assert config.decimal_separator == "."
        assert config.grouping_separator == ","
        assert config.max_length is None

    def test_as_decimal_avoids_binary_noise(self):
        assert as_decimal(0.1) == Decimal("0.1")
        assert as_decimal(3) == Decimal(3)
