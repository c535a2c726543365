from decimal import Decimal

from app.domain.money import convert_amount, currency_decimals, format_money, round_to_currency_precision


def test_zero_decimal_currency_rounds_half_even():
    assert round_to_currency_precision(Decimal("1234.567"), "RWF") == Decimal("1235")
    assert round_to_currency_precision(Decimal("1234.5"), "RWF") == Decimal("1234")
    assert round_to_currency_precision(Decimal("1235.5"), "RWF") == Decimal("1236")


def test_two_and_three_decimal_currencies():
    assert round_to_currency_precision("99.995", "USD") == Decimal("100.00")
    assert round_to_currency_precision("10.125", "EUR") == Decimal("10.12")
    assert round_to_currency_precision("1.23456", "KWD") == Decimal("1.235")


def test_float_input_does_not_leak_binary_error():
    assert round_to_currency_precision(99.995, "USD") == Decimal("100.00")


def test_unknown_currency_defaults_to_two_decimals():
    assert currency_decimals("XYZ") == 2
    assert currency_decimals(None) == 2
    assert currency_decimals("rwf") == 0


def test_format_money_symbol_placement():
    assert format_money(Decimal("1234.5"), "USD") == "$1,234.50"
    assert format_money(Decimal("1234.6"), "RWF") == "1,235 FRw"
    assert format_money(Decimal("1500"), "JPY") == "¥ 1,500"
    assert format_money(Decimal("10"), "ZAR") == "10.00 ZAR"


def test_convert_amount_through_rwf():
    assert convert_amount(Decimal("100"), "USD", "RWF") == Decimal("148000")
    assert convert_amount(Decimal("148000"), "RWF", "USD") == Decimal("100.00")
    assert convert_amount(Decimal("12.345"), "USD", "usd") == Decimal("12.34")


def test_convert_amount_unknown_rate_is_none():
    assert convert_amount(Decimal("10"), "USD", "XYZ") is None
    assert convert_amount(Decimal("10"), "XYZ", "RWF", rates={"RWF": Decimal("1")}) is None
