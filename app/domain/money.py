"""Currency precision, formatting and conversion.

All money in this codebase is a ``Decimal`` in major units of its currency.
Amounts are rounded to the currency's minor-unit precision before they are
persisted or displayed so fractional units never accumulate.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

# Minor-unit digits for currencies that differ from the 2-decimal default
CURRENCY_DECIMALS: dict[str, int] = {
    # 0 decimals
    "RWF": 0,
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "IDR": 0,
    "TZS": 0,
    "KES": 0,
    "UGX": 0,
    "BIF": 0,
    "XOF": 0,
    "XAF": 0,
    "GNF": 0,
    "HUF": 0,
    "CLP": 0,
    "ISK": 0,
    # 3 decimals
    "KWD": 3,
    "BHD": 3,
    "OMR": 3,
}

DEFAULT_DECIMALS = 2

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "RWF": "FRw",
    "KES": "KSh",
    "UGX": "USh",
    "TZS": "TSh",
}

# How much RWF one unit of each currency buys (BNR selling rates)
FIXED_RATES: dict[str, Decimal] = {
    "RWF": Decimal("1"),
    "USD": Decimal("1480.0"),
    "EUR": Decimal("1745.0"),
    "GBP": Decimal("2005.0"),
    "CHF": Decimal("1897.0"),
    "CAD": Decimal("1082.0"),
    "AUD": Decimal("1037.0"),
    "JPY": Decimal("9.52"),
    "CNY": Decimal("213.0"),
    "TZS": Decimal("0.573"),
    "KES": Decimal("11.48"),
    "UGX": Decimal("0.416"),
    "BIF": Decimal("0.500"),
    "ZAR": Decimal("92.8"),
    "XOF": Decimal("2.675"),
    "XAF": Decimal("2.597"),
    "NGN": Decimal("1.056"),
    "GHS": Decimal("134.9"),
    "AED": Decimal("403.2"),
    "KWD": Decimal("4860.0"),
    "INR": Decimal("16.4"),
}


def to_decimal(amount: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric value to Decimal without binary float artefacts."""
    if isinstance(amount, Decimal):
        return amount
    try:
        # str() first: Decimal(99.995) is 99.99499999..., Decimal("99.995") is not
        return Decimal(str(amount))
    except InvalidOperation as e:
        raise ValueError(f"Invalid monetary amount: {amount!r}") from e


def normalize_currency(currency_code: str | None) -> str:
    return (currency_code or "USD").strip().upper()


def currency_decimals(currency_code: str | None) -> int:
    """Number of minor-unit digits for a currency (0, 2 or 3)."""
    return CURRENCY_DECIMALS.get(normalize_currency(currency_code), DEFAULT_DECIMALS)


def round_to_currency_precision(
    amount: Decimal | int | float | str,
    currency_code: str | None,
) -> Decimal:
    """Round an amount to the minor-unit precision of its currency.

    Uses banker's rounding (half to even) on the decimal value.

    Args:
        amount: Amount in major units
        currency_code: ISO 4217 code

    Returns:
        Decimal: Rounded amount, e.g. ``1234.567 RWF -> 1235``,
        ``99.995 USD -> 100.00``
    """
    exponent = Decimal(1).scaleb(-currency_decimals(currency_code))
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_EVEN)


def format_money(amount: Decimal | int | float, currency_code: str | None) -> str:
    """Human-readable amount with the symbol placed the way guests expect."""
    code = normalize_currency(currency_code or "RWF")
    symbol = CURRENCY_SYMBOLS.get(code, code)
    value = round_to_currency_precision(amount, code)
    decimals = currency_decimals(code)
    number = f"{value:,.{decimals}f}"

    if code in ("USD", "EUR", "GBP"):
        return f"{symbol}{number}"
    if code in ("JPY", "CNY"):
        return f"{symbol} {number}"
    return f"{number} {symbol}"


def convert_amount(
    amount: Decimal | int | float | str,
    from_currency: str,
    to_currency: str,
    rates: dict[str, Decimal] | None = None,
) -> Decimal | None:
    """Convert between currencies through RWF and round for the target.

    Returns:
        Converted amount, or None when either currency has no rate
    """
    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)
    value = to_decimal(amount)

    if source == target:
        return round_to_currency_precision(value, target)

    table = rates if rates is not None else FIXED_RATES
    source_rate = table.get(source)
    target_rate = table.get(target)
    if not source_rate or not target_rate:
        return None

    rwf = value * source_rate
    return round_to_currency_precision(rwf / target_rate, target)
