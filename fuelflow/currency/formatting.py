"""
Currency formatting and parsing without a CurrencyService.

Formatting follows CLDR locale rules via Babel. Malformed amounts never
raise: they format as the currency symbol followed by "0". The parsing
step itself returns a Result so the failure stays visible to callers
that want it.
"""

import copy
import math
import re
import decimal
from decimal import Decimal
from functools import lru_cache
from typing import Optional, Union

from babel import Locale
from babel.numbers import (
    format_compact_currency,
    get_decimal_symbol,
    get_group_symbol,
    parse_pattern,
)

from ..errors import ErrorCategory, ErrorContext, ErrorSeverity, Result
from .table import DEFAULT_CURRENCY, LAKH, get_currency_info

Amount = Union[int, float, Decimal, str]

# Leading decimal, like JavaScript's parseFloat ("12.5abc" -> 12.5)
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")

_NON_NUMERIC = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
# A dot directly after a letter belongs to a symbol ("Rs.", "د.إ.")
_LETTER_DOT = re.compile(r"(?<=[^\W\d_])\.")


@lru_cache(maxsize=None)
def _locale(code: str) -> Locale:
    return Locale.parse(get_currency_info(code).babel_locale)


def parse_amount(amount: Amount) -> Result[Decimal]:
    """
    Interpret a number or numeric string as a finite Decimal.

    Strings use their leading numeric prefix; anything else is an error.
    """
    if isinstance(amount, bool):
        return _invalid(amount, "booleans are not amounts")

    if isinstance(amount, str):
        match = _FLOAT_PREFIX.match(amount)
        if not match:
            return _invalid(amount, "no leading number")
        value = Decimal(match.group(1))
    elif isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float)):
        if isinstance(amount, float) and not math.isfinite(amount):
            return _invalid(amount, "not a finite number")
        value = Decimal(str(amount))
    else:
        return _invalid(amount, f"unsupported type {type(amount).__name__}")

    if not value.is_finite():
        return _invalid(amount, "not a finite number")
    return Result.ok(value)


def _invalid(amount, reason: str) -> Result[Decimal]:
    return Result.err(ErrorContext(
        category=ErrorCategory.USER_INPUT,
        severity=ErrorSeverity.LOW,
        operation="parse_amount",
        user_message=f"Not a valid amount: {amount!r}",
        technical_message=reason,
    ))


def _fraction_digits(minimum: Optional[int], maximum: Optional[int]) -> tuple:
    lo = 2 if minimum is None else minimum
    hi = 2 if maximum is None else maximum
    if lo < 0 or hi < 0:
        raise ValueError("fraction digits must not be negative")
    if lo > hi:
        # The explicitly given bound wins
        if maximum is None:
            hi = lo
        else:
            lo = hi
    return lo, hi


def _rounding_context(value: Decimal, fraction_digits: int):
    """Half-up rounding with enough precision to keep every digit of ``value``."""
    prec = max(decimal.getcontext().prec, value.adjusted() + fraction_digits + 2)
    return decimal.localcontext(decimal.Context(prec=prec, rounding=decimal.ROUND_HALF_UP))


def _compact_fraction_digits(value: Decimal, locale: Locale) -> int:
    """Two significant digits: one fraction digit while the short form is below 10."""
    patterns = locale.compact_currency_formats["short"]["other"]
    for magnitude in sorted((int(m) for m in patterns), reverse=True):
        if abs(value) >= magnitude:
            pattern = parse_pattern(patterns[str(magnitude)]).pattern
            # "0" means the locale does not abbreviate at this magnitude
            if pattern == "0":
                scaled = abs(value)
            else:
                scaled = abs(value) / (magnitude // 10 ** (pattern.count("0") - 1))
            return 1 if scaled < 10 else 0
    return 1


def get_currency_symbol(currency_code: str) -> str:
    """Symbol from the currency table (e.g. "Rs." for PKR)."""
    return get_currency_info(currency_code).symbol


def format_amount(
    amount: Amount,
    currency_code: str = DEFAULT_CURRENCY,
    minimum_fraction_digits: Optional[int] = None,
    maximum_fraction_digits: Optional[int] = None,
) -> str:
    """
    Format an amount in the currency's locale.

    Two fraction digits unless overridden. Unparseable amounts give
    the symbol followed by "0".
    """
    info = get_currency_info(currency_code)
    frac_prec = _fraction_digits(minimum_fraction_digits, maximum_fraction_digits)

    parsed = parse_amount(amount)
    if parsed.is_err:
        return f"{info.symbol}0"

    locale = _locale(currency_code)
    pattern = copy.copy(locale.currency_formats["standard"])
    pattern.frac_prec = frac_prec

    with _rounding_context(parsed.value, frac_prec[1]):
        return pattern.apply(parsed.value, locale, currency=info.code, currency_digits=False)


def format_amount_compact(amount: Amount, currency_code: str = DEFAULT_CURRENCY) -> str:
    """
    Short form for dashboards.

    PKR amounts of one lakh or more are shown in lakhs with one decimal
    ("Rs.2.5L"); everything else uses the locale's compact notation with
    two significant digits ("$1.2K", "$12K").
    """
    info = get_currency_info(currency_code)

    parsed = parse_amount(amount)
    if parsed.is_err:
        return f"{info.symbol}0"
    value = parsed.value

    with _rounding_context(value, 1):
        if currency_code == "PKR" and value >= LAKH:
            lakhs = (value / LAKH).quantize(Decimal("0.1"))
            return f"{info.symbol}{lakhs}L"

        locale = _locale(currency_code)
        return format_compact_currency(
            value,
            info.code,
            format_type="short",
            fraction_digits=_compact_fraction_digits(value, locale),
            locale=locale,
        )


def parse_currency_string(text: str, currency_code: Optional[str] = None) -> float:
    """
    Read a number back out of a formatted currency string.

    Keeps digits, one decimal point and a leading minus sign. Pass
    ``currency_code`` to first normalise that locale's separators
    (needed for "1.234,56 €"). Malformed input yields 0.
    """
    text = str(text)

    if currency_code is not None:
        locale = _locale(currency_code)
        decimal_symbol = get_decimal_symbol(locale)
        if decimal_symbol != ".":
            text = text.replace(get_group_symbol(locale), "").replace(decimal_symbol, ".")

    text = _LETTER_DOT.sub("", text)

    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", text))
    if not match:
        return 0.0
    value = float(match.group())
    return value if value else 0.0
