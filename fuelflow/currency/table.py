"""Supported currencies and their display settings."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class CurrencyInfo:
    """Display settings for one currency."""
    symbol: str
    name: str
    locale: str  # BCP 47 tag, e.g. "en-PK"
    code: str

    @property
    def babel_locale(self) -> str:
        """Locale identifier in Babel/CLDR form ("en_PK")."""
        return self.locale.replace("-", "_")


DEFAULT_CURRENCY = "PKR"

# 1 lakh = 100,000
LAKH = 100_000

CURRENCY_CONFIG: Mapping[str, CurrencyInfo] = MappingProxyType({
    "PKR": CurrencyInfo(symbol="Rs.", name="Pakistani Rupee", locale="en-PK", code="PKR"),
    "INR": CurrencyInfo(symbol="₹", name="Indian Rupee", locale="en-IN", code="INR"),
    "USD": CurrencyInfo(symbol="$", name="US Dollar", locale="en-US", code="USD"),
    "EUR": CurrencyInfo(symbol="€", name="Euro", locale="de-DE", code="EUR"),
    "GBP": CurrencyInfo(symbol="£", name="British Pound", locale="en-GB", code="GBP"),
    "AED": CurrencyInfo(symbol="د.إ", name="UAE Dirham", locale="ar-AE", code="AED"),
    "SAR": CurrencyInfo(symbol="﷼", name="Saudi Riyal", locale="ar-SA", code="SAR"),
    "CNY": CurrencyInfo(symbol="¥", name="Chinese Yuan", locale="zh-CN", code="CNY"),
})

CURRENCY_CODES = tuple(CURRENCY_CONFIG)


def is_valid_currency(code) -> bool:
    """True if ``code`` is one of the supported currency codes."""
    return isinstance(code, str) and code in CURRENCY_CONFIG


def get_currency_info(code: str) -> CurrencyInfo:
    """Look up a currency, raising ValueError for unsupported codes."""
    if not is_valid_currency(code):
        raise ValueError(
            f"Unsupported currency {code!r}; expected one of {', '.join(CURRENCY_CODES)}"
        )
    return CURRENCY_CONFIG[code]
