"""Currency table, formatting helpers and the active-currency service."""

from .table import (
    CURRENCY_CODES,
    CURRENCY_CONFIG,
    DEFAULT_CURRENCY,
    CurrencyInfo,
    get_currency_info,
    is_valid_currency,
)
from .formatting import (
    format_amount,
    format_amount_compact,
    get_currency_symbol,
    parse_amount,
    parse_currency_string,
)
from .service import CurrencyService

__all__ = [
    "CURRENCY_CODES",
    "CURRENCY_CONFIG",
    "DEFAULT_CURRENCY",
    "CurrencyInfo",
    "CurrencyService",
    "format_amount",
    "format_amount_compact",
    "get_currency_info",
    "get_currency_symbol",
    "is_valid_currency",
    "parse_amount",
    "parse_currency_string",
]
