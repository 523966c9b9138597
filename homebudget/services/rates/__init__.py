"""Exchange rate service and currency display helpers."""

from homebudget.services.rates.exchange_rates import (
    CachedRates,
    ExchangeRateError,
    ExchangeRateService,
    convert_amount,
    format_currency,
    format_display_amount,
    to_base_amount,
)

__all__ = [
    "CachedRates",
    "ExchangeRateError",
    "ExchangeRateService",
    "convert_amount",
    "format_currency",
    "format_display_amount",
    "to_base_amount",
]
