"""
Exchange Rates and Currency Display

Amounts are stored in the base currency (UAH). Rates say how much of
another currency one UAH buys, as returned by the rates API:

    rates = {"UAH": 1, "USD": 0.024, "EUR": 0.022, "PLN": 0.098}

DESIGN DECISION: Rates are fetched at most once per calendar day and
cached in a small JSON file. A failed fetch never reaches the caller:
the last cached rates are used, and with no cache amounts are shown in
the base currency.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from tenacity import Retrying, stop_after_attempt, wait_exponential

from homebudget.activity import ActivityLogger
from homebudget.config import ExchangeRateSettings, get_settings
from homebudget.models.ledger import BASE_CURRENCY, CurrencySettings, RateSource


class ExchangeRateError(Exception):
    """The rates API could not be reached or returned something unusable."""
    pass


class CachedRates(BaseModel):
    """Rates as cached on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rates: dict[str, float] = Field(default_factory=dict)
    last_updated: datetime


class ExchangeRateService:
    """
    Fetches and caches base-currency exchange rates.

    Usage:
        service = ExchangeRateService()
        rates = service.get_rates()        # may be None offline with no cache
        usd = convert_amount(1000, "USD", rates)
    """

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        http: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().exchange_rates
        self._activity = activity_logger or ActivityLogger()
        self._http = http or requests.Session()
        self._cache_path = Path(self._settings.cache_path)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def cached(self) -> Optional[CachedRates]:
        """The cached rates, or None if there is no readable cache."""
        if not self._cache_path.exists():
            return None
        try:
            with self._cache_path.open("r", encoding="utf-8") as f:
                return CachedRates.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError):
            return None

    def _write_cache(self, cached: CachedRates) -> None:
        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            self._cache_path.write_text(
                cached.model_dump_json(by_alias=True, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            # Rates still work for this process
            self._activity.log_rates_fallback(f"Could not write rate cache: {e}", None)

    @staticmethod
    def needs_refresh(cached: Optional[CachedRates], now: Optional[datetime] = None) -> bool:
        """Refresh when there is no cache or it is from an earlier calendar day."""
        if cached is None:
            return True
        now = now or datetime.now(timezone.utc)
        last = cached.last_updated
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return last.astimezone(now.tzinfo or timezone.utc).date() != now.date()

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    def _request_rates(self) -> dict[str, float]:
        try:
            response = self._http.get(self._settings.api_url, timeout=self._settings.timeout_seconds)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise ExchangeRateError(f"Rate request failed: {e}")
        except ValueError as e:
            raise ExchangeRateError(f"Rate response is not JSON: {e}")

        all_rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(all_rates, dict):
            raise ExchangeRateError("Rate response has no 'rates' object")

        rates = {BASE_CURRENCY: 1.0}
        for code in self._settings.tracked_currencies_list:
            value = all_rates.get(code)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ExchangeRateError(f"Rate response is missing {code}")
            rates[code] = float(value)
        return rates

    def fetch_rates(self) -> dict[str, float]:
        """Fetch fresh rates with retries. Raises ExchangeRateError."""
        for attempt in Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        ):
            with attempt:
                return self._request_rates()

    def refresh(self) -> Optional[CachedRates]:
        """
        Fetch and cache fresh rates.

        On failure the previous cache is returned (possibly None).
        """
        try:
            rates = self.fetch_rates()
        except ExchangeRateError as e:
            previous = self.cached()
            self._activity.log_rates_fallback(
                str(e),
                previous.last_updated.isoformat() if previous else None,
            )
            return previous

        cached = CachedRates(rates=rates, last_updated=datetime.now(timezone.utc))
        self._write_cache(cached)
        self._activity.log_rates_refreshed(rates)
        return cached

    def get_cached_rates(self, force_refresh: bool = False) -> Optional[CachedRates]:
        cached = self.cached()
        if force_refresh or self.needs_refresh(cached):
            return self.refresh()
        return cached

    def get_rates(self, force_refresh: bool = False) -> Optional[dict[str, float]]:
        """Current rates, refreshed at most once a day. Never raises."""
        cached = self.get_cached_rates(force_refresh)
        return cached.rates if cached else None


# =============================================================================
# CONVERSION AND DISPLAY
# =============================================================================

CURRENCY_SYMBOLS = {"UAH": "₴", "USD": "$", "EUR": "€", "PLN": "zł"}


def _code(currency) -> str:
    """Currency enum members and plain codes alike."""
    return getattr(currency, "value", currency)


def convert_amount(
    amount_in_base: float,
    target_currency: str,
    rates: Optional[dict[str, float]],
) -> float:
    """Base-currency amount in another currency. Unknown rates leave it unchanged."""
    target_currency = _code(target_currency)
    if not rates or target_currency == BASE_CURRENCY:
        return amount_in_base
    rate = rates.get(target_currency)
    if not isinstance(rate, (int, float)) or rate <= 0:
        return amount_in_base
    return amount_in_base * rate


def to_base_amount(
    original_amount: float,
    original_currency: str,
    rates: Optional[dict[str, float]],
    manual_rate: Optional[float] = None,
) -> tuple[float, float, RateSource]:
    """
    Convert an entered amount into the base currency.

    Returns (amount_in_base, exchange_rate, rate_source), where
    exchange_rate is base-currency units per one unit of the original
    currency. A manual rate wins over the market rate; with neither the
    rate is 1.
    """
    original_currency = _code(original_currency)
    if original_currency == BASE_CURRENCY:
        return original_amount, 1.0, RateSource.MANUAL
    if manual_rate is not None and manual_rate > 0:
        return original_amount * manual_rate, manual_rate, RateSource.MANUAL

    market = (rates or {}).get(original_currency)
    if isinstance(market, (int, float)) and market > 0:
        rate = 1 / market
        return original_amount * rate, rate, RateSource.API
    return original_amount, 1.0, RateSource.MANUAL


def format_currency(value: float, currency: str = BASE_CURRENCY, fraction_digits: int = 2) -> str:
    currency = _code(currency)
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    return f"{value:,.{fraction_digits}f} {symbol}"


def format_display_amount(
    amount_in_base: float,
    target_currency: str,
    rates: Optional[dict[str, float]],
    settings: CurrencySettings,
    original_amount: Optional[float] = None,
    original_currency: Optional[str] = None,
    simple: bool = False,
) -> str:
    """
    Amount formatted for display in the target currency.

    With showOriginalCurrency on and an entry made in another currency,
    the original is appended as "(was ...)".
    """
    target_currency = _code(target_currency)
    original_currency = _code(original_currency) if original_currency else None
    digits = 0 if settings.round_to_whole_numbers else 2
    if not rates:
        return format_currency(amount_in_base, BASE_CURRENCY, digits)

    formatted = format_currency(convert_amount(amount_in_base, target_currency, rates), target_currency, digits)
    if simple:
        return formatted

    if (
        settings.show_original_currency
        and original_currency
        and original_amount is not None
        and original_currency != target_currency
    ):
        # Foreign amounts keep their cents
        original_digits = digits if original_currency == BASE_CURRENCY else 2
        return f"{formatted} (was {format_currency(original_amount, original_currency, original_digits)})"

    return formatted
