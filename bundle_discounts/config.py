"""Configuration from environment variables."""

import json
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from .currency import DEFAULT_RATES, CurrencyTable

logger = logging.getLogger(__name__)

# Load .env from project root (parent of bundle_discounts/)
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env")


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable."""
    return os.getenv(key, default)


def parse_rate_overrides(raw: Optional[str]) -> Dict[str, Decimal]:
    """Parse CURRENCY_RATES, a JSON object of currency code to rate. Bad input is ignored."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("CURRENCY_RATES is not valid JSON, ignoring")
        return {}
    if not isinstance(data, dict):
        logger.warning("CURRENCY_RATES must be a JSON object, ignoring")
        return {}
    rates: Dict[str, Decimal] = {}
    for code, value in data.items():
        try:
            rates[str(code).upper()] = Decimal(str(value))
        except InvalidOperation:
            logger.warning("Ignoring non-numeric rate for %s", code)
    return rates


class Settings:
    """Bundle discount service settings."""

    environment: str = get_env("ENVIRONMENT", "development")
    log_level: str = get_env("LOG_LEVEL", "INFO")
    log_json: bool = (get_env("LOG_JSON") or "true").strip().lower() == "true"

    # Currency used when the cart does not report one
    default_currency: str = (get_env("DEFAULT_CURRENCY") or "USD").upper()
    # Currency that fixedAmountOff values in bundle documents are written in
    reference_currency: str = (get_env("REFERENCE_CURRENCY") or "USD").upper()
    currency_rates_json: str = get_env("CURRENCY_RATES") or ""

    def currency_table(self) -> CurrencyTable:
        rates = dict(DEFAULT_RATES)
        rates.update(parse_rate_overrides(self.currency_rates_json))
        return CurrencyTable(reference_currency=self.reference_currency, rates=rates)


settings = Settings()
