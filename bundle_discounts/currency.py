"""
Static currency conversion for fixed-amount discounts.

Bundle documents store fixed amounts in the reference currency (USD). The
rates below are placeholders, not live exchange rates.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_RATES: Dict[str, Decimal] = {
    "USD": Decimal("1.0"),
    "INR": Decimal("83.0"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.75"),
    "CAD": Decimal("1.25"),
    "JPY": Decimal("150.0"),
}

DEFAULT_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "JPY": "¥",
}

ZERO_DECIMAL_CURRENCIES: FrozenSet[str] = frozenset({"INR", "JPY"})

Number = Union[Decimal, int, float, str]


def format_amount(amount: Decimal) -> str:
    """Render an amount without trailing zeros: 10, 12.5, 830."""
    return format(amount.normalize(), "f")


class CurrencyTable(BaseModel):
    """
    Immutable reference-to-target rate table. Passed into the builder
    explicitly so callers can substitute their own rates.
    """
    model_config = ConfigDict(frozen=True)

    reference_currency: str = "USD"
    rates: Dict[str, Decimal] = Field(default_factory=lambda: dict(DEFAULT_RATES))
    symbols: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SYMBOLS))
    zero_decimal_currencies: FrozenSet[str] = ZERO_DECIMAL_CURRENCIES

    def rate(self, currency_code: str) -> Decimal:
        code = currency_code.upper()
        if code == self.reference_currency:
            return Decimal("1")
        rate = self.rates.get(code)
        if rate is None:
            logger.warning("No rate for %s, using 1.0", code)
            return Decimal("1")
        return rate

    def convert(self, amount: Number, target_currency: str) -> Decimal:
        """Convert a reference-currency amount, rounding half-up for the target currency."""
        converted = Decimal(str(amount)) * self.rate(target_currency)
        if target_currency.upper() in self.zero_decimal_currencies:
            quantum = Decimal("1")
        else:
            quantum = Decimal("0.01")
        result = converted.quantize(quantum, rounding=ROUND_HALF_UP)
        logger.debug(
            "Converted %s %s -> %s %s",
            amount, self.reference_currency, result, target_currency.upper(),
        )
        return result

    def symbol(self, currency_code: str) -> str:
        return self.symbols.get(currency_code.upper(), currency_code)

    def format_money(self, amount: Decimal, currency_code: str) -> str:
        return f"{self.symbol(currency_code)}{format_amount(amount)}"


DEFAULT_CURRENCY_TABLE = CurrencyTable()
