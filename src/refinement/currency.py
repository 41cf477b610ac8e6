"""Currency conversion against a fixed rate table."""

from __future__ import annotations

from collections.abc import Mapping

from src.shared.constants import CURRENCY_RATES_TO_USD
from src.shared.models import Product


class CurrencyConverter:
    """Converts amounts between currencies using static USD rates.

    ``rates`` maps a currency code to the value of one unit in USD.
    Unknown codes yield ``None`` rather than an error, and a price of
    ``0`` (unknown) is returned untouched.
    """

    def __init__(self, rates: Mapping[str, float] | None = None) -> None:
        source = CURRENCY_RATES_TO_USD if rates is None else rates
        self._rates = {code.upper(): rate for code, rate in source.items() if rate > 0}

    def rate(self, code: str) -> float | None:
        if not code:
            return None
        return self._rates.get(code.strip().upper())

    def knows(self, code: str) -> bool:
        return self.rate(code) is not None

    def to_usd(self, amount: float, code: str) -> float | None:
        return self.convert(amount, code, "USD")

    def convert(self, amount: float, from_code: str, to_code: str) -> float | None:
        if amount == 0:
            return amount
        rate_from = self.rate(from_code)
        rate_to = self.rate(to_code)
        if rate_from is None or rate_to is None:
            return None
        return amount * rate_from / rate_to

    def display_conversion(self, product: Product, local_currency: str) -> float | None:
        """Amount to show next to the listed price, or None to show nothing."""
        if product.price == 0:
            return None
        if product.currency.upper() == local_currency.upper():
            return None
        return self.convert(product.price, product.currency, local_currency)


def format_price(amount: float, currency: str) -> str:
    """Render a price the way result lists show it; unknown prices are N/A."""
    if amount == 0:
        return "N/A"
    return f"{currency.upper()} {amount:,.0f}" if currency else f"{amount:,.0f}"
