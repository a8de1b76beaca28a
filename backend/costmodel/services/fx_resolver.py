"""FX resolver — conversion multipliers through the USD base rate table."""
import logging
from typing import Dict

from costmodel.config import BASE_CURRENCY
from costmodel.models.config_schema import FXRates

logger = logging.getLogger("cost-model.fx")


class FXResolver:
    """
    Resolves the multiplier that converts an amount in one currency into
    another. Rates are stored as units of currency per 1 USD.

    An unconfigured currency resolves to a neutral rate of 1 — callers must
    make sure every catalog currency is present in the table.
    """

    def __init__(self, fx_rates: FXRates) -> None:
        self._rates: Dict[str, float] = dict(fx_rates.rates)
        self._warned: set = set()

    def _usd_rate(self, currency: str) -> float:
        rate = self._rates.get(currency)
        if rate is None:
            if currency not in self._warned:
                self._warned.add(currency)
                logger.warning(f"No FX rate configured for {currency}; using neutral rate 1.0")
            return 1.0
        return rate

    def resolve(self, from_currency: str, to_currency: str) -> float:
        """Multiplier for ``amount_in_from × m = amount_in_to``."""
        if from_currency == to_currency:
            return 1.0
        if from_currency == BASE_CURRENCY:
            return self._usd_rate(to_currency)
        if to_currency == BASE_CURRENCY:
            return 1.0 / self._usd_rate(from_currency)

        # Cross rate via USD
        from_to_usd = 1.0 / self._usd_rate(from_currency)
        usd_to_target = self._usd_rate(to_currency)
        return from_to_usd * usd_to_target

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        return amount * self.resolve(from_currency, to_currency)
