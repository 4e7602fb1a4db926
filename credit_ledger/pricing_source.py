"""
pricing_source.py - Price feeds and the valuation oracle

Classes:
- PricingSource: Protocol for raw price feeds
- StaticPricingSource: Time-independent prices
- TimeSeriesPricingSource: Time-varying prices with historical data
- ValuationOracle: Checked valuation service consumed by the lending pool

Prices are quoted in a base currency (typically USD). A feed answers None
when it has nothing; the ValuationOracle turns that into a rejection.
"""

from bisect import bisect_right
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Set, Optional, List, Tuple, Protocol, runtime_checkable

from .core import LedgerView
from .errors import PriceUnavailable, StalePrice


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


@runtime_checkable
class PricingSource(Protocol):
    """
    Protocol for pricing sources.

    Implementations must provide get_price() and get_prices().
    """
    base_currency: str

    def get_price(self, unit_symbol: str, timestamp: datetime) -> Optional[Decimal]:
        """Get the price of a single unit at a specific timestamp."""
        ...

    def get_prices(self, units: Set[str], timestamp: datetime) -> Dict[str, Decimal]:
        """Get prices for multiple units at a specific timestamp."""
        ...


class StaticPricingSource:
    """
    Pricing source with static prices (time-independent).

    The base currency always has a price of 1.
    """

    def __init__(self, prices: Dict[str, Decimal], base_currency: str = "USD"):
        self.base_currency = base_currency
        self.prices = {symbol: _to_decimal(price) for symbol, price in prices.items()}
        self.prices[base_currency] = Decimal("1")

    def get_price(self, unit_symbol: str, timestamp: datetime) -> Optional[Decimal]:
        """Get static price (timestamp is ignored)."""
        return self.prices.get(unit_symbol)

    def get_prices(self, units: Set[str], timestamp: datetime) -> Dict[str, Decimal]:
        return {unit: self.prices[unit] for unit in units if unit in self.prices}

    def update_price(self, unit_symbol: str, price: Decimal):
        self.prices[unit_symbol] = _to_decimal(price)

    def update_prices(self, prices: Dict[str, Decimal]):
        for symbol, price in prices.items():
            self.update_price(symbol, price)

    def remove_price(self, unit_symbol: str):
        """Drop a feed entirely (subsequent lookups answer None)."""
        self.prices.pop(unit_symbol, None)

    def __repr__(self):
        return f"StaticPricingSource({len(self.prices)} prices, base={self.base_currency})"


class TimeSeriesPricingSource:
    """
    Pricing source with time-varying prices.

    Uses the most recent observation at or before the requested timestamp.
    get_observation() additionally reports when that observation was made,
    which the ValuationOracle uses for staleness checks.
    """

    def __init__(
        self,
        price_paths: Optional[Dict[str, List[Tuple[datetime, Decimal]]]] = None,
        base_currency: str = "USD"
    ):
        """
        Args:
            price_paths: Optional dict mapping unit symbols to (timestamp, price) lists
            base_currency: Base currency for prices

        Example:
            pricer = TimeSeriesPricingSource({
                'WETH': [(t0, Decimal("2000")), (t1, Decimal("1800"))],
            })
        """
        self.base_currency = base_currency
        self.price_history: Dict[str, List[Tuple[datetime, Decimal]]] = {}

        if price_paths:
            for unit, path in price_paths.items():
                if not path:
                    continue
                self.price_history[unit] = sorted(
                    ((ts, _to_decimal(price)) for ts, price in path), key=lambda x: x[0]
                )

    def add_price(self, unit_symbol: str, timestamp: datetime, price: Decimal):
        history = self.price_history.setdefault(unit_symbol, [])
        history.append((timestamp, _to_decimal(price)))
        history.sort(key=lambda x: x[0])

    def get_observation(self, unit_symbol: str, timestamp: datetime) -> Optional[Tuple[datetime, Decimal]]:
        """
        Latest (observed_at, price) at or before timestamp, or None.

        The base currency is always observed at the requested timestamp.
        """
        if unit_symbol == self.base_currency:
            return timestamp, Decimal("1")

        history = self.price_history.get(unit_symbol)
        if not history:
            return None

        timestamps = [ts for ts, _ in history]
        idx = bisect_right(timestamps, timestamp)
        if idx == 0:
            return None
        return history[idx - 1]

    def get_price(self, unit_symbol: str, timestamp: datetime) -> Optional[Decimal]:
        observation = self.get_observation(unit_symbol, timestamp)
        return observation[1] if observation else None

    def get_prices(self, units: Set[str], timestamp: datetime) -> Dict[str, Decimal]:
        prices = {}
        for unit in units:
            price = self.get_price(unit, timestamp)
            if price is not None:
                prices[unit] = price
        return prices

    def __repr__(self):
        total_observations = sum(len(history) for history in self.price_history.values())
        return (
            f"TimeSeriesPricingSource({len(self.price_history)} units, "
            f"{total_observations} observations, base={self.base_currency})"
        )


class ValuationOracle:
    """
    Checked price and value conversions for the lending pool.

    Wraps a PricingSource and reads "now" from a LedgerView. Every failure
    (no feed, non-positive price, stale observation) raises an OracleError
    subclass; there is no fallback price.

    Staleness is only enforced when max_price_age is set and the source can
    report observation times (TimeSeriesPricingSource.get_observation).
    """

    def __init__(
        self,
        source: PricingSource,
        view: LedgerView,
        max_price_age: Optional[timedelta] = None,
    ):
        self.source = source
        self.view = view
        self.max_price_age = max_price_age

    def price_of(self, asset: str) -> Decimal:
        """
        Current price of one unit of asset in the base currency.

        Raises:
            PriceUnavailable: feed missing or price not positive
            StalePrice: observation older than max_price_age
        """
        now = self.view.current_time
        get_observation = getattr(self.source, "get_observation", None)
        if get_observation is not None:
            observation = get_observation(asset, now)
            if observation is None:
                raise PriceUnavailable(asset)
            observed_at, price = observation
            if self.max_price_age is not None and now - observed_at > self.max_price_age:
                raise StalePrice(asset, observed_at, self.max_price_age, now)
        else:
            price = self.source.get_price(asset, now)
            if price is None:
                raise PriceUnavailable(asset)

        price = _to_decimal(price)
        if not price.is_finite() or price <= 0:
            raise PriceUnavailable(asset, f"invalid price {price}")
        return price

    def value_of(self, asset: str, amount: Decimal) -> Decimal:
        """Base-currency value of an amount of asset."""
        return _to_decimal(amount) * self.price_of(asset)

    def amount_of(self, asset: str, value: Decimal) -> Decimal:
        """Amount of asset worth the given base-currency value."""
        return _to_decimal(value) / self.price_of(asset)

    def __repr__(self):
        return f"ValuationOracle({self.source!r}, max_age={self.max_price_age})"
