"""
Valuation: portfolio value and P/L at current prices.

Pure function of a portfolio and a price lookup. Holdings without a usable
price are left out of the total and reported, so a partial figure is never
mistaken for a complete one.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Optional, Union

import pandas as pd

from neurotrade.portfolio import Portfolio

PriceLookup = Union[Mapping[str, Optional[float]], Callable[[str], Optional[float]]]

logger = logging.getLogger(__name__)

HOLDINGS_COLUMNS = ["symbol", "shares", "average_cost", "price", "market_value", "cost_basis", "unrealized_pl"]


@dataclass(frozen=True)
class HoldingValuation:
    """One holding at its current price. price and the derived values are None when unavailable."""

    symbol: str
    shares: int
    average_cost: float
    price: float | None
    market_value: float | None
    cost_basis: float
    unrealized_pl: float | None


@dataclass(frozen=True)
class Valuation:
    """Derived figures for display."""

    cash: float
    initial_value: float
    total_value: float
    profit_loss: float
    profit_loss_percent: float
    holdings: dict[str, HoldingValuation] = field(default_factory=dict)
    unavailable: tuple[str, ...] = ()

    @property
    def partial(self) -> bool:
        """True when at least one holding could not be priced."""
        return bool(self.unavailable)

    @property
    def unrealized_pl(self) -> float:
        return sum((h.unrealized_pl for h in self.holdings.values() if h.unrealized_pl is not None), 0.0)

    def market_value(self, symbol: str) -> float | None:
        h = self.holdings.get(symbol)
        return h.market_value if h is not None else None


def _usable(price: object) -> float | None:
    if price is None or isinstance(price, bool) or not isinstance(price, (int, float)):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return float(price)


def lookup_price(price_lookup: PriceLookup, symbol: str) -> float | None:
    """Resolve one price from a mapping or callable. Missing, invalid or failing lookups give None."""
    if isinstance(price_lookup, Mapping):
        return _usable(price_lookup.get(symbol))
    try:
        price = price_lookup(symbol)
    except Exception as e:
        logger.debug("Price lookup for %s failed: %s", symbol, e)
        return None
    return _usable(price)


def valuate(portfolio: Portfolio, price_lookup: PriceLookup) -> Valuation:
    """
    Value the portfolio at current prices.

    total_value = cash + Σ shares × price over priced holdings
    profit_loss = total_value − initial_value
    profit_loss_percent = profit_loss / initial_value × 100 (0.0 when initial_value is 0)
    """
    total = portfolio.cash
    rows: dict[str, HoldingValuation] = {}
    unavailable: list[str] = []
    for sym in sorted(portfolio.holdings):
        holding = portfolio.holdings[sym]
        price = lookup_price(price_lookup, sym)
        if price is None:
            unavailable.append(sym)
            market_value = None
            unrealized = None
        else:
            market_value = holding.shares * price
            unrealized = market_value - holding.cost_basis
            total += market_value
        rows[sym] = HoldingValuation(
            symbol=sym,
            shares=holding.shares,
            average_cost=holding.average_cost,
            price=price,
            market_value=market_value,
            cost_basis=holding.cost_basis,
            unrealized_pl=unrealized,
        )

    profit_loss = total - portfolio.initial_value
    pct = (profit_loss / portfolio.initial_value * 100.0) if portfolio.initial_value else 0.0
    return Valuation(
        cash=portfolio.cash,
        initial_value=portfolio.initial_value,
        total_value=total,
        profit_loss=profit_loss,
        profit_loss_percent=pct,
        holdings=rows,
        unavailable=tuple(unavailable),
    )


def holdings_frame(valuation: Valuation) -> pd.DataFrame:
    """Per-holding table, one row per symbol in symbol order. Unpriced cells are NaN."""
    rows = [
        {
            "symbol": h.symbol,
            "shares": h.shares,
            "average_cost": h.average_cost,
            "price": h.price,
            "market_value": h.market_value,
            "cost_basis": h.cost_basis,
            "unrealized_pl": h.unrealized_pl,
        }
        for h in valuation.holdings.values()
    ]
    if not rows:
        return pd.DataFrame(columns=HOLDINGS_COLUMNS)
    df = pd.DataFrame(rows, columns=HOLDINGS_COLUMNS)
    for col in ("price", "market_value", "unrealized_pl"):
        df[col] = df[col].astype(float)
    return df
