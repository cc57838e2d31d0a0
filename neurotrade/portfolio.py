"""
Portfolio: cash, holdings and the fixed P/L baseline.

The store only enforces structural invariants. Business rules (funds and
share sufficiency) belong to the TransactionEngine, which is the only caller
of the mutators here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


class PortfolioInvariantError(RuntimeError):
    """A mutation would break a structural invariant. Always a programming error."""


def normalize_symbol(symbol: str) -> str:
    return str(symbol or "").strip().upper()


@dataclass(frozen=True)
class Holding:
    """Open position in one symbol. Replaced, never mutated, on each fill."""

    symbol: str
    shares: int
    average_cost: float

    def __post_init__(self) -> None:
        if not self.symbol:
            raise PortfolioInvariantError("holding symbol must be non-empty")
        if isinstance(self.shares, bool) or not isinstance(self.shares, int) or self.shares < 1:
            raise PortfolioInvariantError(f"holding {self.symbol} must have shares >= 1, got {self.shares!r}")
        if not math.isfinite(self.average_cost) or self.average_cost < 0:
            raise PortfolioInvariantError(f"holding {self.symbol} has invalid average cost {self.average_cost!r}")

    @property
    def cost_basis(self) -> float:
        return self.shares * self.average_cost


def _check_fill(symbol: str, shares: Any, fill_price: Any) -> None:
    if not symbol:
        raise PortfolioInvariantError("symbol must be non-empty")
    if isinstance(shares, bool) or not isinstance(shares, int) or shares <= 0:
        raise PortfolioInvariantError(f"fill quantity must be a positive integer, got {shares!r}")
    if not isinstance(fill_price, (int, float)) or not math.isfinite(fill_price) or fill_price <= 0:
        raise PortfolioInvariantError(f"fill price must be positive and finite, got {fill_price!r}")


@dataclass
class Portfolio:
    """
    Account state. Mutated only through apply_buy/apply_sell.
    initial_value is fixed at construction.
    """

    cash: float = 0.0
    holdings: dict[str, Holding] = field(default_factory=dict)
    initial_value: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.cash) or self.cash < 0:
            raise PortfolioInvariantError(f"cash must be >= 0, got {self.cash!r}")
        for sym, holding in self.holdings.items():
            if sym != holding.symbol:
                raise PortfolioInvariantError(f"holding keyed as {sym!r} has symbol {holding.symbol!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "initial_value" and "initial_value" in self.__dict__:
            raise PortfolioInvariantError("initial_value is immutable once the portfolio exists")
        super().__setattr__(name, value)

    @classmethod
    def create(cls, starting_cash: float) -> Portfolio:
        """Default account: all cash, no holdings, baseline = starting cash."""
        return cls(cash=float(starting_cash), holdings={}, initial_value=float(starting_cash))

    def get_holding(self, symbol: str) -> Holding | None:
        return self.holdings.get(normalize_symbol(symbol))

    def shares(self, symbol: str) -> int:
        """Shares held in symbol. 0 if not present."""
        holding = self.get_holding(symbol)
        return holding.shares if holding is not None else 0

    def apply_buy(self, symbol: str, shares: int, fill_price: float) -> Holding:
        """Deduct the cost from cash and fold the fill into the average cost."""
        sym = normalize_symbol(symbol)
        _check_fill(sym, shares, fill_price)
        cost = shares * fill_price
        if cost > self.cash:
            raise PortfolioInvariantError(f"buy of {shares} {sym} costs {cost} with only {self.cash} cash")

        current = self.holdings.get(sym)
        old_shares = current.shares if current is not None else 0
        old_avg = current.average_cost if current is not None else 0.0
        total_shares = old_shares + shares
        holding = Holding(
            symbol=sym,
            shares=total_shares,
            average_cost=(old_shares * old_avg + cost) / total_shares,
        )
        self.cash -= cost
        self.holdings[sym] = holding
        return holding

    def apply_sell(self, symbol: str, shares: int, fill_price: float) -> Holding | None:
        """
        Credit the proceeds and reduce the position. Returns None when the
        position is closed; the average cost of what remains is unchanged.
        """
        sym = normalize_symbol(symbol)
        _check_fill(sym, shares, fill_price)
        current = self.holdings.get(sym)
        if current is None or current.shares < shares:
            held = current.shares if current is not None else 0
            raise PortfolioInvariantError(f"sell of {shares} {sym} with only {held} held")

        self.cash += shares * fill_price
        remaining = current.shares - shares
        if remaining == 0:
            del self.holdings[sym]
            return None
        holding = Holding(symbol=sym, shares=remaining, average_cost=current.average_cost)
        self.holdings[sym] = holding
        return holding

    def snapshot(self) -> Portfolio:
        """Independent copy for read-only consumers (valuation, observers)."""
        return Portfolio(cash=self.cash, holdings=dict(self.holdings), initial_value=self.initial_value)
