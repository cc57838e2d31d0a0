"""
Quote source abstraction.

QuoteSource ABC: get_quote, get_series, get_news. StaticQuoteSource serves
in-memory data for paper sessions and tests; AlphaVantageQuoteSource (in
marketfeed.alphavantage) queries the live API. Lookups are read-only and may
run concurrently with each other.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

import pandas as pd

from marketfeed.series import empty_series
from marketfeed.types import NewsItem, Quote, QuoteResult, QuoteStatus, Timeframe

logger = logging.getLogger(__name__)

DEFAULT_NEWS_LIMIT = 10


class QuoteSource(ABC):
    """Same interface for simulated and live market data."""

    @abstractmethod
    def get_quote(self, symbol: str) -> QuoteResult:
        """Latest quote for symbol. Failures are returned as a non-AVAILABLE status, not raised."""
        ...

    @abstractmethod
    def get_series(self, symbol: str, timeframe: Timeframe) -> pd.Series:
        """Close prices for the timeframe, oldest first. Empty when unavailable."""
        ...

    @abstractmethod
    def get_news(self, symbol: str, limit: int = DEFAULT_NEWS_LIMIT) -> list[NewsItem]:
        """Most recent news items for symbol, at most limit."""
        ...

    def get_quotes(self, symbols: Iterable[str], *, max_workers: int = 4) -> dict[str, QuoteResult]:
        """Fetch several quotes on a thread pool. Keys keep the order of symbols; duplicates fetched once."""
        unique = list(dict.fromkeys(symbols))
        if not unique:
            return {}
        workers = max(1, min(max_workers, len(unique)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(self.get_quote, unique))
        return dict(zip(unique, results))


class StaticQuoteSource(QuoteSource):
    """
    In-memory market data. Prices may be updated between calls (set_price);
    failures can be injected per symbol to exercise the unavailable paths.
    """

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        *,
        series: dict[str, pd.Series] | None = None,
        news: dict[str, list[NewsItem]] | None = None,
        failures: dict[str, QuoteStatus] | None = None,
    ) -> None:
        self._prices = {k.upper(): v for k, v in (prices or {}).items()}
        self._previous: dict[str, float] = dict(self._prices)
        self._series = {k.upper(): v for k, v in (series or {}).items()}
        self._news = {k.upper(): list(v) for k, v in (news or {}).items()}
        self._failures = {k.upper(): v for k, v in (failures or {}).items()}
        self.requests: list[str] = []

    def set_price(self, symbol: str, price: float) -> None:
        """Move the price; change is measured against the previous price."""
        sym = symbol.upper()
        if sym in self._prices:
            self._previous[sym] = self._prices[sym]
        else:
            self._previous[sym] = price
        self._prices[sym] = price

    def fail(self, symbol: str, status: QuoteStatus = QuoteStatus.FETCH_FAILED) -> None:
        self._failures[symbol.upper()] = status

    def recover(self, symbol: str) -> None:
        self._failures.pop(symbol.upper(), None)

    def get_quote(self, symbol: str) -> QuoteResult:
        sym = symbol.strip().upper()
        self.requests.append(sym)
        if sym in self._failures:
            return QuoteResult.failed(sym, self._failures[sym], "injected failure")
        price = self._prices.get(sym)
        if price is None or price <= 0:
            return QuoteResult.failed(sym, QuoteStatus.NOT_FOUND, f"no price for {sym}")
        prev = self._previous.get(sym, price)
        change = price - prev
        pct = (change / prev * 100.0) if prev else 0.0
        return QuoteResult.ok(Quote(symbol=sym, price=float(price), change=change, change_percent=pct))

    def get_series(self, symbol: str, timeframe: Timeframe) -> pd.Series:
        s = self._series.get(symbol.upper())
        if s is None:
            logger.debug("No series for %s (%s)", symbol, timeframe.value)
            return empty_series(symbol.upper())
        return s.copy()

    def get_news(self, symbol: str, limit: int = DEFAULT_NEWS_LIMIT) -> list[NewsItem]:
        return self._news.get(symbol.upper(), [])[:limit]
