"""
Trading session: wires quote source, transaction engine, valuation and persistence.

A user action becomes a transaction request → TransactionEngine → save →
valuation refresh with fresh prices. UI selections (symbol, timeframe, latest
quote) live in UiState, outside the accounting core.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field

import pandas as pd

from marketfeed.source import QuoteSource
from marketfeed.types import NewsItem, QuoteResult, Timeframe
from neurotrade.config import Settings
from neurotrade.engine import TransactionEngine, TransactionObserver
from neurotrade.persistence import JsonFileSlot, PersistenceAdapter, load_portfolio
from neurotrade.portfolio import normalize_symbol
from neurotrade.transaction import ExecutedTransaction, TransactionResult, TransactionType
from neurotrade.valuation import Valuation, valuate

logger = logging.getLogger(__name__)

_SHARES_RE = re.compile(r"[+-]?[0-9]+")


def parse_share_quantity(text: object) -> int | None:
    """Whole number of shares from user input (ASCII digits, optional sign), or None if it is not one."""
    if isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    if not isinstance(text, str):
        return None
    cleaned = text.strip()
    if _SHARES_RE.fullmatch(cleaned) is None:
        return None
    return int(cleaned)


@dataclass
class UiState:
    """
    Selections of the UI shell. quote is None until a result arrives for the
    selected symbol ("no data yet"); a failed fetch is a QuoteResult with a
    failure status. Only the most recent request may update the state.
    """

    selected_symbol: str
    timeframe: Timeframe = Timeframe.ONE_DAY
    quote: QuoteResult | None = None
    last_failure: QuoteResult | None = None
    _generation: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def begin_request(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def apply_quote(self, token: int, symbol: str, result: QuoteResult) -> bool:
        """Install result if token is still the latest request. Returns whether it was applied."""
        with self._lock:
            if token != self._generation:
                logger.debug("Dropping superseded quote for %s", symbol)
                return False
            if result.available:
                self.selected_symbol = symbol
                self.quote = result
            elif symbol == self.selected_symbol:
                self.quote = result
                self.last_failure = result
            else:
                self.last_failure = result
            return True

    def current_price(self) -> float | None:
        """Price of the selected symbol, if a live quote for it is held."""
        q = self.quote
        if q is None or q.symbol != self.selected_symbol:
            return None
        return q.price


class TradingSession:
    """Application-level handle. Owns UiState and the engine; reads prices through quote_source."""

    def __init__(
        self,
        engine: TransactionEngine,
        quote_source: QuoteSource,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.engine = engine
        self.quote_source = quote_source
        self.ui = UiState(selected_symbol=self.settings.default_symbol, timeframe=self.settings.default_timeframe)
        self.last_valuation: Valuation | None = None

    @classmethod
    def open(
        cls,
        quote_source: QuoteSource,
        settings: Settings | None = None,
        persistence: PersistenceAdapter | None = None,
    ) -> TradingSession:
        """Restore (or create) the portfolio from persistence and build the session around it."""
        settings = settings or Settings()
        if persistence is None:
            persistence = JsonFileSlot(settings.store_path, account_key=settings.account_key)
        portfolio = load_portfolio(persistence, settings.starting_cash)
        return cls(TransactionEngine(portfolio, persistence), quote_source, settings)

    def select_symbol(self, symbol: str) -> QuoteResult:
        """Fetch a quote and make symbol current. The previous selection stays if the fetch fails."""
        sym = normalize_symbol(symbol)
        token = self.ui.begin_request()
        result = self.quote_source.get_quote(sym)
        self.ui.apply_quote(token, sym, result)
        if not result.available:
            logger.warning("Quote for %s unavailable: %s", sym, result.message or result.status.value)
        return result

    def set_timeframe(self, timeframe: Timeframe | str) -> Timeframe:
        self.ui.timeframe = Timeframe.parse(timeframe)
        return self.ui.timeframe

    def trade(self, type: TransactionType, shares: object) -> TransactionResult:
        """
        Fill at the selected symbol's current quote. Trading is refused with
        PRICE_UNAVAILABLE while no live quote is held for the selection.
        """
        qty = parse_share_quantity(shares)
        result = self.engine.execute(
            type,
            self.ui.selected_symbol,
            qty if qty is not None else shares,
            self.ui.current_price(),
        )
        if result.ok:
            if result.persistence_error:
                logger.error("Trade kept in memory but not saved: %s", result.persistence_error)
            self.refresh_valuation()
        return result

    def buy(self, shares: object) -> TransactionResult:
        return self.trade(TransactionType.BUY, shares)

    def sell(self, shares: object) -> TransactionResult:
        return self.trade(TransactionType.SELL, shares)

    def refresh_valuation(self) -> Valuation:
        """Value a snapshot of the portfolio at freshly fetched prices (one request per holding)."""
        snapshot = self.engine.snapshot()
        quotes = self.quote_source.get_quotes(snapshot.holdings, max_workers=self.settings.quote_workers)
        valuation = valuate(snapshot, {sym: q.price for sym, q in quotes.items()})
        if valuation.partial:
            logger.warning("Partial valuation; no price for %s", ", ".join(valuation.unavailable))
        self.last_valuation = valuation
        return valuation

    def ticker(self, symbols: tuple[str, ...] | None = None) -> list[QuoteResult]:
        """Quotes for the watchlist, skipping symbols whose quote failed."""
        quotes = self.quote_source.get_quotes(symbols or self.settings.watchlist, max_workers=self.settings.quote_workers)
        return [q for q in quotes.values() if q.available]

    def news(self, symbol: str | None = None) -> list[NewsItem]:
        return self.quote_source.get_news(normalize_symbol(symbol or self.ui.selected_symbol))

    def chart(self, timeframe: Timeframe | str | None = None) -> pd.Series:
        tf = self.set_timeframe(timeframe) if timeframe is not None else self.ui.timeframe
        return self.quote_source.get_series(self.ui.selected_symbol, tf)

    def on_fill(self, observer: TransactionObserver) -> None:
        """Register a callback (ExecutedTransaction, Portfolio) run after every fill."""
        self.engine.add_observer(observer)

    def transactions(self) -> list[ExecutedTransaction]:
        return self.engine.get_transaction_log()
