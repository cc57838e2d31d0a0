"""
Paper trading example: trade against simulated quotes with an in-memory slot.

Shows: StaticQuoteSource, TradingSession, fill observer, rejected requests,
valuation report. Same session API as the live example; only the quote
source and persistence change.
"""

from __future__ import annotations

from neurotrade import InMemorySlot, Portfolio, Settings, TradingSession, configure_logging
from neurotrade.report import print_portfolio_report
from neurotrade.transaction import ExecutedTransaction
from marketfeed import StaticQuoteSource


def print_fill_observer(trade: ExecutedTransaction, portfolio: Portfolio) -> None:
    """Observer: post-fill log (e.g. journal)."""
    print(f"  [Observer] FILL {trade.type.value} {trade.shares} {trade.symbol} @ {trade.price:.2f}, cash {trade.cash_after:.2f}")


def main() -> None:
    configure_logging("WARNING")
    quotes = StaticQuoteSource({"MSFT": 100.0, "AAPL": 190.0})
    session = TradingSession.open(quotes, Settings(), persistence=InMemorySlot())
    session.on_fill(print_fill_observer)

    print("--- Buy 10 MSFT @ 100, then 5 more @ 120 ---")
    session.select_symbol("MSFT")
    session.buy("10")
    quotes.set_price("MSFT", 120.0)
    session.select_symbol("MSFT")
    session.buy(5)
    print_portfolio_report(session.refresh_valuation())

    print("\n--- Rejections leave the portfolio untouched ---")
    for result in (session.buy(1_000), session.sell("abc")):
        print(f"  {result.type.value}: {result.reason.value} ({result.message})")

    print("\n--- Sell everything @ 130 ---")
    quotes.set_price("MSFT", 130.0)
    session.select_symbol("MSFT")
    result = session.sell(15)
    print(f"  status={result.status.value}, closed={result.closed}")
    print_portfolio_report(session.last_valuation)


if __name__ == "__main__":
    main()
