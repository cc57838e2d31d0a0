"""
Live quotes example: the same session on Alpha Vantage data.

Requires ALPHAVANTAGE_API_KEY. The portfolio is stored in
NEUROTRADE_STORE_PATH (default neurotrade_store.json) under the
neurotradePortfolio key. Free API keys are heavily rate limited; failed
quotes show up as unavailable rather than as errors.
"""

from __future__ import annotations

import sys

from neurotrade import Settings, TradingSession, configure_logging
from neurotrade.report import format_change, format_money, print_portfolio_report
from marketfeed import AlphaVantageQuoteSource, series_points


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.api_key:
        print("Set ALPHAVANTAGE_API_KEY to run this example.")
        sys.exit(1)

    source = AlphaVantageQuoteSource(settings.api_key, timeout=settings.request_timeout)
    session = TradingSession.open(source, settings)

    print("--- Ticker ---")
    for q in session.ticker():
        print(f"  {q.symbol:<6} {format_money(q.quote.price)}  {q.quote.change_percent:+.2f}%")

    result = session.select_symbol(settings.default_symbol)
    print(f"\n--- {settings.default_symbol} ---")
    if result.available:
        print(f"  {format_money(result.quote.price)}  {format_change(result.quote.change, result.quote.change_percent)}")
    else:
        print(f"  unavailable: {result.status.value} ({result.message})")

    points = series_points(session.chart())
    print(f"  chart ({session.ui.timeframe.value}): {len(points)} points")

    print("\n--- News ---")
    for item in session.news():
        when = item.published_at.strftime("%Y-%m-%d %H:%M") if item.published_at else ""
        print(f"  [{item.sentiment.value:>8}] {item.title} {when}")

    print()
    print_portfolio_report(session.refresh_valuation())


if __name__ == "__main__":
    main()
