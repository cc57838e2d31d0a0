"""
Tests for TradingSession and UiState: quote selection, trading at the live quote,
valuation refresh, ticker/news/chart delegation.
"""

import pandas as pd
import pytest

from marketfeed import NewsItem, QuoteResult, QuoteStatus, StaticQuoteSource, Timeframe
from neurotrade import InMemorySlot, RejectionReason, Settings, TradingSession, TransactionStatus, UiState
from neurotrade.session import parse_share_quantity


def _session(prices=None, **kwargs) -> tuple[TradingSession, StaticQuoteSource, InMemorySlot]:
    source = StaticQuoteSource(prices if prices is not None else {"MSFT": 100.0, "AAPL": 200.0}, **kwargs)
    slot = InMemorySlot()
    session = TradingSession.open(source, Settings(watchlist=("MSFT", "AAPL", "NOPE")), persistence=slot)
    return session, source, slot


# --- parse_share_quantity ---


@pytest.mark.parametrize("text,expected", [("10", 10), (" 3 ", 3), (7, 7), ("-2", -2), ("1.5", None), ("", None), (None, None), (True, None), ("1_000", None), ("\u0661\u0662", None), ("+4", 4)])
def test_parse_share_quantity(text, expected):
    assert parse_share_quantity(text) == expected


# --- UiState ---


def test_ui_state_no_data_yet():
    ui = UiState(selected_symbol="MSFT")
    assert ui.quote is None
    assert ui.current_price() is None


def test_ui_state_last_result_wins():
    ui = UiState(selected_symbol="MSFT")
    old = ui.begin_request()
    new = ui.begin_request()
    assert ui.apply_quote(new, "AAPL", QuoteResult.failed("AAPL", QuoteStatus.NOT_FOUND)) is True
    assert ui.apply_quote(old, "MSFT", QuoteResult.failed("MSFT", QuoteStatus.NOT_FOUND)) is False
    assert ui.last_failure.symbol == "AAPL"


# --- Session ---


def test_open_starts_with_default_portfolio():
    session, _, _ = _session()
    assert session.engine.portfolio.cash == 10_000.0
    assert session.ui.selected_symbol == "MSFT"
    assert session.ui.timeframe == Timeframe.ONE_DAY


def test_open_restores_saved_portfolio():
    session, source, slot = _session()
    session.select_symbol("MSFT")
    session.buy(3)
    again = TradingSession.open(source, Settings(), persistence=slot)
    assert again.engine.portfolio.shares("MSFT") == 3


def test_trade_without_quote_is_price_unavailable():
    session, _, slot = _session()
    r = session.buy(1)
    assert r.reason == RejectionReason.PRICE_UNAVAILABLE
    assert slot.saves == 0


def test_msft_scenario_through_session():
    session, source, _ = _session()
    session.select_symbol("msft")
    assert session.buy("10").ok
    source.set_price("MSFT", 120.0)
    session.select_symbol("MSFT")
    session.buy(5)
    assert session.engine.portfolio.get_holding("MSFT").average_cost == pytest.approx(106.666666667)
    assert session.engine.portfolio.cash == 8_400.0

    source.set_price("MSFT", 130.0)
    session.select_symbol("MSFT")
    r = session.sell(15)
    assert r.status == TransactionStatus.CLOSED
    v = session.last_valuation
    assert v.total_value == 10_350.0
    assert v.profit_loss == 350.0
    assert v.profit_loss_percent == pytest.approx(3.5)


def test_failed_selection_keeps_previous_symbol_tradeable():
    session, _, _ = _session()
    session.select_symbol("MSFT")
    r = session.select_symbol("ZZZZ")
    assert r.status == QuoteStatus.NOT_FOUND
    assert session.ui.selected_symbol == "MSFT"
    assert session.ui.last_failure.symbol == "ZZZZ"
    assert session.buy(1).ok


def test_failed_refresh_of_selected_symbol_blocks_trading():
    session, source, _ = _session()
    session.select_symbol("MSFT")
    source.fail("MSFT")
    session.select_symbol("MSFT")
    assert session.buy(1).reason == RejectionReason.PRICE_UNAVAILABLE


def test_invalid_share_text_rejected():
    session, _, _ = _session()
    session.select_symbol("MSFT")
    assert session.buy("abc").reason == RejectionReason.INVALID_QUANTITY
    assert session.sell("0").reason == RejectionReason.INVALID_QUANTITY


def test_refresh_valuation_partial_when_price_missing():
    session, source, _ = _session()
    session.select_symbol("MSFT")
    session.buy(10)
    session.select_symbol("AAPL")
    session.buy(5)
    source.fail("AAPL", QuoteStatus.RATE_LIMITED)
    v = session.refresh_valuation()
    assert v.partial
    assert v.unavailable == ("AAPL",)
    assert v.total_value == 10_000.0 - 1_000.0 - 1_000.0 + 1_000.0


def test_on_fill_observer():
    session, _, _ = _session()
    fills = []
    session.on_fill(lambda trade, portfolio: fills.append(trade.symbol))
    session.select_symbol("AAPL")
    session.buy(1)
    assert fills == ["AAPL"]
    assert [t.symbol for t in session.transactions()] == ["AAPL"]


def test_ticker_skips_unavailable():
    session, _, _ = _session()
    assert [q.symbol for q in session.ticker()] == ["MSFT", "AAPL"]


def test_news_and_chart_use_selection():
    s = pd.Series([5.0], index=pd.to_datetime(["2024-01-02"]))
    item = NewsItem(title="MSFT up", summary="", url="u", sentiment_score=0.9)
    session, _, _ = _session(series={"MSFT": s}, news={"MSFT": [item]})
    assert session.news() == [item]
    assert list(session.chart("1w")) == [5.0]
    assert session.ui.timeframe == Timeframe.ONE_WEEK
    assert session.news("aapl") == []
