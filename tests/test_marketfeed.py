"""
Tests for marketfeed: types, StaticQuoteSource, series normalization, Alpha Vantage mapping.
"""

from datetime import datetime

import pandas as pd
import pytest
import requests

from marketfeed import (
    AlphaVantageQuoteSource,
    NewsItem,
    Quote,
    QuoteResult,
    QuoteStatus,
    Sentiment,
    StaticQuoteSource,
    Timeframe,
    normalize_time_series,
    series_points,
)


class FakeResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records requests and replays canned payloads keyed by Alpha Vantage function."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(params)
        resp = self.responses[params["function"]]
        if isinstance(resp, Exception):
            raise resp
        return resp


def _source(responses) -> tuple[AlphaVantageQuoteSource, FakeSession]:
    session = FakeSession(responses)
    return AlphaVantageQuoteSource("demo", session=session), session


# --- Types ---


def test_quote_rejects_non_positive_price():
    with pytest.raises(ValueError):
        Quote(symbol="X", price=0.0)


def test_quote_result_price_only_when_available():
    ok = QuoteResult.ok(Quote(symbol="MSFT", price=10.0))
    assert ok.available
    assert ok.price == 10.0
    failed = QuoteResult.failed("MSFT", QuoteStatus.RATE_LIMITED, "slow down")
    assert not failed.available
    assert failed.price is None


@pytest.mark.parametrize(
    "label,function",
    [
        ("1d", "TIME_SERIES_INTRADAY"),
        ("1w", "TIME_SERIES_DAILY"),
        ("1m", "TIME_SERIES_DAILY"),
        ("3m", "TIME_SERIES_WEEKLY"),
        ("1y", "TIME_SERIES_WEEKLY"),
        ("bogus", "TIME_SERIES_DAILY"),
    ],
)
def test_timeframe_series_function(label, function):
    assert Timeframe.parse(label).series_function == function


@pytest.mark.parametrize("score,expected", [(0.5, Sentiment.POSITIVE), (0.35, Sentiment.NEUTRAL), (-0.36, Sentiment.NEGATIVE)])
def test_news_sentiment_buckets(score, expected):
    assert NewsItem(title="t", summary="s", url="u", sentiment_score=score).sentiment == expected


# --- StaticQuoteSource ---


def test_static_quote_and_change():
    src = StaticQuoteSource({"msft": 100.0})
    q = src.get_quote("MSFT")
    assert q.available
    assert q.quote.change == 0.0
    src.set_price("MSFT", 110.0)
    q = src.get_quote("msft")
    assert q.price == 110.0
    assert q.quote.change == 10.0
    assert q.quote.change_percent == pytest.approx(10.0)


def test_static_unknown_and_injected_failure():
    src = StaticQuoteSource({"MSFT": 100.0})
    assert src.get_quote("ZZZZ").status == QuoteStatus.NOT_FOUND
    src.fail("MSFT", QuoteStatus.RATE_LIMITED)
    assert src.get_quote("MSFT").status == QuoteStatus.RATE_LIMITED
    src.recover("MSFT")
    assert src.get_quote("MSFT").available


def test_get_quotes_dedupes_and_keeps_order():
    src = StaticQuoteSource({"A": 1.0, "B": 2.0})
    quotes = src.get_quotes(["B", "A", "B", "C"], max_workers=3)
    assert list(quotes) == ["B", "A", "C"]
    assert quotes["A"].price == 1.0
    assert not quotes["C"].available
    assert sorted(src.requests) == ["A", "B", "C"]
    assert src.get_quotes([]) == {}


def test_static_series_and_news():
    s = pd.Series([1.0, 2.0], index=pd.to_datetime(["2024-01-01", "2024-01-02"]))
    item = NewsItem(title="t", summary="s", url="u")
    src = StaticQuoteSource(series={"MSFT": s}, news={"MSFT": [item] * 12})
    assert list(src.get_series("MSFT", Timeframe.ONE_MONTH)) == [1.0, 2.0]
    assert src.get_series("AAPL", Timeframe.ONE_DAY).empty
    assert len(src.get_news("MSFT")) == 10
    assert src.get_news("AAPL") == []


# --- Series normalization ---


def test_normalize_time_series_sorts_ascending():
    payload = {
        "Meta Data": {},
        "Time Series (Daily)": {
            "2024-01-03": {"4. close": "102.5"},
            "2024-01-02": {"4. close": "101.0"},
            "2024-01-01": {"4. close": "bad"},
        },
    }
    s = normalize_time_series(payload, symbol="MSFT")
    assert list(s) == [101.0, 102.5]
    assert s.index.is_monotonic_increasing
    assert s.attrs["symbol"] == "MSFT"
    assert series_points(s)[0] == (datetime(2024, 1, 2).isoformat(), 101.0)


def test_normalize_time_series_without_series_key():
    assert normalize_time_series({"Meta Data": {}}).empty


# --- AlphaVantageQuoteSource ---


def test_alpha_vantage_quote_parsed():
    src, session = _source(
        {
            "GLOBAL_QUOTE": FakeResponse(
                {"Global Quote": {"05. price": "130.00", "09. change": "-1.50", "10. change percent": "-1.1407%"}}
            )
        }
    )
    r = src.get_quote(" msft ")
    assert r.available
    assert r.quote == Quote(symbol="MSFT", price=130.0, change=-1.5, change_percent=-1.1407)
    assert session.calls[0]["symbol"] == "MSFT"
    assert session.calls[0]["apikey"] == "demo"


@pytest.mark.parametrize(
    "response,status",
    [
        (FakeResponse({"Global Quote": {}}), QuoteStatus.NOT_FOUND),
        (FakeResponse({"Error Message": "Invalid API call"}), QuoteStatus.NOT_FOUND),
        (FakeResponse({"Note": "Thank you for using Alpha Vantage!"}), QuoteStatus.RATE_LIMITED),
        (FakeResponse({"Information": "rate limit"}), QuoteStatus.RATE_LIMITED),
        (FakeResponse({}, status_code=503), QuoteStatus.FETCH_FAILED),
        (FakeResponse(ValueError("no json")), QuoteStatus.FETCH_FAILED),
        (requests.ConnectionError("down"), QuoteStatus.FETCH_FAILED),
        (FakeResponse({"Global Quote": {"05. price": "n/a"}}), QuoteStatus.FETCH_FAILED),
    ],
)
def test_alpha_vantage_quote_failures(response, status):
    src, _ = _source({"GLOBAL_QUOTE": response})
    r = src.get_quote("MSFT")
    assert r.status == status
    assert r.price is None


def test_alpha_vantage_intraday_series_requests_interval():
    payload = {"Time Series (5min)": {"2024-01-02 16:00:00": {"4. close": "10"}, "2024-01-02 15:55:00": {"4. close": "9"}}}
    src, session = _source({"TIME_SERIES_INTRADAY": FakeResponse(payload)})
    s = src.get_series("MSFT", Timeframe.ONE_DAY)
    assert list(s) == [9.0, 10.0]
    assert session.calls[0]["interval"] == "5min"


def test_alpha_vantage_series_failure_is_empty():
    src, _ = _source({"TIME_SERIES_WEEKLY": FakeResponse({"Note": "limit"})})
    assert src.get_series("MSFT", Timeframe.ONE_YEAR).empty


def test_alpha_vantage_news():
    feed = [
        {
            "title": "Up",
            "summary": "good",
            "url": "http://a",
            "overall_sentiment_score": 0.5,
            "time_published": "20240115T103000",
        },
        {"title": "Odd", "summary": "", "url": "http://b", "overall_sentiment_score": "x", "time_published": "garbage"},
    ]
    src, session = _source({"NEWS_SENTIMENT": FakeResponse({"feed": feed})})
    items = src.get_news("msft", limit=5)
    assert session.calls[0]["tickers"] == "MSFT"
    assert items[0].sentiment == Sentiment.POSITIVE
    assert items[0].published_at == datetime(2024, 1, 15, 10, 30)
    assert items[1].sentiment_score == 0.0
    assert items[1].published_at is None


def test_alpha_vantage_news_failure_is_empty():
    src, _ = _source({"NEWS_SENTIMENT": FakeResponse({}, status_code=500)})
    assert src.get_news("MSFT") == []
