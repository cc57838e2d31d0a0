"""
Alpha Vantage quote source: GLOBAL_QUOTE, TIME_SERIES_* and NEWS_SENTIMENT.

Every failure is mapped to a result instead of raised: transport and HTTP
errors → FETCH_FAILED, throttling notes → RATE_LIMITED, error messages and
empty quotes → NOT_FOUND. Nothing is retried here; retry policy belongs to
the caller.
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd
import requests

from marketfeed.series import empty_series, normalize_time_series
from marketfeed.source import DEFAULT_NEWS_LIMIT, QuoteSource
from marketfeed.types import NewsItem, Quote, QuoteResult, QuoteStatus, Timeframe

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"
INTRADAY_INTERVAL = "5min"
NEWS_TIME_FORMAT = "%Y%m%dT%H%M%S"

# Keys Alpha Vantage uses for throttling notices on an otherwise 200 response.
RATE_LIMIT_KEYS = ("Note", "Information")


class AlphaVantageError(Exception):
    """A request did not produce a usable payload. Carries the QuoteStatus it maps to."""

    def __init__(self, status: QuoteStatus, message: str) -> None:
        super().__init__(message)
        self.status = status


def _parse_float(value: Any) -> float:
    return float(str(value).strip().rstrip("%"))


class AlphaVantageQuoteSource(QuoteSource):
    """
    Live market data over HTTPS. Requires an API key (ALPHAVANTAGE_API_KEY).
    Pass a requests.Session to share connections or to stub the transport.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            logger.warning("AlphaVantageQuoteSource: no API key configured; requests will be refused upstream.")
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def _fetch(self, **params: str) -> dict[str, Any]:
        query = {**params, "apikey": self._api_key}
        logger.debug("Alpha Vantage request: %s", params)
        try:
            r = self._session.get(self._base_url, params=query, timeout=self._timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            raise AlphaVantageError(QuoteStatus.FETCH_FAILED, f"HTTP error: {e!s}") from e
        except ValueError as e:
            raise AlphaVantageError(QuoteStatus.FETCH_FAILED, f"invalid JSON: {e!s}") from e
        if not isinstance(data, dict):
            raise AlphaVantageError(QuoteStatus.FETCH_FAILED, "unexpected payload")
        if "Error Message" in data:
            raise AlphaVantageError(QuoteStatus.NOT_FOUND, str(data["Error Message"]))
        for key in RATE_LIMIT_KEYS:
            if key in data:
                raise AlphaVantageError(QuoteStatus.RATE_LIMITED, str(data[key]))
        return data

    def get_quote(self, symbol: str) -> QuoteResult:
        sym = symbol.strip().upper()
        if not sym:
            return QuoteResult.failed(sym, QuoteStatus.NOT_FOUND, "empty symbol")
        try:
            data = self._fetch(function="GLOBAL_QUOTE", symbol=sym)
        except AlphaVantageError as e:
            logger.warning("Quote for %s unavailable (%s): %s", sym, e.status.value, e)
            return QuoteResult.failed(sym, e.status, str(e))

        raw = data.get("Global Quote") or {}
        if not raw:
            return QuoteResult.failed(sym, QuoteStatus.NOT_FOUND, f"no quote for {sym}")
        try:
            quote = Quote(
                symbol=sym,
                price=_parse_float(raw["05. price"]),
                change=_parse_float(raw.get("09. change", 0)),
                change_percent=_parse_float(raw.get("10. change percent", 0)),
            )
        except (KeyError, ValueError) as e:
            logger.warning("Malformed quote for %s: %s", sym, e)
            return QuoteResult.failed(sym, QuoteStatus.FETCH_FAILED, f"malformed quote: {e!s}")
        return QuoteResult.ok(quote)

    def get_series(self, symbol: str, timeframe: Timeframe) -> pd.Series:
        sym = symbol.strip().upper()
        params = {"function": timeframe.series_function, "symbol": sym, "outputsize": "compact"}
        if timeframe.series_function == "TIME_SERIES_INTRADAY":
            params["interval"] = INTRADAY_INTERVAL
        try:
            data = self._fetch(**params)
        except AlphaVantageError as e:
            logger.warning("Series for %s (%s) unavailable: %s", sym, timeframe.value, e)
            return empty_series(sym)
        s = normalize_time_series(data, symbol=sym)
        if s.empty:
            logger.info("No historical data for %s (%s)", sym, timeframe.value)
        return s

    def get_news(self, symbol: str, limit: int = DEFAULT_NEWS_LIMIT) -> list[NewsItem]:
        sym = symbol.strip().upper()
        try:
            data = self._fetch(function="NEWS_SENTIMENT", tickers=sym)
        except AlphaVantageError as e:
            logger.warning("News for %s unavailable: %s", sym, e)
            return []
        feed = data.get("feed") or []
        return [_news_item(entry) for entry in feed[:limit] if isinstance(entry, dict)]


def _news_item(entry: dict[str, Any]) -> NewsItem:
    published = pd.to_datetime(entry.get("time_published"), format=NEWS_TIME_FORMAT, errors="coerce")
    try:
        score = float(entry.get("overall_sentiment_score", 0.0))
    except (TypeError, ValueError):
        score = 0.0
    return NewsItem(
        title=str(entry.get("title", "")),
        summary=str(entry.get("summary", "")),
        url=str(entry.get("url", "")),
        sentiment_score=score,
        published_at=None if pd.isna(published) else published.to_pydatetime(),
    )
