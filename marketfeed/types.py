"""
Market-data types: quotes, quote results, timeframes, news items.

Immutable. A QuoteResult says explicitly whether a price is available and,
if not, why; callers never test a price for truthiness.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

SENTIMENT_THRESHOLD = 0.35


class QuoteStatus(Enum):
    AVAILABLE = "available"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class Quote:
    """Latest price and daily change for one symbol."""

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0

    def __post_init__(self) -> None:
        if not self.price > 0:
            raise ValueError(f"quote price must be positive, got {self.price!r}")


@dataclass(frozen=True)
class QuoteResult:
    """Outcome of one quote request."""

    symbol: str
    status: QuoteStatus
    quote: Quote | None = None
    message: str | None = None

    @property
    def available(self) -> bool:
        return self.status is QuoteStatus.AVAILABLE and self.quote is not None

    @property
    def price(self) -> float | None:
        return self.quote.price if self.available else None

    @classmethod
    def ok(cls, quote: Quote) -> QuoteResult:
        return cls(symbol=quote.symbol, status=QuoteStatus.AVAILABLE, quote=quote)

    @classmethod
    def failed(cls, symbol: str, status: QuoteStatus, message: str | None = None) -> QuoteResult:
        return cls(symbol=symbol, status=status, message=message)


class Timeframe(Enum):
    """Chart range selector. series_function is the Alpha Vantage series backing it."""

    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    ONE_YEAR = "1y"

    @property
    def series_function(self) -> str:
        if self is Timeframe.ONE_DAY:
            return "TIME_SERIES_INTRADAY"
        if self in (Timeframe.THREE_MONTHS, Timeframe.ONE_YEAR):
            return "TIME_SERIES_WEEKLY"
        return "TIME_SERIES_DAILY"

    @classmethod
    def parse(cls, value: str | Timeframe) -> Timeframe:
        """Accept a Timeframe or its label; unknown labels fall back to one month (daily series)."""
        if isinstance(value, Timeframe):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ONE_MONTH


class Sentiment(Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class NewsItem:
    title: str
    summary: str
    url: str
    sentiment_score: float = 0.0
    published_at: datetime | None = None

    @property
    def sentiment(self) -> Sentiment:
        if self.sentiment_score > SENTIMENT_THRESHOLD:
            return Sentiment.POSITIVE
        if self.sentiment_score < -SENTIMENT_THRESHOLD:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL
