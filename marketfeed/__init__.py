"""
Market-data collaborators for the paper-trading core.

Quote, series and news retrieval behind one QuoteSource interface; simulated
and Alpha Vantage implementations. Read-only: nothing here touches a portfolio.
"""

from marketfeed.alphavantage import AlphaVantageQuoteSource
from marketfeed.series import normalize_time_series, series_points
from marketfeed.source import QuoteSource, StaticQuoteSource
from marketfeed.types import NewsItem, Quote, QuoteResult, QuoteStatus, Sentiment, Timeframe

__all__ = [
    "AlphaVantageQuoteSource",
    "NewsItem",
    "Quote",
    "QuoteResult",
    "QuoteSource",
    "QuoteStatus",
    "Sentiment",
    "StaticQuoteSource",
    "Timeframe",
    "normalize_time_series",
    "series_points",
]
