"""
Normalize raw time-series payloads into a close-price Series for charting.

Expects the Alpha Vantage layout: one "Time Series (...)" key mapping
timestamp labels to OHLCV dicts with a "4. close" field.
"""

from __future__ import annotations

from typing import Any

import pandas as pd

CLOSE_FIELD = "4. close"


def empty_series(symbol: str | None = None) -> pd.Series:
    s = pd.Series([], dtype=float, index=pd.DatetimeIndex([], name="datetime"), name="close")
    if symbol is not None:
        s.attrs["symbol"] = symbol
    return s


def find_series_key(payload: dict[str, Any]) -> str | None:
    """Return the first key naming a time series, e.g. 'Time Series (Daily)'."""
    return next((k for k in payload if "Time Series" in k), None)


def normalize_time_series(payload: dict[str, Any], *, symbol: str | None = None) -> pd.Series:
    """
    Build an ascending close-price Series from a time-series payload.

    Parameters
    ----------
    payload : dict
        Decoded JSON response.
    symbol : str, optional
        Stored in series.attrs['symbol'].

    Returns
    -------
    pd.Series
        Float closes with a DatetimeIndex named 'datetime', oldest first.
        Empty when the payload holds no series. Rows with an unparseable
        timestamp or close are dropped.
    """
    key = find_series_key(payload)
    if key is None or not isinstance(payload[key], dict) or not payload[key]:
        return empty_series(symbol)

    points = payload[key]
    labels = pd.to_datetime(list(points.keys()), errors="coerce")
    closes = pd.to_numeric(
        [bar.get(CLOSE_FIELD) if isinstance(bar, dict) else None for bar in points.values()],
        errors="coerce",
    )
    s = pd.Series(closes, index=labels, dtype=float, name="close")
    s = s[s.index.notna() & s.notna().to_numpy()].sort_index()
    s.index.name = "datetime"
    if symbol is not None:
        s.attrs["symbol"] = symbol
    return s


def series_points(series: pd.Series) -> list[tuple[str, float]]:
    """Ordered (label, close) pairs, labels as ISO strings."""
    return [(ts.isoformat() if hasattr(ts, "isoformat") else str(ts), float(v)) for ts, v in series.items()]
