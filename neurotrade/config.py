"""
Settings from environment variables, and logging setup for scripts.

Library modules only call logging.getLogger(__name__); configure_logging is
for entry points.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

from marketfeed.types import Timeframe
from neurotrade.persistence import DEFAULT_ACCOUNT_KEY

DEFAULT_STARTING_CASH = 10_000.0
DEFAULT_STORE_PATH = "neurotrade_store.json"
DEFAULT_SYMBOL = "MSFT"
DEFAULT_WATCHLIST = ("AAPL", "GOOGL", "MSFT", "AMZN", "TSLA", "META", "NVDA", "NFLX")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Settings:
    starting_cash: float = DEFAULT_STARTING_CASH
    store_path: str = DEFAULT_STORE_PATH
    account_key: str = DEFAULT_ACCOUNT_KEY
    default_symbol: str = DEFAULT_SYMBOL
    default_timeframe: Timeframe = Timeframe.ONE_DAY
    watchlist: tuple[str, ...] = DEFAULT_WATCHLIST
    quote_workers: int = 4
    request_timeout: float = 10.0
    api_key: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Read NEUROTRADE_* variables and ALPHAVANTAGE_API_KEY. Unset,
        unparseable, non-finite or out-of-range values keep their defaults.
        """
        env = os.environ if environ is None else environ
        watchlist = tuple(
            s.strip().upper() for s in env.get("NEUROTRADE_WATCHLIST", "").split(",") if s.strip()
        )
        return cls(
            starting_cash=_float(env.get("NEUROTRADE_STARTING_CASH"), DEFAULT_STARTING_CASH),
            store_path=env.get("NEUROTRADE_STORE_PATH") or DEFAULT_STORE_PATH,
            account_key=env.get("NEUROTRADE_ACCOUNT_KEY") or DEFAULT_ACCOUNT_KEY,
            default_symbol=(env.get("NEUROTRADE_DEFAULT_SYMBOL") or DEFAULT_SYMBOL).strip().upper(),
            default_timeframe=Timeframe.parse(env.get("NEUROTRADE_DEFAULT_TIMEFRAME") or Timeframe.ONE_DAY),
            watchlist=watchlist or DEFAULT_WATCHLIST,
            quote_workers=int(_float(env.get("NEUROTRADE_QUOTE_WORKERS"), 4, minimum=1)),
            request_timeout=_float(env.get("NEUROTRADE_REQUEST_TIMEOUT"), 10.0, minimum=0.1),
            api_key=env.get("ALPHAVANTAGE_API_KEY", ""),
            log_level=(env.get("NEUROTRADE_LOG_LEVEL") or "INFO").upper(),
        )


def _float(raw: str | None, default: float, *, minimum: float = 0.0) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value) or value < minimum:
        logging.getLogger(__name__).warning("Ignoring invalid setting %r; using %s", raw, default)
        return default
    return value


def configure_logging(level: str | int = "INFO") -> None:
    """Console logging with timestamps. Safe to call more than once."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
