"""
Persistence adapter: whole-portfolio blob in a single key-value slot.

PersistenceAdapter ABC: save, load. InMemorySlot for tests and embedding;
JsonFileSlot keeps a JSON object of key -> blob on disk, written atomically.
"""

from __future__ import annotations

import errno
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from neurotrade.portfolio import Holding, Portfolio, PortfolioInvariantError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_ACCOUNT_KEY = "neurotradePortfolio"


class PersistenceError(Exception):
    """Save failed, or a stored blob could not be read back."""


def portfolio_to_dict(portfolio: Portfolio) -> dict[str, Any]:
    """Serialize to the stored blob layout (camelCase keys, as the browser app wrote them)."""
    return {
        "version": SCHEMA_VERSION,
        "cash": portfolio.cash,
        "initialValue": portfolio.initial_value,
        "holdings": {
            sym: {"shares": h.shares, "averageCost": h.average_cost}
            for sym, h in sorted(portfolio.holdings.items())
        },
    }


def portfolio_from_dict(data: Any) -> Portfolio:
    """
    Rebuild a Portfolio from a stored blob. Blobs without a version are
    treated as version 1. Raises PersistenceError on anything malformed.
    """
    if not isinstance(data, dict):
        raise PersistenceError("portfolio blob must be a JSON object")
    version = data.get("version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise PersistenceError(f"unsupported portfolio schema version {version!r}")
    try:
        cash = float(data["cash"])
        initial_value = float(data.get("initialValue", cash))
        raw_holdings = data.get("holdings") or {}
        if not isinstance(raw_holdings, dict):
            raise PersistenceError("holdings must be a JSON object")
        holdings: dict[str, Holding] = {}
        for sym, raw in raw_holdings.items():
            shares = raw["shares"]
            if isinstance(shares, float) and shares.is_integer():
                shares = int(shares)
            holding = Holding(symbol=str(sym).strip().upper(), shares=shares, average_cost=float(raw["averageCost"]))
            holdings[holding.symbol] = holding
        return Portfolio(cash=cash, holdings=holdings, initial_value=initial_value)
    except PersistenceError:
        raise
    except (KeyError, TypeError, ValueError, PortfolioInvariantError) as e:
        raise PersistenceError(f"corrupt portfolio blob: {e!s}") from e


class PersistenceAdapter(ABC):
    """Durable slot for the portfolio, keyed by a fixed account identifier."""

    @abstractmethod
    def save(self, portfolio: Portfolio) -> None:
        """Write the full portfolio. Raises PersistenceError on failure."""
        ...

    @abstractmethod
    def load(self) -> Portfolio | None:
        """Return the stored portfolio, None if the slot is empty. Raises PersistenceError if corrupt."""
        ...


class InMemorySlot(PersistenceAdapter):
    """Keeps the serialized blob in memory. Same round trip as the file slot."""

    def __init__(self, blob: str | None = None) -> None:
        self.blob = blob
        self.saves = 0

    def save(self, portfolio: Portfolio) -> None:
        self.blob = json.dumps(portfolio_to_dict(portfolio))
        self.saves += 1

    def load(self) -> Portfolio | None:
        if self.blob is None:
            return None
        try:
            data = json.loads(self.blob)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt portfolio blob: {e!s}") from e
        return portfolio_from_dict(data)


class JsonFileSlot(PersistenceAdapter):
    """
    JSON file holding {account_key: blob}. Other keys in the file are preserved.
    Writes go through a temporary file and os.replace.
    """

    def __init__(self, path: str | Path, account_key: str = DEFAULT_ACCOUNT_KEY) -> None:
        self.path = Path(path)
        self.account_key = account_key

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"cannot read {self.path}: {e!s}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not hold a JSON object")
        return data

    def save(self, portfolio: Portfolio) -> None:
        try:
            data = self._read_all()
        except PersistenceError:
            logger.warning("Overwriting unreadable store %s", self.path)
            data = {}
        data[self.account_key] = portfolio_to_dict(portfolio)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=True, indent=2, sort_keys=True)
                f.write("\n")
            try:
                os.replace(tmp_path, self.path)
            except OSError as exc:
                # Bind-mounted targets cannot always be replaced atomically.
                if exc.errno not in {errno.EBUSY, errno.EXDEV, errno.EPERM}:
                    raise
                self.path.write_text(tmp_path.read_text(encoding="utf-8"), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"cannot write {self.path}: {e!s}") from e
        finally:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_path)
        logger.debug("Saved portfolio to %s[%s]", self.path, self.account_key)

    def load(self) -> Portfolio | None:
        data = self._read_all()
        if self.account_key not in data:
            return None
        blob = data[self.account_key]
        if isinstance(blob, str):
            # The browser app stored the blob as a JSON string.
            try:
                blob = json.loads(blob)
            except json.JSONDecodeError as e:
                raise PersistenceError(f"corrupt portfolio blob: {e!s}") from e
        return portfolio_from_dict(blob)


def load_portfolio(adapter: PersistenceAdapter, starting_cash: float) -> Portfolio:
    """Restore the stored portfolio, or the default one if the slot is empty or corrupt."""
    try:
        portfolio = adapter.load()
    except PersistenceError as e:
        logger.warning("Stored portfolio unusable, starting fresh: %s", e)
        portfolio = None
    if portfolio is None:
        logger.info("No stored portfolio; starting with %.2f cash", starting_cash)
        return Portfolio.create(starting_cash)
    return portfolio
