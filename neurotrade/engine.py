"""
Transaction engine: the single entry point that changes the portfolio.

Flow per request: validate → mutate store → persist → observers.
Validation short-circuits on the first failure and leaves the portfolio untouched.
A failed save is reported on the result; the fill itself stands.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from neurotrade.persistence import PersistenceAdapter, PersistenceError
from neurotrade.portfolio import Portfolio, normalize_symbol
from neurotrade.transaction import (
    ExecutedTransaction,
    RejectedTransactionLog,
    RejectionReason,
    TransactionResult,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)


class TransactionObserver(Protocol):
    """Post-fill callback. Receives the fill and a snapshot of the portfolio after it."""

    def __call__(self, transaction: ExecutedTransaction, portfolio: Portfolio) -> None:
        ...


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_available_price(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


class TransactionEngine:
    """
    Owns the Portfolio. Validates and applies buy/sell requests at the given
    price, then asks the persistence adapter to save.

    execute() runs under a re-entrant lock; snapshot() takes the same lock, so
    readers never see a half-applied transaction. Identical requests submitted
    twice are two independent fills.
    """

    def __init__(
        self,
        portfolio: Portfolio,
        persistence: PersistenceAdapter | None = None,
        *,
        observers: Sequence[TransactionObserver] = (),
    ) -> None:
        self._portfolio = portfolio
        self.persistence = persistence
        self.observers: list[TransactionObserver] = list(observers)
        self._lock = threading.RLock()
        self._rejected_log: list[RejectedTransactionLog] = []
        self._transaction_log: list[ExecutedTransaction] = []

    @property
    def portfolio(self) -> Portfolio:
        """The live portfolio. Read through snapshot() when other threads may trade."""
        return self._portfolio

    def snapshot(self) -> Portfolio:
        with self._lock:
            return self._portfolio.snapshot()

    def add_observer(self, observer: TransactionObserver) -> None:
        self.observers.append(observer)

    def get_rejected_log(self) -> list[RejectedTransactionLog]:
        return list(self._rejected_log)

    def get_transaction_log(self) -> list[ExecutedTransaction]:
        return list(self._transaction_log)

    def _validate(
        self,
        type: TransactionType,
        symbol: str,
        requested_shares: object,
        current_price: object,
    ) -> RejectionReason | None:
        if not _is_positive_int(requested_shares):
            return RejectionReason.INVALID_QUANTITY
        if not symbol:
            return RejectionReason.INVALID_SYMBOL
        if not _is_available_price(current_price):
            return RejectionReason.PRICE_UNAVAILABLE
        if type is TransactionType.BUY:
            if requested_shares * current_price > self._portfolio.cash:
                return RejectionReason.INSUFFICIENT_FUNDS
        elif self._portfolio.shares(symbol) < requested_shares:
            return RejectionReason.INSUFFICIENT_SHARES
        return None

    def _reject(
        self,
        reason: RejectionReason,
        type: TransactionType,
        symbol: str,
        requested_shares: object,
        current_price: float | None,
        ts: datetime,
    ) -> TransactionResult:
        self._rejected_log.append(
            RejectedTransactionLog(
                reason=reason,
                timestamp=ts,
                type=type,
                symbol=symbol,
                shares=requested_shares,
                price=current_price,
            )
        )
        logger.info(
            "Transaction rejected: %s %s x%s @ %s: %s",
            type.value,
            symbol or "<empty>",
            requested_shares,
            current_price,
            reason.value,
        )
        return TransactionResult(
            status=TransactionStatus.REJECTED,
            type=type,
            symbol=symbol,
            shares=requested_shares,
            fill_price=current_price,
            reason=reason,
            message=_REJECTION_MESSAGES[reason],
            timestamp=ts,
        )

    def save(self) -> str | None:
        """Persist the current portfolio. Returns the error message, or None on success."""
        if self.persistence is None:
            return None
        with self._lock:
            try:
                self.persistence.save(self._portfolio)
            except PersistenceError as e:
                logger.error("Portfolio save failed: %s", e)
                return str(e)
        return None

    def execute(
        self,
        type: TransactionType,
        symbol: str,
        requested_shares: object,
        current_price: float | None,
    ) -> TransactionResult:
        """
        Validate and apply one transaction at current_price.

        Rejections (invalid quantity or symbol, unavailable price, insufficient
        funds or shares) return a REJECTED result and change nothing.
        """
        ts = datetime.now()
        sym = normalize_symbol(symbol)
        with self._lock:
            reason = self._validate(type, sym, requested_shares, current_price)
            if reason is not None:
                return self._reject(reason, type, sym, requested_shares, current_price, ts)

            price = float(current_price)
            if type is TransactionType.BUY:
                holding = self._portfolio.apply_buy(sym, requested_shares, price)
            else:
                holding = self._portfolio.apply_sell(sym, requested_shares, price)
            logger.info(
                "Filled %s %s x%d @ %.4f; cash now %.2f",
                type.value,
                sym,
                requested_shares,
                price,
                self._portfolio.cash,
            )

            error = self.save()
            trade = ExecutedTransaction(
                symbol=sym,
                type=type,
                shares=requested_shares,
                price=price,
                cash_after=self._portfolio.cash,
                timestamp=ts,
            )
            self._transaction_log.append(trade)
            portfolio_after = self._portfolio.snapshot()

        for obs in self.observers:
            try:
                obs(trade, portfolio_after)
            except Exception:
                logger.exception("Observer failed after %s %s x%d", type.value, sym, requested_shares)

        return TransactionResult(
            status=TransactionStatus.FILLED if holding is not None else TransactionStatus.CLOSED,
            type=type,
            symbol=sym,
            shares=requested_shares,
            fill_price=price,
            holding=holding,
            persisted=self.persistence is not None and error is None,
            persistence_error=error,
            timestamp=ts,
        )

    def buy(self, symbol: str, requested_shares: object, current_price: float | None) -> TransactionResult:
        return self.execute(TransactionType.BUY, symbol, requested_shares, current_price)

    def sell(self, symbol: str, requested_shares: object, current_price: float | None) -> TransactionResult:
        return self.execute(TransactionType.SELL, symbol, requested_shares, current_price)


_REJECTION_MESSAGES = {
    RejectionReason.INVALID_QUANTITY: "Please enter a valid number of shares.",
    RejectionReason.INVALID_SYMBOL: "No stock symbol selected.",
    RejectionReason.PRICE_UNAVAILABLE: "Stock price data is not available.",
    RejectionReason.INSUFFICIENT_FUNDS: "Insufficient funds.",
    RejectionReason.INSUFFICIENT_SHARES: "You do not have enough shares to sell.",
}
