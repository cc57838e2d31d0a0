"""
Transaction types: request kind, rejection reasons, results and audit records.

Immutable. Business-rule failures are reported as REJECTED results, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from neurotrade.portfolio import Holding


class TransactionType(Enum):
    BUY = "buy"
    SELL = "sell"


class RejectionReason(Enum):
    """Recoverable business-rule failures. The portfolio is untouched on any of these."""

    INVALID_QUANTITY = "invalid_quantity"
    INVALID_SYMBOL = "invalid_symbol"
    PRICE_UNAVAILABLE = "price_unavailable"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_SHARES = "insufficient_shares"


class TransactionStatus(Enum):
    FILLED = "filled"
    CLOSED = "closed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TransactionResult:
    """
    Outcome of TransactionEngine.execute.

    FILLED carries the resulting holding; CLOSED means a sell emptied the
    position (holding is None). persisted is False when the fill succeeded
    but the save did not; the in-memory state is kept either way.
    """

    status: TransactionStatus
    type: TransactionType
    symbol: str
    shares: object
    fill_price: float | None = None
    holding: Holding | None = None
    reason: RejectionReason | None = None
    message: str | None = None
    persisted: bool = False
    persistence_error: str | None = None
    timestamp: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status is not TransactionStatus.REJECTED

    @property
    def closed(self) -> bool:
        return self.status is TransactionStatus.CLOSED


@dataclass(frozen=True)
class ExecutedTransaction:
    """Record of one fill, passed to observers and kept in the transaction log."""

    symbol: str
    type: TransactionType
    shares: int
    price: float
    cash_after: float
    timestamp: datetime


@dataclass
class RejectedTransactionLog:
    """One entry for a rejected request."""

    reason: RejectionReason
    timestamp: datetime
    type: TransactionType
    symbol: str
    shares: object
    price: float | None = None
