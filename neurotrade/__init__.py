"""
neurotrade: paper-trading portfolio accounting on a live quote feed.

Portfolio store, transaction engine and valuation are pure in-memory logic;
quotes and persistence are collaborators behind narrow interfaces.
"""

__version__ = "0.1.0"

from neurotrade.portfolio import Holding, Portfolio, PortfolioInvariantError
from neurotrade.transaction import RejectionReason, TransactionResult, TransactionStatus, TransactionType
from neurotrade.persistence import InMemorySlot, JsonFileSlot, PersistenceAdapter, PersistenceError, load_portfolio
from neurotrade.engine import TransactionEngine
from neurotrade.valuation import HoldingValuation, Valuation, valuate
from neurotrade.config import Settings, configure_logging
from neurotrade.session import TradingSession, UiState

__all__ = [
    "Holding",
    "HoldingValuation",
    "InMemorySlot",
    "JsonFileSlot",
    "PersistenceAdapter",
    "PersistenceError",
    "Portfolio",
    "PortfolioInvariantError",
    "RejectionReason",
    "Settings",
    "TradingSession",
    "TransactionEngine",
    "TransactionResult",
    "TransactionStatus",
    "TransactionType",
    "UiState",
    "Valuation",
    "configure_logging",
    "load_portfolio",
    "valuate",
]
