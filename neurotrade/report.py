"""
Portfolio report: print a valuation summary and the holdings table.

Amounts are kept at full precision everywhere else; rounding to cents happens
only here, at display time.
"""

from __future__ import annotations

import pandas as pd

from neurotrade.valuation import Valuation, holdings_frame


def format_money(value: float) -> str:
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_change(amount: float, percent: float) -> str:
    """Signed amount and percent, e.g. '+$350.00 (3.50%)'."""
    sign = "+" if amount > 0 else ("-" if amount < 0 else "")
    return f"{sign}{format_money(abs(amount))} ({percent:.2f}%)"


def format_holdings(valuation: Valuation) -> list[str]:
    """One line per holding, e.g. 'MSFT   15 shares @ $106.67  $1,950.00'. Unpriced values show N/A."""
    df = holdings_frame(valuation)
    lines = []
    for row in df.itertuples(index=False):
        value = "N/A" if pd.isna(row.market_value) else format_money(row.market_value)
        lines.append(f"{row.symbol:<6} {row.shares} shares @ {format_money(row.average_cost)}  {value}")
    return lines


def print_portfolio_report(valuation: Valuation) -> Valuation:
    """
    Print the portfolio summary.

    Parameters
    ----------
    valuation : Valuation
        Output of valuate() or TradingSession.refresh_valuation().

    Returns
    -------
    Valuation
        The same valuation (e.g. for chaining).
    """
    print("--- Portfolio ---")
    print(f"Total value:     {format_money(valuation.total_value)}")
    print(f"P/L:             {format_change(valuation.profit_loss, valuation.profit_loss_percent)}")
    print(f"Cash:            {format_money(valuation.cash)}")
    print(f"Unrealized P/L:  {format_money(valuation.unrealized_pl)}")
    if valuation.partial:
        print(f"Partial:         no price for {', '.join(valuation.unavailable)}")
    lines = format_holdings(valuation)
    if not lines:
        print("No holdings yet.")
    for line in lines:
        print(f"  {line}")
    print("-----------------")
    return valuation
