"""Financial context handed to the language model as grounding.

The text is derived from a snapshot only, with fixed section order and
fixed truncation limits so the prompt stays bounded no matter how many
accounts or transactions are linked.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from advisor_backend.models.financial import (
    ASSET_ACCOUNT_TYPES,
    LIABILITY_ACCOUNT_TYPES,
    Account,
    Snapshot,
    Transaction,
)
from advisor_backend.utils.formatting import format_money

NO_ACCOUNTS_CONTEXT = "The user has not connected any financial accounts yet."

SPENDING_WINDOW_DAYS = 30
MAX_SPENDING_CATEGORIES = 10
MAX_RECENT_TRANSACTIONS = 15


@dataclass(frozen=True)
class FinancialTotals:
    total_assets: float
    total_liabilities: float

    @property
    def net_worth(self) -> float:
        return self.total_assets - self.total_liabilities


def compute_totals(accounts: Iterable[Account]) -> FinancialTotals:
    """Sum current balances of asset and liability accounts; missing balances count as zero."""
    assets = 0.0
    liabilities = 0.0
    for account in accounts:
        current = account.balances.current or 0.0
        if account.type in ASSET_ACCOUNT_TYPES:
            assets += current
        elif account.type in LIABILITY_ACCOUNT_TYPES:
            liabilities += current
    return FinancialTotals(total_assets=assets, total_liabilities=liabilities)


def spending_by_category(
    transactions: Sequence[Transaction],
    today: date,
    window_days: int = SPENDING_WINDOW_DAYS,
    limit: int = MAX_SPENDING_CATEGORIES,
) -> List[Tuple[str, float]]:
    """Outflows of the trailing window grouped by category, largest first."""
    df = pd.DataFrame(
        [{"category": tx.category, "amount": tx.amount, "date": tx.date} for tx in transactions],
        columns=["category", "amount", "date"],
    )
    if df.empty:
        return []

    # A transaction dated exactly ``window_days`` ago falls outside the window.
    cutoff = today - timedelta(days=window_days)
    outflows = df[(df["amount"] > 0) & (df["date"] > cutoff)]
    if outflows.empty:
        return []

    totals = outflows.groupby("category")["amount"].sum().sort_values(ascending=False, kind="stable")
    return [(str(category), float(amount)) for category, amount in totals.head(limit).items()]


def _account_line(account: Account) -> str:
    kind = account.type.value if account.subtype is None else f"{account.type.value}/{account.subtype}"
    line = f"- {account.name} ({kind}): Balance {format_money(account.balances.current)}"
    if account.balances.limit:
        line += f", Limit: {format_money(account.balances.limit)}"
    return line


def _transaction_line(tx: Transaction) -> str:
    direction = "outflow" if tx.is_outflow else "inflow"
    return f"- {tx.date.isoformat()}: {tx.name} | {direction} {format_money(abs(tx.amount))} ({tx.category})"


def build_financial_context(snapshot: Snapshot, today: Optional[date] = None) -> str:
    """Summarize ``snapshot`` as prompt text.

    Args:
        snapshot: Snapshot to describe.
        today: Reference date for the spending window, defaults to today.

    Returns:
        str: The context, or ``NO_ACCOUNTS_CONTEXT`` when nothing is linked.
    """
    if not snapshot.accounts:
        return NO_ACCOUNTS_CONTEXT

    today = today or date.today()
    totals = compute_totals(snapshot.accounts)

    account_lines = "\n".join(_account_line(a) for a in snapshot.accounts)

    spending = spending_by_category(snapshot.transactions, today)
    spending_lines = "\n".join(f"- {category}: {format_money(amount)}" for category, amount in spending)

    recent = snapshot.transactions[:MAX_RECENT_TRANSACTIONS]
    recent_lines = "\n".join(_transaction_line(tx) for tx in recent)

    sections = [
        "ACCOUNTS:",
        account_lines,
        "",
        "FINANCIAL OVERVIEW:",
        f"Total Assets: {format_money(totals.total_assets)}",
        f"Total Liabilities: {format_money(totals.total_liabilities)}",
        f"Net Worth: {format_money(totals.net_worth)}",
        "",
        f"SPENDING BY CATEGORY (Last {SPENDING_WINDOW_DAYS} Days):",
        spending_lines or "No spending data available",
        "",
        "RECENT TRANSACTIONS (positive amounts are money out):",
        recent_lines or "No recent transactions",
    ]
    return "\n".join(sections)
