"""This file contains the financial data models shared by the aggregator and the AI services."""

from datetime import date as date_type, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AccountType(str, Enum):
    """Account types as reported by the linking provider.

    Usage:
        AccountType.from_provider("brokerage")  # AccountType.OTHER
    """
    DEPOSITORY = "depository"
    CREDIT = "credit"
    INVESTMENT = "investment"
    LOAN = "loan"
    OTHER = "other"

    @classmethod
    def from_provider(cls, value: Optional[str]) -> "AccountType":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.OTHER


ASSET_ACCOUNT_TYPES = frozenset({AccountType.DEPOSITORY, AccountType.INVESTMENT})
LIABILITY_ACCOUNT_TYPES = frozenset({AccountType.CREDIT, AccountType.LOAN})


class AccountBalances(BaseModel):
    """Balances of a single account at fetch time."""
    current: Optional[float] = None
    available: Optional[float] = None
    limit: Optional[float] = None
    iso_currency_code: Optional[str] = None


class Account(BaseModel):
    """Linked account with its current balances.

    Attributes:
        id: Provider account identifier, stable for the same connection
        name: Display name of the account
        official_name: Institution's official account name (optional)
        mask: Last digits of the account number (optional)
        type: Normalized account type
        subtype: Provider subtype such as checking or credit card (optional)
        balances: Current, available and limit balances
    """
    id: str
    name: str
    official_name: Optional[str] = None
    mask: Optional[str] = None
    type: AccountType = AccountType.OTHER
    subtype: Optional[str] = None
    balances: AccountBalances = Field(default_factory=AccountBalances)


class Transaction(BaseModel):
    """Transaction fetched from a linked account.

    The amount keeps the provider's sign convention: positive amounts are
    money leaving the account, negative amounts are money coming in.
    """
    id: str
    account_id: Optional[str] = None
    date: date_type
    name: str
    merchant_name: Optional[str] = None
    amount: float
    category: str = "Other"
    pending: bool = False

    @property
    def is_outflow(self) -> bool:
        return self.amount > 0


class Snapshot(BaseModel):
    """Merged view of all linked accounts produced by one aggregation pass."""
    accounts: List[Account] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    institution_names: List[str] = Field(default_factory=list)
    refreshed_at: Optional[datetime] = None
