import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest

# ===========================================================================
# Pytest Bootstrap & Environment Hardening
# ===========================================================================

# Keep the app's credential file out of the repository during tests.
# Must happen before advisor_backend.config is imported.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="advisor-tests-"))
os.environ["CREDENTIALS_FILE"] = str(_TMP_DIR / "session-data.json")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("TZ", "UTC")

from advisor_backend.models.financial import (  # noqa: E402
    Account,
    AccountBalances,
    AccountType,
    Snapshot,
    Transaction,
)
from advisor_backend.services.aggregation.aggregator import SnapshotState  # noqa: E402


def make_account(
    account_id: str,
    account_type: AccountType = AccountType.DEPOSITORY,
    current: Optional[float] = 100.0,
    limit: Optional[float] = None,
    name: Optional[str] = None,
    subtype: Optional[str] = "checking",
) -> Account:
    return Account(
        id=account_id,
        name=name or f"Account {account_id}",
        type=account_type,
        subtype=subtype,
        balances=AccountBalances(current=current, limit=limit),
    )


def make_transaction(
    tx_id: str,
    tx_date: Union[date, str],
    amount: float,
    category: str = "FOOD_AND_DRINK",
    name: Optional[str] = None,
) -> Transaction:
    return Transaction(
        id=tx_id,
        date=tx_date,
        name=name or f"Merchant {tx_id}",
        amount=amount,
        category=category,
    )


class FakeLinkingProvider:
    """Linking provider driven by a per-credential script.

    Each credential maps to a dict with optional ``accounts``,
    ``transactions``, ``institution`` entries; any entry may be an exception
    instance, which is raised when that step is requested.
    """

    def __init__(self, script: Optional[Dict[str, Dict[str, Any]]] = None):
        self.script = script or {}
        self.transaction_windows: List[tuple] = []
        self.exchanged: List[str] = []
        self.link_tokens_created = 0
        self.exchange_error: Optional[Exception] = None

    def _step(self, credential: str, key: str, default: Any) -> Any:
        value = self.script.get(credential, {}).get(key, default)
        if isinstance(value, Exception):
            raise value
        return value

    async def create_link_token(self, client_user_id: str) -> str:
        self.link_tokens_created += 1
        return "link-sandbox-123"

    async def exchange_public_token(self, public_token: str) -> str:
        if self.exchange_error is not None:
            raise self.exchange_error
        self.exchanged.append(public_token)
        return f"access-{public_token}"

    async def get_accounts(self, access_token: str) -> List[Account]:
        return self._step(access_token, "accounts", [])

    async def get_institution_name(self, access_token: str) -> Optional[str]:
        return self._step(access_token, "institution", "Test Bank")

    async def get_transactions(self, access_token: str, start_date: date, end_date: date) -> List[Transaction]:
        self.transaction_windows.append((access_token, start_date, end_date))
        return self._step(access_token, "transactions", [])


class ScriptedBackend:
    """Completion backend answering from a per-model script and recording every call."""

    def __init__(self, replies: Optional[Dict[str, Union[str, None, Exception]]] = None, default: Any = None):
        self.replies = replies or {}
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, model: str, messages: List[Dict[str, str]], **params: Any) -> Optional[str]:
        self.calls.append({"model": model, "messages": messages, "params": params})
        reply = self.replies.get(model, self.default)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def models_called(self) -> List[str]:
        return [c["model"] for c in self.calls]


@pytest.fixture
def sample_snapshot() -> Snapshot:
    today = date.today()
    return Snapshot(
        accounts=[
            make_account("chk", AccountType.DEPOSITORY, current=2500.0, name="Checking"),
            make_account("cc", AccountType.CREDIT, current=400.0, limit=5000.0, name="Visa", subtype="credit card"),
        ],
        transactions=[
            make_transaction("t1", today, 42.5, name="Coffee Shop"),
            make_transaction("t2", today, -20.0, category="INCOME", name="Refund"),
        ],
        institution_names=["Test Bank"],
    )


@pytest.fixture
def snapshot_state(sample_snapshot) -> SnapshotState:
    return SnapshotState(sample_snapshot)
