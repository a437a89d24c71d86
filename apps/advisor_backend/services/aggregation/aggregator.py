"""Aggregation of every linked institution into one financial snapshot.

Each credential is fetched in isolation: a failure while fetching one
institution drops only that institution's accounts and transactions. The
merged snapshot replaces the previous one in a single swap once every
credential has settled.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from advisor_backend.config import settings
from advisor_backend.core.logging_config import logger
from advisor_backend.models.financial import Account, Snapshot, Transaction
from advisor_backend.services.credentials.credential_store import CredentialStore
from advisor_backend.services.plaid.plaid_connector import LinkingProvider

UNKNOWN_INSTITUTION = "Unknown Institution"


@dataclass
class CredentialContribution:
    """Data fetched for a single credential."""
    accounts: List[Account] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    institution_name: str = UNKNOWN_INSTITUTION


class SnapshotState:
    """Owner of the current snapshot.

    Readers always get a point-in-time copy; the only write is ``replace``.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot or Snapshot()

    def current(self) -> Snapshot:
        return self._snapshot.model_copy(deep=True)

    def replace(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot


def sort_transactions(transactions: Sequence[Transaction]) -> List[Transaction]:
    """Sort by date descending; equal dates keep their input order."""
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)


class FinancialDataAggregator:
    """Builds snapshots from all stored credentials."""

    def __init__(
        self,
        provider: LinkingProvider,
        store: CredentialStore,
        state: Optional[SnapshotState] = None,
        window_days: int = settings.TRANSACTION_WINDOW_DAYS,
        today: Callable[[], date] = date.today,
    ):
        self.provider = provider
        self.store = store
        self.state = state or SnapshotState()
        self.window_days = window_days
        self._today = today
        self._refresh_lock = asyncio.Lock()

    async def _fetch_institution_name(self, credential: str, index: int) -> str:
        try:
            name = await self.provider.get_institution_name(credential)
        except Exception as e:
            logger.warning(
                "institution_lookup_failed",
                credential_index=index,
                error_type=type(e).__name__,
                error_code=getattr(e, "error_code", None),
            )
            return UNKNOWN_INSTITUTION
        return name or UNKNOWN_INSTITUTION

    async def _fetch_credential(self, credential: str, index: int) -> Optional[CredentialContribution]:
        """Fetch everything for one credential; returns None if any required step fails."""
        end_date = self._today()
        start_date = end_date - timedelta(days=self.window_days)

        try:
            accounts = await self.provider.get_accounts(credential)
            institution_name = await self._fetch_institution_name(credential, index)
            transactions = await self.provider.get_transactions(credential, start_date, end_date)
        except Exception as e:
            logger.error(
                "credential_fetch_failed",
                credential_index=index,
                error_type=type(e).__name__,
                error_code=getattr(e, "error_code", None),
            )
            return None

        logger.info(
            "credential_fetched",
            credential_index=index,
            institution=institution_name,
            accounts=len(accounts),
            transactions=len(transactions),
        )
        return CredentialContribution(
            accounts=accounts,
            transactions=transactions,
            institution_name=institution_name,
        )

    async def aggregate(self, credentials: Sequence[str]) -> Snapshot:
        """Fetch and merge data for ``credentials``. Never raises."""
        results = await asyncio.gather(
            *(self._fetch_credential(credential, index) for index, credential in enumerate(credentials))
        )

        accounts: List[Account] = []
        transactions: List[Transaction] = []
        institution_names: List[str] = []
        for contribution in results:
            if contribution is None:
                continue
            accounts.extend(contribution.accounts)
            transactions.extend(contribution.transactions)
            institution_names.append(contribution.institution_name)

        return Snapshot(
            accounts=accounts,
            transactions=sort_transactions(transactions),
            institution_names=institution_names,
            refreshed_at=datetime.now(timezone.utc),
        )

    async def refresh(self) -> Snapshot:
        """Re-aggregate every stored credential and swap the shared snapshot.

        Overlapping calls queue behind the pass already in flight.
        """
        async with self._refresh_lock:
            credentials = self.store.credentials()
            snapshot = await self.aggregate(credentials)
            self.state.replace(snapshot)
            logger.info(
                "snapshot_refreshed",
                credentials=len(credentials),
                accounts=len(snapshot.accounts),
                transactions=len(snapshot.transactions),
            )
            return snapshot.model_copy(deep=True)
