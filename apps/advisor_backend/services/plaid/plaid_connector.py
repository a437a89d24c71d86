"""Async client for the Plaid REST API.

Covers the calls the advisor needs: Link token creation, public token
exchange, accounts with balances, institution lookup and a paginated
transactions window. Provider payloads are normalized into the models in
``advisor_backend.models.financial``.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Protocol

import httpx

from advisor_backend.config import AppSettings, settings
from advisor_backend.core.logging_config import logger
from advisor_backend.models.financial import Account, AccountBalances, AccountType, Transaction

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}


class PlaidAPIError(Exception):
    """Error response returned by Plaid.

    Only the error type and code are kept; Plaid's message may echo request
    details and is never surfaced to API callers.
    """

    def __init__(self, endpoint: str, status_code: int, error_type: str, error_code: str):
        self.endpoint = endpoint
        self.status_code = status_code
        self.error_type = error_type
        self.error_code = error_code
        super().__init__(f"Plaid {endpoint} failed with {status_code} [{error_type}/{error_code}]")


class LinkingProvider(Protocol):
    """Contract the aggregator and the link endpoints rely on."""

    async def create_link_token(self, client_user_id: str) -> str:
        ...

    async def exchange_public_token(self, public_token: str) -> str:
        ...

    async def get_accounts(self, access_token: str) -> List[Account]:
        ...

    async def get_institution_name(self, access_token: str) -> Optional[str]:
        ...

    async def get_transactions(self, access_token: str, start_date: date, end_date: date) -> List[Transaction]:
        ...


def resolve_category(raw: Dict[str, Any]) -> str:
    """Resolve a transaction category.

    Falls back from the personal finance category to the first legacy
    category label and finally to ``"Other"``.
    """
    pfc = raw.get("personal_finance_category") or {}
    if pfc.get("primary"):
        return pfc["primary"]
    legacy = raw.get("category") or []
    if legacy and legacy[0]:
        return legacy[0]
    return "Other"


def normalize_account(raw: Dict[str, Any]) -> Account:
    balances = raw.get("balances") or {}
    return Account(
        id=raw["account_id"],
        name=raw.get("name") or raw.get("official_name") or "Account",
        official_name=raw.get("official_name"),
        mask=raw.get("mask"),
        type=AccountType.from_provider(raw.get("type")),
        subtype=raw.get("subtype"),
        balances=AccountBalances(
            current=balances.get("current"),
            available=balances.get("available"),
            limit=balances.get("limit"),
            iso_currency_code=balances.get("iso_currency_code"),
        ),
    )


def normalize_transaction(raw: Dict[str, Any]) -> Transaction:
    return Transaction(
        id=raw["transaction_id"],
        account_id=raw.get("account_id"),
        date=raw["date"],
        name=raw.get("name") or raw.get("merchant_name") or "Unknown",
        merchant_name=raw.get("merchant_name"),
        amount=raw["amount"],
        category=resolve_category(raw),
        pending=bool(raw.get("pending", False)),
    )


class PlaidConnector:
    """Pull linked-account data from Plaid.

    Usage::

        connector = PlaidConnector(settings)
        link_token = await connector.create_link_token("user-1")
        accounts = await connector.get_accounts(access_token)
    """

    def __init__(self, app_settings: AppSettings = settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = app_settings
        self._base_url = PLAID_ENVIRONMENTS[app_settings.PLAID_ENV]
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable httpx client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self.settings.PLAID_TIMEOUT_SECONDS,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "PLAID-CLIENT-ID": self.settings.PLAID_CLIENT_ID,
                    "PLAID-SECRET": self.settings.PLAID_SECRET,
                },
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()

    async def _api_post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to a Plaid endpoint and return the decoded body.

        Raises:
            PlaidAPIError: If Plaid answers with an error status.
            httpx.HTTPError: On transport failures and timeouts.
        """
        response = await self._get_client().post(f"/{endpoint}", json=payload)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            raise PlaidAPIError(
                endpoint=endpoint,
                status_code=response.status_code,
                error_type=error_data.get("error_type", "UNKNOWN"),
                error_code=error_data.get("error_code", "UNKNOWN"),
            )

        return response.json()

    async def create_link_token(self, client_user_id: str) -> str:
        data = await self._api_post(
            "link/token/create",
            {
                "user": {"client_user_id": client_user_id},
                "client_name": self.settings.PLAID_CLIENT_NAME,
                "products": ["transactions"],
                "country_codes": self.settings.PLAID_COUNTRY_CODES,
                "language": "en",
            },
        )
        return data["link_token"]

    async def exchange_public_token(self, public_token: str) -> str:
        data = await self._api_post("item/public_token/exchange", {"public_token": public_token})
        logger.info("plaid_public_token_exchanged", item_id=data.get("item_id"))
        return data["access_token"]

    async def get_accounts(self, access_token: str) -> List[Account]:
        data = await self._api_post("accounts/get", {"access_token": access_token})
        return [normalize_account(raw) for raw in data.get("accounts", [])]

    async def get_institution_name(self, access_token: str) -> Optional[str]:
        """Return the display name of the item's institution, or None when the item has none."""
        item_data = await self._api_post("item/get", {"access_token": access_token})
        institution_id = (item_data.get("item") or {}).get("institution_id")
        if not institution_id:
            return None

        inst_data = await self._api_post(
            "institutions/get_by_id",
            {
                "institution_id": institution_id,
                "country_codes": self.settings.PLAID_COUNTRY_CODES,
            },
        )
        return (inst_data.get("institution") or {}).get("name")

    async def get_transactions(self, access_token: str, start_date: date, end_date: date) -> List[Transaction]:
        """Fetch every transaction in ``[start_date, end_date]``, following Plaid's pagination."""
        page_size = self.settings.PLAID_TRANSACTIONS_PAGE_SIZE
        raw_transactions: List[Dict[str, Any]] = []

        while True:
            data = await self._api_post(
                "transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "options": {"count": page_size, "offset": len(raw_transactions)},
                },
            )
            page = data.get("transactions", [])
            raw_transactions.extend(page)

            total = data.get("total_transactions", len(raw_transactions))
            if not page or len(raw_transactions) >= total:
                break

        return [normalize_transaction(raw) for raw in raw_transactions]


# Singleton instance
plaid_connector = PlaidConnector()
