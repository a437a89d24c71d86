"""Account-linking endpoints.

The frontend opens the provider's Link flow with a link token, then sends
back the public token, which is exchanged for a durable access credential.
"""

from fastapi import APIRouter, Depends, HTTPException

from advisor_backend.api.deps import get_aggregator, get_credential_store, get_linking_provider
from advisor_backend.config import settings
from advisor_backend.core.logging_config import logger
from advisor_backend.schemas.plaid_link import (
    ExchangeTokenRequest,
    ExchangeTokenResponse,
    LinkTokenResponse,
)
from advisor_backend.services.aggregation.aggregator import FinancialDataAggregator
from advisor_backend.services.credentials.credential_store import CredentialStore
from advisor_backend.services.plaid.plaid_connector import LinkingProvider

router = APIRouter()


@router.post("/create-link-token", response_model=LinkTokenResponse)
async def create_link_token(
    provider: LinkingProvider = Depends(get_linking_provider),
) -> LinkTokenResponse:
    """Create a Link token for the frontend.

    Raises:
        HTTPException: If the provider rejects the request.
    """
    try:
        link_token = await provider.create_link_token(settings.PLAID_CLIENT_USER_ID)
    except Exception as e:
        logger.error("create_link_token_failed", error_type=type(e).__name__, error_code=getattr(e, "error_code", None))
        raise HTTPException(status_code=500, detail="Failed to create link token")
    return LinkTokenResponse(link_token=link_token)


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
async def exchange_token(
    payload: ExchangeTokenRequest,
    provider: LinkingProvider = Depends(get_linking_provider),
    store: CredentialStore = Depends(get_credential_store),
    aggregator: FinancialDataAggregator = Depends(get_aggregator),
) -> ExchangeTokenResponse:
    """Exchange a public token, store the credential and refresh the snapshot.

    Raises:
        HTTPException: If the exchange or the refresh fails.
    """
    try:
        access_token = await provider.exchange_public_token(payload.public_token)
        store.append(access_token)
        await aggregator.refresh()
    except Exception as e:
        logger.error("exchange_token_failed", error_type=type(e).__name__, error_code=getattr(e, "error_code", None))
        raise HTTPException(status_code=500, detail="Failed to exchange token")

    logger.info("institution_linked", credentials=len(store))
    return ExchangeTokenResponse(success=True)
