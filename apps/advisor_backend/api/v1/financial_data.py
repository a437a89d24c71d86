"""Snapshot endpoints for the aggregated accounts and transactions."""

from fastapi import APIRouter, Depends, HTTPException

from advisor_backend.api.deps import get_aggregator
from advisor_backend.core.logging_config import logger
from advisor_backend.models.financial import Snapshot
from advisor_backend.services.aggregation.aggregator import FinancialDataAggregator

router = APIRouter()


@router.get("/financial-data", response_model=Snapshot)
async def get_financial_data(
    aggregator: FinancialDataAggregator = Depends(get_aggregator),
) -> Snapshot:
    """Return the latest aggregated snapshot without contacting the provider."""
    return aggregator.state.current()


@router.post("/refresh-data", response_model=Snapshot)
async def refresh_financial_data(
    aggregator: FinancialDataAggregator = Depends(get_aggregator),
) -> Snapshot:
    """Re-aggregate every linked institution and return the new snapshot.

    Raises:
        HTTPException: If the refresh fails unexpectedly.
    """
    try:
        return await aggregator.refresh()
    except Exception as e:
        logger.error("refresh_data_failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to refresh data")
