from fastapi import APIRouter

from advisor_backend.api.v1 import (
    advisor,
    financial_data,
    plaid_link,
)
from advisor_backend.config import settings

api_router = APIRouter()

# Include routers
api_router.include_router(plaid_link.router, prefix="/plaid", tags=["Account Linking"])
api_router.include_router(financial_data.router, tags=["Financial Data"])
api_router.include_router(advisor.router, prefix="/advisor", tags=["Financial Advice Agent"])

@api_router.get("/app_health", tags=["Monitoring"])
async def app_health_check():
    """App health check endpoint.

    Returns:
        dict: App health status information.
    """
    return {"status": "healthy", "version": settings.BACKEND_API_VERSION}
