from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from advisor_backend.config import settings
from advisor_backend.core.logging_config import logger
from advisor_backend.api import deps
from advisor_backend.api.v1.api import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Restore the snapshot for institutions linked in a previous run.
    if len(deps.credential_store) > 0:
        logger.info("snapshot_restore_started", credentials=len(deps.credential_store))
        snapshot = await deps.financial_aggregator.refresh()
        logger.info(
            "snapshot_restored",
            accounts=len(snapshot.accounts),
            transactions=len(snapshot.transactions),
        )
    yield
    await deps.plaid_connector.close()
    await deps.completion_backend.close()
    logger.info("app_shutdown_complete")


app = FastAPI(
    title=settings.BACKEND_PROJECT_NAME,
    description=settings.BACKEND_API_DESCRIPTION,
    version=settings.BACKEND_API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.BACKEND_API_PREFIX)

@app.get("/", tags=["Monitoring"])
async def root(request: Request):
    """Root endpoint returning basic API information."""
    return {
        'name': settings.BACKEND_PROJECT_NAME,
        'description': settings.BACKEND_API_DESCRIPTION,
        'version': settings.BACKEND_API_VERSION,
        'environment': settings.BACKEND_API_ENVIRONMENT,
        'status': 'healthy',
        'swagger_url': '/docs',
        'redoc_url': '/redoc',
    }

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
