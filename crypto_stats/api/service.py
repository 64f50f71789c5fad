"""FastAPI application serving coin stats and price deviation."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Final

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..ingestion.service import SnapshotIngestor
from ..shared.coins import VALID_COINS
from ..storage.snapshot_storage import SnapshotStorage
from .errors import StatsAPIError
from .models import DeviationResponse, ErrorResponse, StatsResponse
from .queries import INTERNAL_ERROR_MESSAGE, get_latest_stats, get_price_deviation
from .settings import api_settings

ERROR_ENDPOINT_NOT_FOUND: Final[str] = "Endpoint not found"

logger = logging.getLogger(__name__)


async def get_snapshot_storage() -> AsyncGenerator[SnapshotStorage, None]:
    """
    Dependency function to provide storage instance.

    Returns:
        SnapshotStorage: Initialized storage instance
    """
    storage = SnapshotStorage()
    try:
        await storage.initialize()
        yield storage
    finally:
        await storage.close()


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Run the ingestion scheduler alongside the API when enabled."""
    application.state.ingestion_scheduler = None
    if not api_settings.run_ingestion:
        logger.info("Ingestion scheduler disabled for this process")
        yield
        return

    ingestor = SnapshotIngestor()
    async with ingestor.managed_lifecycle():
        scheduler = ingestor.create_scheduler()
        application.state.ingestion_scheduler = scheduler
        await scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()


CoinQuery = Annotated[
    str | None,
    Query(
        description="Coin identifier",
        examples=list(VALID_COINS),
    ),
]

StorageDependency = Annotated[SnapshotStorage, Depends(get_snapshot_storage)]


app = FastAPI(
    title="Crypto Stats API",
    description="Latest stats and price deviation for tracked cryptocurrencies",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(StatsAPIError)
async def stats_error_handler(_: Request, exc: StatsAPIError) -> JSONResponse:
    """Render query errors as ``{"error": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
    )


@app.get("/", response_model=dict[str, str])
async def root() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        dict[str, str]: Health status information
    """
    return {"message": "Crypto Stats API is running", "status": "healthy"}


@app.get(
    "/stats",
    response_model=StatsResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def stats(storage: StorageDependency, coin: CoinQuery = None) -> StatsResponse:
    """
    Latest price, market cap and 24h change for a coin.

    Args:
        storage: Storage dependency for snapshot access
        coin: Coin identifier, one of the tracked coins

    Returns:
        StatsResponse: Values from the most recent snapshot
    """
    return await get_latest_stats(storage, coin)


@app.get(
    "/deviation",
    response_model=DeviationResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def deviation(
    storage: StorageDependency, coin: CoinQuery = None
) -> DeviationResponse:
    """
    Population standard deviation of the last 100 recorded prices for a coin.

    Args:
        storage: Storage dependency for snapshot access
        coin: Coin identifier, one of the tracked coins

    Returns:
        DeviationResponse: Coin and its standard deviation rounded to 2 decimals
    """
    return await get_price_deviation(storage, coin)


@app.exception_handler(404)
async def not_found_handler(_: Request, __: Exception) -> JSONResponse:
    """Handle 404 errors.

    Returns:
        JSONResponse: Error response in JSON format
    """
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(error=ERROR_ENDPOINT_NOT_FOUND).model_dump(),
    )


@app.exception_handler(500)
async def internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle internal server errors.

    Args:
        exc: The exception that was raised

    Returns:
        JSONResponse: Error response in JSON format
    """
    logger.error(f"Internal server error: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=INTERNAL_ERROR_MESSAGE).model_dump(),
    )


async def main() -> None:
    """Main entry point for the API server."""
    config = uvicorn.Config(
        app,
        host=api_settings.api_host,
        port=api_settings.api_port,
        log_level=api_settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
