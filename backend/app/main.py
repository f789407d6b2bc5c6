"""Bitcoin price data FastAPI application.

Serve with ``python -m app`` (reads the ``server`` section of config.yaml)
or directly with ``uvicorn app.main:app``.
"""

import sys
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .routers import bitcoin, health
from .services.config import config_service, ConfigValidationException
from .services.price_data import price_data_client

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Set up root logging from the loaded configuration."""
    logging.basicConfig(
        level=config_service.get("logging.level", "INFO"),
        format=config_service.get("logging.format", DEFAULT_LOG_FORMAT),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    try:
        config_service.load_and_validate()
    except ConfigValidationException as e:
        print(f"FATAL: {e}")
        print("Server cannot start with invalid configuration.")
        sys.exit(1)

    configure_logging()

    price_data_client.configure(
        base_url=config_service.get("price_data.base_url"),
        cache_ttl_seconds=config_service.get("price_data.cache_ttl_seconds"),
    )
    logger.info("Price data service started")

    yield

    logger.info("Price data service stopped")


app = FastAPI(
    title="Bitcoin Price Data API",
    description="Cached Bitcoin price and market data from CoinGecko",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(bitcoin.router, prefix="/api/bitcoin", tags=["Bitcoin"])


@app.get("/")
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "Bitcoin Price Data API", "docs": "/docs"}
