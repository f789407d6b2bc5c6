# Business Logic Services

from .price_cache import (
    PriceCache,
    CacheKey,
    CacheKind,
    CacheEntry,
)
from .price_data import (
    PriceDataClient,
    PriceDataStatus,
    MarketRecord,
    FetchFailureKind,
    PriceFetchError,
    price_data_client,
    fetch_bitcoin_price,
    fetch_bitcoin_market_data,
)
from .config import (
    ConfigService,
    config_service,
    ConfigValidationException,
    ConfigValidationError,
)

__all__ = [
    # Cache
    "PriceCache",
    "CacheKey",
    "CacheKind",
    "CacheEntry",
    # Price data
    "PriceDataClient",
    "PriceDataStatus",
    "MarketRecord",
    "FetchFailureKind",
    "PriceFetchError",
    "price_data_client",
    "fetch_bitcoin_price",
    "fetch_bitcoin_market_data",
    # Config
    "ConfigService",
    "config_service",
    "ConfigValidationException",
    "ConfigValidationError",
]
