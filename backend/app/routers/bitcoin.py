"""Bitcoin price API router.

Exposes the price data client over HTTP. Lookups always answer 200: live
data, cached data and synthetic fallback data are indistinguishable here.
"""

from typing import Dict, List, Optional, Union
from fastapi import APIRouter, Query
from pydantic import BaseModel

from ..services.price_data import price_data_client

router = APIRouter()


class MarketDataResponse(BaseModel):
    """Market data response."""
    market_cap: float
    total_volume: float
    price_change_24h: float
    price_change_percentage_24h: float


class PriceDataStatusResponse(BaseModel):
    """Upstream API health as seen by the client."""
    healthy: bool
    last_fetch: Optional[str]
    last_error: Optional[str]
    last_failure_kind: Optional[str]
    cached_keys: List[str]


@router.get("/price", response_model=Dict[str, Union[int, float]])
async def get_price(currency: str = Query("usd", min_length=1)):
    """Get the current Bitcoin price, e.g. {"usd": 50000, "last_updated_at": 1700000000}."""
    return await price_data_client.fetch_price(currency)


@router.get("/market", response_model=MarketDataResponse)
async def get_market_data(currency: str = Query("usd", min_length=1)):
    """Get current Bitcoin market data."""
    record = await price_data_client.fetch_market_data(currency)
    return MarketDataResponse(**record.to_dict())


@router.get("/status", response_model=PriceDataStatusResponse)
async def get_status():
    """Get the price data client status."""
    status = price_data_client.get_status()
    return PriceDataStatusResponse(
        healthy=status.healthy,
        last_fetch=status.last_fetch.isoformat() if status.last_fetch else None,
        last_error=status.last_error,
        last_failure_kind=status.last_failure_kind.value if status.last_failure_kind else None,
        cached_keys=status.cached_keys,
    )
