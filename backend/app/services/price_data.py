"""Bitcoin price and market data service.

Fetches the current Bitcoin price and market data from the CoinGecko public
API with a short-lived in-memory cache. Lookups never fail from the caller's
point of view: when the live request fails the service falls back to the
last cached value for the same lookup, and failing that to synthetic data.
"""

import asyncio
import logging
import random
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from .price_cache import CacheKey, CacheKind, PriceCache

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COIN_ID = "bitcoin"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

# Price lookups: currency -> numeric price, plus "last_updated_at" epoch seconds
PriceRecord = Dict[str, Any]

MOCK_PRICE_BASELINES = {
    "usd": 45000.0,
    "eur": 42000.0,
    "gbp": 38000.0,
}
MOCK_PRICE_DEFAULT = 45000.0
MOCK_PRICE_JITTER = 1000.0

DEFAULT_MARKET_CAP = 850_000_000_000.0
DEFAULT_TOTAL_VOLUME = 40_000_000_000.0
MOCK_PRICE_CHANGE_JITTER = 1000.0
MOCK_PRICE_CHANGE_PERCENT_JITTER = 5.0


class FetchFailureKind(str, Enum):
    """Why a live fetch failed."""
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    INVALID_RESPONSE = "invalid_response"


class PriceFetchError(Exception):
    """Raised internally when a live fetch fails. Never reaches callers."""

    def __init__(self, kind: FetchFailureKind, message: str, status: Optional[int] = None):
        self.kind = kind
        self.status = status
        super().__init__(message)


@dataclass
class MarketRecord:
    """Bitcoin market data in a single currency."""
    market_cap: float
    total_volume: float
    price_change_24h: float
    price_change_percentage_24h: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class PriceDataStatus:
    """Health of the upstream price API as seen by the client."""
    healthy: bool
    last_fetch: Optional[datetime] = None
    last_error: Optional[str] = None
    last_failure_kind: Optional[FetchFailureKind] = None
    cached_keys: List[str] = field(default_factory=list)


class PriceDataClient:
    """Client for Bitcoin price and market data.

    Each lookup checks the cache, then the live API, then falls back to any
    cached value (even stale), then to synthetic data. Synthetic data is never
    cached. Concurrent lookups for the same key are not deduplicated.
    """

    def __init__(
        self,
        base_url: str = COINGECKO_BASE_URL,
        cache: Optional[PriceCache] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL without trailing slash
            cache: Cache to use; a fresh one with the default window if None
            session_factory: Callable returning an aiohttp session, injectable for tests
            rng: Random source for synthetic fallback data
        """
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else PriceCache()
        self._session_factory = session_factory
        self._rng = rng or random.Random()
        self._healthy = True
        self._last_fetch: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_failure_kind: Optional[FetchFailureKind] = None

    def configure(
        self,
        base_url: Optional[str] = None,
        cache_ttl_seconds: Optional[float] = None,
    ) -> None:
        """Apply settings from configuration. Cached entries are kept."""
        if base_url:
            self.base_url = base_url.rstrip("/")
        if cache_ttl_seconds is not None:
            self.cache.ttl_seconds = float(cache_ttl_seconds)
        logger.info(
            f"Price data client configured: base_url={self.base_url}, "
            f"cache_ttl_seconds={self.cache.ttl_seconds}"
        )

    async def fetch_price(self, currency: str = "usd") -> PriceRecord:
        """Get the current Bitcoin price in a currency.

        Returns:
            Dict like {"usd": 50000, "last_updated_at": 1700000000}
        """
        return await self._fetch_with_fallback(
            CacheKey(CacheKind.PRICE, currency),
            lambda: self._fetch_live_price(currency),
            lambda: self._mock_price(currency),
            "Bitcoin price",
        )

    async def fetch_market_data(self, currency: str = "usd") -> MarketRecord:
        """Get current Bitcoin market data in a currency."""
        return await self._fetch_with_fallback(
            CacheKey(CacheKind.MARKET, currency),
            lambda: self._fetch_live_market_data(currency),
            self._mock_market_data,
            "market data",
        )

    def get_status(self) -> PriceDataStatus:
        return PriceDataStatus(
            healthy=self._healthy,
            last_fetch=self._last_fetch,
            last_error=self._last_error,
            last_failure_kind=self._last_failure_kind,
            cached_keys=[f"{key.kind.value}:{key.currency}" for key in self.cache.keys()],
        )

    async def _fetch_with_fallback(
        self,
        key: CacheKey,
        fetch_live: Callable[[], Awaitable[Any]],
        make_mock: Callable[[], Any],
        label: str,
    ) -> Any:
        cached = self.cache.get_fresh(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key.kind.value}:{key.currency}")
            return cached

        try:
            value = await fetch_live()
        except PriceFetchError as e:
            self._healthy = False
            self._last_error = str(e)
            self._last_failure_kind = e.kind
            logger.warning(f"Error fetching {label} [{e.kind.value}]: {e}")

            stale = self.cache.get_any(key)
            if stale is not None:
                logger.info(f"Returning cached {label} for {key.currency}")
                return stale

            logger.info(f"Using fallback mock {label} for {key.currency}")
            return make_mock()

        self.cache.set(key, value)
        self._healthy = True
        self._last_error = None
        self._last_failure_kind = None
        self._last_fetch = datetime.now(timezone.utc)
        return value

    async def _get_json(self, path: str, params: Dict[str, str]) -> Any:
        """Issue a GET against the API and decode the JSON body.

        Raises:
            PriceFetchError: On transport failure, non-2xx status or undecodable body
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._session_factory(headers=DEFAULT_HEADERS) as session:
                async with session.get(url, params=params) as resp:
                    if not 200 <= resp.status < 300:
                        raise PriceFetchError(
                            FetchFailureKind.HTTP_STATUS,
                            f"CoinGecko API returned {resp.status}",
                            status=resp.status,
                        )
                    try:
                        return await resp.json(content_type=None)
                    except ValueError as e:
                        raise PriceFetchError(
                            FetchFailureKind.INVALID_RESPONSE,
                            f"Malformed JSON from {path}: {e}",
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise PriceFetchError(
                FetchFailureKind.TRANSPORT,
                f"Request to {url} failed: {e!r}",
            ) from e

    async def _fetch_live_price(self, currency: str) -> PriceRecord:
        data = await self._get_json("/simple/price", {
            "ids": COIN_ID,
            "vs_currencies": currency,
            "include_last_updated_at": "true",
        })

        if not isinstance(data, dict) or not isinstance(data.get(COIN_ID), dict):
            raise PriceFetchError(
                FetchFailureKind.INVALID_RESPONSE,
                "Invalid response from API: missing 'bitcoin' field",
            )
        return data[COIN_ID]

    async def _fetch_live_market_data(self, currency: str) -> MarketRecord:
        data = await self._get_json(f"/coins/{COIN_ID}", {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
            "sparkline": "false",
        })

        market_data = data.get("market_data") if isinstance(data, dict) else None
        if not isinstance(market_data, dict):
            raise PriceFetchError(
                FetchFailureKind.INVALID_RESPONSE,
                "Invalid market data response: missing 'market_data' field",
            )

        def currency_value(name: str, default: float) -> float:
            by_currency = market_data.get(name)
            if not isinstance(by_currency, dict):
                return default
            value = by_currency.get(currency)
            if value is None:
                return default
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise PriceFetchError(
                    FetchFailureKind.INVALID_RESPONSE,
                    f"Non-numeric {name} for {currency}: {value!r}",
                )
            return float(value)

        return MarketRecord(
            market_cap=currency_value("market_cap", DEFAULT_MARKET_CAP),
            total_volume=currency_value("total_volume", DEFAULT_TOTAL_VOLUME),
            price_change_24h=currency_value("price_change_24h_in_currency", 0.0),
            price_change_percentage_24h=currency_value("price_change_percentage_24h_in_currency", 0.0),
        )

    def _mock_price(self, currency: str) -> PriceRecord:
        baseline = MOCK_PRICE_BASELINES.get(currency)
        if baseline is None:
            price = MOCK_PRICE_DEFAULT
        else:
            price = baseline + self._rng.uniform(-MOCK_PRICE_JITTER, MOCK_PRICE_JITTER)
        return {
            currency: price,
            "last_updated_at": int(time.time()),
        }

    def _mock_market_data(self) -> MarketRecord:
        return MarketRecord(
            market_cap=DEFAULT_MARKET_CAP,
            total_volume=DEFAULT_TOTAL_VOLUME,
            price_change_24h=self._rng.uniform(-MOCK_PRICE_CHANGE_JITTER, MOCK_PRICE_CHANGE_JITTER),
            price_change_percentage_24h=self._rng.uniform(
                -MOCK_PRICE_CHANGE_PERCENT_JITTER, MOCK_PRICE_CHANGE_PERCENT_JITTER
            ),
        )


# Global instance
price_data_client = PriceDataClient()


async def fetch_bitcoin_price(currency: str = "usd") -> PriceRecord:
    """Get the current Bitcoin price using the process-wide client."""
    return await price_data_client.fetch_price(currency)


async def fetch_bitcoin_market_data(currency: str = "usd") -> MarketRecord:
    """Get current Bitcoin market data using the process-wide client."""
    return await price_data_client.fetch_market_data(currency)
