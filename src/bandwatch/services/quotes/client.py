"""Chart client for the upstream quote provider."""

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from ...config.logging import get_logger
from ...config.settings import Settings, get_settings
from ...exceptions import ParseError, TransportError, UpstreamError
from .cache import CacheEntry, Clock, QuoteCache, RequestThrottle, Sleeper
from .models import BatchEntry, RawSeries, validate_chart_payload

logger = get_logger(__name__)


def parse_symbol_keys(raw: str) -> List[str]:
    """Split a comma-separated key list, dropping blanks."""
    return [key.strip() for key in raw.split(",") if key.strip()]


class QuoteSourceAdapter:
    """
    Fetches chart series with a TTL cache and a shared request throttle.

    The cache and throttle are owned by the adapter instance; share one
    adapter between every caller that talks to the same provider.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.cache = QuoteCache(self.settings.cache_ttl_seconds, clock=clock)
        self.throttle = RequestThrottle(
            self.settings.min_request_gap_seconds, clock=clock, sleep=sleep
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout_seconds),
        )
        self.upstream_calls = 0
        self.logger = logger.bind(component="quote_source")

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": "application/json,text/html,application/xhtml+xml",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
        }

    def chart_url(self, symbol_key: str) -> str:
        base = self.settings.quote_base_url.rstrip("/")
        return f"{base}/v8/finance/chart/{quote(symbol_key, safe='')}"

    async def _request(self, symbol_key: str) -> Dict[str, Any]:
        """Issue one upstream call and decode the JSON body."""
        self.upstream_calls += 1
        params = {
            "interval": self.settings.chart_interval,
            "range": self.settings.chart_range,
            "includePrePost": "false",
        }

        try:
            response = await self._client.get(
                self.chart_url(symbol_key),
                params=params,
                headers=self._headers(),
                timeout=self.settings.request_timeout_seconds,
            )
        except httpx.TimeoutException:
            raise TransportError("Yahoo request timeout", symbol_key=symbol_key)
        except httpx.RequestError as e:
            raise TransportError(str(e) or "Network error", symbol_key=symbol_key)

        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code}",
                symbol_key=symbol_key,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise ParseError("Invalid JSON from Yahoo", symbol_key=symbol_key)

    async def _resolve(self, symbol_key: str) -> CacheEntry:
        """
        Get the validated chart entry for one key.

        Served from cache when younger than the TTL; otherwise waits for the
        shared throttle and calls upstream. Only valid payloads are cached.

        Raises:
            UpstreamError: On transport, provider or parse failures
        """
        async with self.cache.key_lock(symbol_key):
            cached = self.cache.get_fresh(symbol_key)
            if cached is not None:
                self.logger.debug("Serving chart from cache", symbol_key=symbol_key)
                return cached

            waited = await self.throttle.acquire()
            self.logger.info(
                "Requesting chart from provider",
                symbol_key=symbol_key,
                throttle_wait_s=round(waited, 3),
            )
            payload = await self._request(symbol_key)
            series = validate_chart_payload(payload, symbol_key)
            return self.cache.put(symbol_key, payload, series)

    async def fetch_payload(self, symbol_key: str) -> Dict[str, Any]:
        """Raw chart document for one key, as the provider returned it."""
        return (await self._resolve(symbol_key)).payload

    async def fetch(self, symbol_key: str) -> RawSeries:
        """Fetch and decode the series for one provider key."""
        return (await self._resolve(symbol_key)).series

    async def fetch_batch(self, symbol_keys: Iterable[str]) -> Dict[str, BatchEntry]:
        """
        Resolve each key in order; one key's failure never aborts the batch.

        Returns:
            Mapping of key to its BatchEntry, in request order
        """
        results: Dict[str, BatchEntry] = {}

        for symbol_key in symbol_keys:
            try:
                entry = await self._resolve(symbol_key)
                results[symbol_key] = BatchEntry(
                    symbol_key=symbol_key,
                    payload=entry.payload,
                    series=entry.series,
                )
            except UpstreamError as e:
                self.logger.warning(
                    "Chart fetch failed in batch",
                    symbol_key=symbol_key,
                    error=e.message,
                    status_code=e.status_code,
                )
                results[symbol_key] = BatchEntry(symbol_key=symbol_key, error=e)

        return results

    def cache_stats(self) -> Dict[str, Any]:
        return {**self.cache.stats(), "upstream_calls": self.upstream_calls}

    def clear_cache(self) -> None:
        self.cache.clear()

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()
