"""
Client for the Finnhub REST API (quotes and symbol search).
"""
import asyncio
import random
from typing import Any, Dict, List, Optional

import aiohttp


class FinnhubError(RuntimeError):
    """Finnhub returned no usable data."""


class FinnhubClient:
    """Lightweight async client for Finnhub endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        timeout_seconds: int = 5,
        base_url: str = "https://finnhub.io/api/v1",
        max_retries: int = 2,
        max_concurrency: int = 8,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=max(timeout_seconds, 1))
        self.max_retries = max(0, int(max_retries))
        self._semaphore = asyncio.Semaphore(max(1, int(max_concurrency)))
        self._session: Optional[aiohttp.ClientSession] = None
        self._metrics = {
            "requests": 0,
            "retries": 0,
            "timeouts": 0,
            "errors": 0,
        }

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        payload = await self._get_json("/quote", {"symbol": symbol.upper()})
        if not isinstance(payload, dict):
            raise FinnhubError(f"Unexpected quote payload for {symbol}")
        # Finnhub answers unknown symbols with an all-zero quote.
        if not any(payload.get(key) for key in ("c", "h", "l", "o")):
            raise FinnhubError(f"Invalid symbol or no data available for {symbol}")
        return {
            "current_price": payload.get("c"),
            "change": payload.get("d") or 0.0,
            "change_percent": payload.get("dp") or 0.0,
            "high": payload.get("h"),
            "low": payload.get("l"),
            "open": payload.get("o"),
            "previous_close": payload.get("pc"),
        }

    async def search_symbols(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        payload = await self._get_json("/search", {"q": query})
        results = payload.get("result", []) if isinstance(payload, dict) else []
        if not isinstance(results, list):
            return []
        matches = []
        for item in results:
            if item.get("type") != "Common Stock" or not item.get("symbol"):
                continue
            description = item.get("description") or item["symbol"]
            matches.append({
                "symbol": item["symbol"],
                "description": description,
                "display_name": f"{description} ({item['symbol']})",
                "type": item.get("type"),
                "exchange": "",
            })
            if len(matches) >= limit:
                break
        return matches

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise FinnhubError("Finnhub API key not configured")
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        query = dict(params, token=self.api_key)
        self._metrics["requests"] += 1

        transient_status_codes = {429, 500, 502, 503, 504}
        for attempt in range(self.max_retries + 1):
            retry_left = attempt < self.max_retries
            try:
                async with self._semaphore:
                    async with session.get(url, params=query, timeout=self.timeout) as response:
                        if not (response.status in transient_status_codes and retry_left):
                            response.raise_for_status()
                            return await response.json()
            except (asyncio.TimeoutError, aiohttp.ServerTimeoutError):
                self._metrics["timeouts"] += 1
                if not retry_left:
                    self._metrics["errors"] += 1
                    raise
            except aiohttp.ClientResponseError as error:
                if not (error.status in transient_status_codes and retry_left):
                    self._metrics["errors"] += 1
                    raise
            except aiohttp.ClientError:
                if not retry_left:
                    self._metrics["errors"] += 1
                    raise
            # Back off with the connection slot and the response released.
            self._metrics["retries"] += 1
            await self._sleep_backoff(attempt)
        self._metrics["errors"] += 1
        raise FinnhubError("Finnhub request failed after retries")

    async def _sleep_backoff(self, attempt: int):
        base_delay = 0.3 * (2 ** max(attempt, 0))
        jitter = random.uniform(0.01, 0.16)
        await asyncio.sleep(base_delay + jitter)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def get_metrics(self) -> Dict[str, int]:
        return dict(self._metrics)
