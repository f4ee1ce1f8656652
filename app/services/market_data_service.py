"""
Market quote service with provider fallback and short-lived caching
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import yfinance as yf

from app.core.config import settings
from app.services.finnhub_client import FinnhubClient
from app.services.quote_cache import TTLCache

logger = logging.getLogger(__name__)

# NSE listings quoted on Yahoo with a ".NS" suffix.
NSE_SYMBOLS = frozenset({
    "RELIANCE", "TCS", "INFY", "HDFCBANK", "ICICIBANK", "HINDUNILVR", "ITC", "SBIN",
    "BHARTIARTL", "KOTAKBANK", "LT", "ASIANPAINT", "AXISBANK", "MARUTI", "TITAN",
    "NESTLEIND", "ULTRACEMCO", "BAJFINANCE", "HCLTECH", "WIPRO", "SUNPHARMA",
    "NTPC", "POWERGRID", "ONGC", "TATAMOTORS", "TATASTEEL", "JSWSTEEL", "HINDALCO",
    "ADANIENT", "ADANIPORTS", "COALINDIA", "DRREDDY", "EICHERMOT", "GRASIM",
    "HEROMOTOCO", "INDUSINDBK", "BAJAJFINSV", "TECHM", "CIPLA", "DIVISLAB",
})

INDIAN_SUFFIXES = (".NS", ".BO")


def normalize_symbol(symbol: str) -> str:
    return (symbol or "").strip().upper()


def yahoo_symbol(symbol: str) -> str:
    """Yahoo ticker for a symbol; known NSE names gain the .NS suffix."""
    clean = normalize_symbol(symbol)
    if "." in clean:
        return clean
    if clean in NSE_SYMBOLS:
        return f"{clean}.NS"
    return clean


def is_indian_symbol(symbol: str) -> bool:
    return normalize_symbol(symbol).endswith(INDIAN_SUFFIXES)


def unavailable_quote(symbol: str, error: str) -> Dict[str, Any]:
    return {
        "symbol": normalize_symbol(symbol),
        "available": False,
        "current_price": None,
        "error": error,
    }


class YahooQuoteProvider:
    """Quotes from Yahoo Finance via yfinance (blocking calls run in a thread)"""

    name = "yahoo"

    def provider_symbol(self, symbol: str) -> str:
        return yahoo_symbol(symbol)

    async def fetch_quote(self, symbol: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self._fetch_quote_sync, self.provider_symbol(symbol))

    def _fetch_quote_sync(self, ticker_symbol: str) -> Dict[str, Any]:
        ticker = yf.Ticker(ticker_symbol)
        hist = ticker.history(period="5d", interval="1d")
        if hist is None or hist.empty:
            raise LookupError(f"No price data available for {ticker_symbol}")

        latest = hist.iloc[-1]
        price = float(latest["Close"])
        previous_close = float(hist.iloc[-2]["Close"]) if len(hist) > 1 else float(latest["Open"])
        change = price - previous_close

        name = ticker_symbol
        currency = "INR" if is_indian_symbol(ticker_symbol) else "USD"
        try:
            info = ticker.info or {}
            name = info.get("shortName") or info.get("longName") or name
            currency = info.get("currency") or currency
        except Exception as e:
            logger.debug(f"Yahoo info unavailable for {ticker_symbol}: {e}")

        return {
            "current_price": price,
            "change": change,
            "change_percent": (change / previous_close * 100) if previous_close else 0.0,
            "open": float(latest["Open"]),
            "high": float(latest["High"]),
            "low": float(latest["Low"]),
            "previous_close": previous_close,
            "currency": currency,
            "name": name,
        }

    async def search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._search_sync, query, limit)

    def _search_sync(self, query: str, limit: int) -> List[Dict[str, Any]]:
        quotes = yf.Search(query, max_results=limit, news_count=0).quotes or []
        results = []
        for item in quotes:
            symbol = item.get("symbol")
            short_name = item.get("shortname") or item.get("longname")
            if not symbol or not short_name:
                continue
            if item.get("quoteType") != "EQUITY" and item.get("typeDisp") != "Equity":
                continue
            results.append({
                "symbol": symbol,
                "description": short_name,
                "display_name": f"{short_name} ({symbol})",
                "type": item.get("typeDisp") or "Equity",
                "exchange": item.get("exchange") or "",
            })
        return results[:limit]


class FinnhubQuoteProvider:
    """Quotes from Finnhub"""

    name = "finnhub"

    def __init__(self, client: FinnhubClient):
        self.client = client

    def provider_symbol(self, symbol: str) -> str:
        return normalize_symbol(symbol)

    async def fetch_quote(self, symbol: str) -> Dict[str, Any]:
        quote = await self.client.get_quote(self.provider_symbol(symbol))
        quote.setdefault("currency", "INR" if is_indian_symbol(symbol) else "USD")
        quote.setdefault("name", normalize_symbol(symbol))
        return quote

    async def search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        return await self.client.search_symbols(query, limit=limit)


class MarketDataService:
    """
    Current quotes for a symbol or a batch of symbols.

    Providers are tried in order; the first usable answer wins and is cached
    for QUOTE_CACHE_TTL_SECONDS under the normalized symbol. When every
    provider fails the caller gets an explicit unavailable quote instead of
    an exception.
    """

    def __init__(self, providers: Optional[Sequence[Any]] = None, cache: Optional[TTLCache] = None):
        self.finnhub_client = None
        if providers is None:
            providers = self._default_providers()
        self.providers = list(providers)
        self.cache = cache if cache is not None else TTLCache(settings.QUOTE_CACHE_TTL_SECONDS)
        self._telemetry = {
            "quote_requests": 0,
            "cache_hit": 0,
            "fetch_success": 0,
            "fetch_error": 0,
            "provider_fallback": 0,
            "unavailable": 0,
        }
        self.last_error: Optional[str] = None
        logger.info(f"Market data service initialized with providers: {[p.name for p in self.providers]}")

    def _default_providers(self) -> List[Any]:
        providers = []
        if settings.FINNHUB_API_KEY:
            self.finnhub_client = FinnhubClient(
                api_key=settings.FINNHUB_API_KEY,
                timeout_seconds=settings.MARKET_TIMEOUT_SECONDS,
                base_url=settings.FINNHUB_BASE_URL,
                max_retries=settings.MARKET_MAX_RETRIES,
                max_concurrency=settings.MARKET_MAX_CONCURRENCY,
            )
            providers.append(FinnhubQuoteProvider(self.finnhub_client))
        if settings.YAHOO_ENABLED:
            providers.append(YahooQuoteProvider())
        if not providers:
            logger.warning("No market data provider configured; quotes will be unavailable")
        return providers

    async def close(self):
        if self.finnhub_client:
            await self.finnhub_client.close()

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Quote for one symbol; never raises"""
        key = normalize_symbol(symbol)
        self._telemetry["quote_requests"] += 1
        if not key:
            return unavailable_quote(symbol, "Symbol is required")

        cached = self.cache.get(key)
        if cached is not None:
            self._telemetry["cache_hit"] += 1
            return dict(cached)

        errors = []
        for index, provider in enumerate(self.providers):
            if index > 0:
                self._telemetry["provider_fallback"] += 1
            try:
                data = await provider.fetch_quote(key)
            except Exception as e:
                self._telemetry["fetch_error"] += 1
                errors.append(f"{provider.name}: {e}")
                logger.warning(f"Quote provider {provider.name} failed for {key}: {e}")
                continue
            if data.get("current_price") is None:
                self._telemetry["fetch_error"] += 1
                errors.append(f"{provider.name}: no price data")
                continue

            quote = {
                "symbol": key,
                "provider_symbol": provider.provider_symbol(key),
                "available": True,
                "source": provider.name,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": None,
                **data,
            }
            self.cache.set(key, dict(quote))
            self._telemetry["fetch_success"] += 1
            return quote

        self._telemetry["unavailable"] += 1
        self.last_error = "; ".join(errors) if errors else "No market data provider configured"
        logger.error(f"No quote available for {key}: {self.last_error}")
        return unavailable_quote(key, "No data available")

    async def get_quotes(self, symbols: Sequence[str]) -> List[Dict[str, Any]]:
        """Quotes for several symbols; one symbol failing never fails the batch"""
        results = await asyncio.gather(*(self.get_quote(symbol) for symbol in symbols), return_exceptions=True)
        quotes = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error fetching quote for {symbol}: {result}")
                quotes.append(unavailable_quote(symbol, "No data available"))
            else:
                quotes.append(result)
        return quotes

    async def search_symbols(self, query: str) -> List[Dict[str, Any]]:
        """Equity symbols matching a free-text query; empty list when every provider fails"""
        for provider in self.providers:
            try:
                results = await provider.search(query.strip(), settings.SEARCH_RESULT_LIMIT)
            except Exception as e:
                logger.warning(f"Symbol search via {provider.name} failed for {query!r}: {e}")
                continue
            if results:
                return results[:settings.SEARCH_RESULT_LIMIT]
        return []

    def get_market_health(self) -> Dict[str, Any]:
        health = {
            "providers": [provider.name for provider in self.providers],
            "telemetry": dict(self._telemetry),
            "cache_entries": len(self.cache),
            "last_error": self.last_error,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if self.finnhub_client:
            health["finnhub"] = self.finnhub_client.get_metrics()
        return health
