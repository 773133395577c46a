"""Finnhub quote lookups with deduplication and per-call timeouts."""

import asyncio
import logging
from typing import Any, Iterable, List, Optional

import httpx

from ..config import Settings
from ..errors import UpstreamPriceError
from ..models import PriceMap
from .validation import is_finite_number, normalize_symbol

logger = logging.getLogger(__name__)


def unique_symbols(symbols: Iterable[str]) -> List[str]:
    """Trimmed, upper-cased symbols with duplicates and blanks removed."""
    seen = set()
    result = []
    for raw in symbols:
        symbol = normalize_symbol(raw or "")
        if symbol and symbol not in seen:
            seen.add(symbol)
            result.append(symbol)
    return result


def extract_price(payload: Any) -> Optional[float]:
    """Current price (field ``c``) when it is a real JSON number."""
    if not isinstance(payload, dict):
        return None
    price = payload.get("c")
    if not is_finite_number(price):
        return None
    return price


class QuoteService:
    """Service for fetching latest quotes from the Finnhub REST API."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.finnhub_base_url,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_quote(self, symbol: str, token: str, timeout_ms: int) -> Optional[float]:
        """Fetch one quote, raising ``UpstreamPriceError`` on any failure."""
        timeout = timeout_ms / 1000
        try:
            response = await asyncio.wait_for(
                self.client.get(
                    "/quote",
                    params={"symbol": symbol, "token": token},
                    timeout=timeout,
                ),
                timeout=timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except asyncio.TimeoutError as e:
            raise UpstreamPriceError(f"Quote for {symbol} timed out after {timeout_ms} ms") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamPriceError(
                f"Quote for {symbol} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamPriceError(f"Quote for {symbol} failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamPriceError(f"Quote for {symbol} was not valid JSON") from e

        return extract_price(payload)

    async def get_latest_prices(
        self,
        symbols: Iterable[str],
        timeout_ms: Optional[int] = None,
    ) -> PriceMap:
        """Get latest prices for the unique symbol set.

        Never fails as a whole: each lookup that errors or times out is
        reported as ``None`` for its symbol while the others complete.
        """
        token = self.settings.require("FINNHUB_API_KEY")
        if timeout_ms is None:
            timeout_ms = self.settings.quote_timeout_ms

        wanted = unique_symbols(symbols)
        if not wanted:
            return {}

        logger.info(f"Fetching quotes for {len(wanted)} symbols: {', '.join(wanted)}")

        completed = await asyncio.gather(
            *[self.get_quote(symbol, token, timeout_ms) for symbol in wanted],
            return_exceptions=True,
        )

        prices: PriceMap = {}
        for symbol, result in zip(wanted, completed):
            if isinstance(result, Exception):
                logger.warning(f"Price lookup failed for {symbol}: {result}")
                prices[symbol] = None
            else:
                prices[symbol] = result

        resolved = sum(1 for price in prices.values() if price is not None)
        logger.info(f"Resolved {resolved}/{len(wanted)} quotes")
        return prices
