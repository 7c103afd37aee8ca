from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from stock_financials.data_collector.config import EodhdConfig, eodhd_config
from stock_financials.utils.logger import get_logger


logger = get_logger(__name__)


class ProviderError(Exception):
    """Transport or HTTP failure from the EODHD API"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        ticker: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.ticker = ticker
        super().__init__(message)


class NotFoundError(ProviderError):
    """The provider has no fundamentals for the requested symbol"""


class EodhdFundamentalsClient:
    """
    Raw client that returns provider JSON for the fundamentals endpoints.
    Keeps HTTP concerns isolated (session, timeouts, error mapping).

    There are no retries here: single-ticker failures propagate to the
    caller and bulk failures are handled by the batch processor.
    """

    def __init__(self, config: Optional[EodhdConfig] = None) -> None:
        self.config = config or eodhd_config
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "EodhdFundamentalsClient":
        timeout = aiohttp.ClientTimeout(
            total=self.config.REQUEST_TIMEOUT, connect=self.config.CONNECTION_TIMEOUT
        )
        self.session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session:
            await self.session.close()

    async def _get(
        self, url: str, params: Dict[str, Any], ticker: Optional[str] = None
    ) -> Any:
        if not self.session:
            raise RuntimeError("Client session not initialized. Use async context manager.")

        query = {**self.config.base_params, **params}
        try:
            async with self.session.get(url, params=query) as resp:
                if resp.status == 200:
                    try:
                        return await resp.json(content_type=None)
                    except ValueError as e:
                        raise ProviderError(
                            f"Malformed JSON body ({url}): {e}", status_code=200, ticker=ticker
                        ) from e
                body = await resp.text()
                if resp.status == 404:
                    raise NotFoundError(
                        f"No fundamentals found ({url})", status_code=404, ticker=ticker
                    )
                raise ProviderError(
                    f"HTTP {resp.status}: {body[:200]}", status_code=resp.status, ticker=ticker
                )
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Request timed out ({url})", ticker=ticker) from e
        except aiohttp.ClientError as e:
            raise ProviderError(f"HTTP failure ({url}): {e}", ticker=ticker) from e

    async def get_fundamentals(self, ticker: str) -> Dict[str, Any]:
        """Fetch the full fundamentals payload for one ticker"""
        url = self.config.get_fundamentals_url(ticker)
        logger.info(f"Downloading financials for {ticker}...")
        try:
            return await self._get(url, {}, ticker=ticker)
        except ProviderError as e:
            logger.error(f"Failed to fetch data for {ticker}: {e}")
            raise

    async def get_bulk_fundamentals(
        self,
        exchange: str,
        symbols: Sequence[str],
        offset: Optional[int] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Fetch fundamentals for up to BULK_LIMIT symbols in one call.

        Args:
            exchange: Exchange code for the bulk endpoint (e.g. "US")
            symbols: Ticker symbols without exchange suffix; `exchange` is appended
            offset: Optional provider-side offset
            limit: Maximum number of entries the provider should return

        Returns:
            Payloads in the provider's response order
        """
        if len(symbols) > self.config.BULK_LIMIT:
            raise ValueError(
                f"Bulk request holds {len(symbols)} symbols; the provider limit is {self.config.BULK_LIMIT}"
            )

        url = self.config.get_bulk_fundamentals_url(exchange)
        params: Dict[str, Any] = {
            "symbols": ",".join(f"{s}.{exchange}" for s in symbols),
            "limit": limit,
            "version": self.config.BULK_API_VERSION,
        }
        if offset is not None:
            params["offset"] = offset

        logger.info(f"Fetching bulk fundamentals for {len(symbols)} symbols on {exchange}")
        data = await self._get(url, params)
        return self._as_list(data)

    @staticmethod
    def _as_list(data: Any) -> List[Dict[str, Any]]:
        # the bulk endpoint answers either a list or an object keyed "0", "1", ...
        if data is None:
            return []
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            keys = sorted(data, key=lambda k: int(k) if str(k).isdigit() else float("inf"))
            return [data[k] for k in keys if isinstance(data[k], dict)]
        raise ProviderError(f"Unexpected bulk response type: {type(data).__name__}")
