"""CoinGecko price client: current, batch and historical USD prices."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from nova.config import settings
from nova.errors import (
    InvalidResponseError,
    PriceNetworkError,
    PriceNotFoundError,
    RateLimitExceededError,
)
from nova.prices.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

_shared_limiter: RateLimiter | None = None


def get_shared_limiter() -> RateLimiter:
    """Return the process-wide limiter for the price source."""
    global _shared_limiter  # noqa: PLW0603
    if _shared_limiter is None:
        _shared_limiter = RateLimiter(settings.price_min_interval_ms / 1000)
    return _shared_limiter


@dataclass(frozen=True)
class PriceQuote:
    """A USD price for one coin, either current ("now") or on a dd-mm-yyyy date."""

    coin_id: str
    usd_price: float
    as_of: str = "now"


def _as_price(value: Any, coin_id: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"Non-numeric price for {coin_id}: {value!r}"
        raise InvalidResponseError(msg)
    return float(value)


class CoinGeckoClient:
    """Read-only client for the CoinGecko public API.

    Every request goes through the injected :class:`RateLimiter` first.
    Failures are classified into the ``PriceError`` family:

    - HTTP 429 → ``RateLimitExceededError``
    - any other non-2xx status or an unreadable body → ``InvalidResponseError``
    - a readable body without the coin/currency → ``PriceNotFoundError``
    - timeouts and transport errors → ``PriceNetworkError``
    """

    def __init__(
        self,
        limiter: RateLimiter | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._limiter = limiter or get_shared_limiter()
        self._base_url = (base_url or settings.coingecko_api_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.price_timeout_seconds

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        await self._limiter.acquire()

        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    url, params=params, headers={"Accept": "application/json"}
                )
        except httpx.TimeoutException as exc:
            msg = f"CoinGecko request timed out after {self._timeout:g}s"
            raise PriceNetworkError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"CoinGecko request failed: {exc}"
            raise PriceNetworkError(msg) from exc

        if resp.status_code == 429:
            logger.warning("CoinGecko rate limit reached (%s)", path)
            raise RateLimitExceededError

        if not resp.is_success:
            logger.warning("CoinGecko returned status %d for %s", resp.status_code, path)
            msg = f"Status code: {resp.status_code}"
            raise InvalidResponseError(msg)

        try:
            return resp.json()
        except ValueError as exc:
            msg = "Response body is not valid JSON"
            raise InvalidResponseError(msg) from exc

    async def current_price(self, coin_id: str) -> PriceQuote:
        """Fetch the current USD price of *coin_id*."""
        data = await self._get_json(
            "/simple/price", {"ids": coin_id, "vs_currencies": "usd"}
        )
        if not isinstance(data, dict):
            msg = "Expected a JSON object"
            raise InvalidResponseError(msg)

        prices = data.get(coin_id)
        if not isinstance(prices, dict):
            raise PriceNotFoundError(coin_id)
        if "usd" not in prices:
            raise PriceNotFoundError(f"USD price for {coin_id}")

        quote = PriceQuote(coin_id=coin_id, usd_price=_as_price(prices["usd"], coin_id))
        logger.info("Current price %s = %s", coin_id, quote.usd_price)
        return quote

    async def current_prices(self, coin_ids: list[str]) -> dict[str, float]:
        """Fetch current USD prices for several coins in one request.

        Coins missing from the response are left out of the result.
        """
        if not coin_ids:
            return {}

        data = await self._get_json(
            "/simple/price", {"ids": ",".join(coin_ids), "vs_currencies": "usd"}
        )
        if not isinstance(data, dict):
            msg = "Expected a JSON object"
            raise InvalidResponseError(msg)

        result: dict[str, float] = {}
        for coin_id in coin_ids:
            prices = data.get(coin_id)
            if isinstance(prices, dict) and "usd" in prices:
                result[coin_id] = _as_price(prices["usd"], coin_id)
        return result

    async def historical_price(self, coin_id: str, date: str) -> PriceQuote:
        """Fetch the USD price of *coin_id* on *date* (``dd-mm-yyyy``)."""
        data = await self._get_json(
            f"/coins/{coin_id}/history", {"date": date, "localization": "false"}
        )
        if not isinstance(data, dict):
            msg = "Expected a JSON object"
            raise InvalidResponseError(msg)

        # CoinGecko omits market_data for dates before a coin was listed.
        market_data = data.get("market_data") or {}
        current = market_data.get("current_price") or {}
        if "usd" not in current:
            raise PriceNotFoundError(f"Historical USD price for {coin_id}")

        quote = PriceQuote(
            coin_id=coin_id, usd_price=_as_price(current["usd"], coin_id), as_of=date
        )
        logger.info("Historical price %s on %s = %s", coin_id, date, quote.usd_price)
        return quote
