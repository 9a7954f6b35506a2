"""HTTP client for the RapidAPI Real-Time Amazon Data API."""

from __future__ import annotations

from typing import Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Result
from rarefind.marketplaces.errors import MarketplaceError, NotConfiguredError
from rarefind.marketplaces.http import DEFAULT_TIMEOUT, ProviderHTTPClient
from rarefind.marketplaces.rate_limiter import RateLimitSource, TokenBucket

logger = get_logger(__name__)

DEFAULT_API_HOST = "real-time-amazon-data.p.rapidapi.com"

KEY_HEADER = "X-RapidAPI-Key"
HOST_HEADER = "X-RapidAPI-Host"


class RapidAPIClient(ProviderHTTPClient):
    """
    HTTP client for RapidAPI Real-Time Amazon Data.

    Authentication is two static headers; every call is a GET with query
    parameters.

    Attributes:
        api_host: RapidAPI host, also used as the base URL.
        country: Amazon storefront country code.
    """

    def __init__(
        self,
        api_key: str,
        api_host: str = DEFAULT_API_HOST,
        country: str = "US",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize RapidAPI client.

        Args:
            api_key: RapidAPI key.
            api_host: RapidAPI host.
            country: Amazon storefront country code.
            rate_limiter: Shared RapidAPI bucket.
            timeout: Request timeout in seconds.

        Raises:
            NotConfiguredError: If the API key is empty.
        """
        if not api_key:
            raise NotConfiguredError("amazon-rapidapi", ["RAPIDAPI_KEY"])

        super().__init__(
            RateLimitSource.AMAZON_RAPIDAPI, rate_limiter=rate_limiter, timeout=timeout
        )
        self._api_key = api_key
        self.api_host = api_host or DEFAULT_API_HOST
        self.country = country

    @property
    def base_url(self) -> str:
        """Return the API base URL."""
        return f"https://{self.api_host}"

    def _headers(self) -> dict[str, str]:
        return {KEY_HEADER: self._api_key, HOST_HEADER: self.api_host}

    async def product_details(self, asin: str) -> Result[dict[str, Any], MarketplaceError]:
        """
        Get product details for an ASIN.

        Args:
            asin: Upper-cased ASIN.

        Returns:
            Result containing the raw response envelope or MarketplaceError.
        """
        logger.info("Getting RapidAPI Amazon product", asin=asin, country=self.country)
        return await self._request(
            "GET",
            f"{self.base_url}/product-details",
            params={"asin": asin, "country": self.country},
            headers=self._headers(),
        )

    async def search(self, params: dict[str, str]) -> Result[dict[str, Any], MarketplaceError]:
        """
        Search products.

        Args:
            params: Query parameters other than the country.

        Returns:
            Result containing the raw response envelope or MarketplaceError.
        """
        query = {**params, "country": self.country}
        logger.info("Searching RapidAPI Amazon", params=query)
        return await self._request(
            "GET",
            f"{self.base_url}/search",
            params=query,
            headers=self._headers(),
        )
