"""HTTP client for the eBay Finding API."""

from __future__ import annotations

from typing import Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Result
from rarefind.marketplaces.errors import MarketplaceError, NotConfiguredError
from rarefind.marketplaces.http import DEFAULT_TIMEOUT, ProviderHTTPClient
from rarefind.marketplaces.rate_limiter import RateLimitSource, TokenBucket

logger = get_logger(__name__)

FINDING_API_URL = "https://svcs.ebay.com/services/search/FindingService/v1"
OPERATION_NAME = "findItemsAdvanced"
SERVICE_VERSION = "1.0.0"


class EbayClient(ProviderHTTPClient):
    """
    HTTP client for the eBay Finding API.

    The Finding API only needs the App ID (``SECURITY-APPNAME``); there is no
    OAuth. All parameters travel in one query string.

    Attributes:
        site_id: eBay site, sent as ``GLOBAL-ID`` ``EBAY-<site>``.
    """

    def __init__(
        self,
        app_id: str,
        site_id: str = "US",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize eBay client.

        Args:
            app_id: eBay application ID.
            site_id: eBay site code, e.g. ``US`` or ``GB``.
            rate_limiter: Shared eBay bucket.
            timeout: Request timeout in seconds.

        Raises:
            NotConfiguredError: If app_id is empty.
        """
        if not app_id:
            raise NotConfiguredError("ebay", ["EBAY_APP_ID"])

        super().__init__(RateLimitSource.EBAY, rate_limiter=rate_limiter, timeout=timeout)
        self._app_id = app_id
        self.site_id = (site_id or "US").upper().removeprefix("EBAY-")

    @property
    def global_id(self) -> str:
        """Return the GLOBAL-ID protocol value."""
        return f"EBAY-{self.site_id}"

    def protocol_params(self) -> list[tuple[str, str]]:
        """Fixed parameters required on every Finding API call."""
        return [
            ("OPERATION-NAME", OPERATION_NAME),
            ("SERVICE-VERSION", SERVICE_VERSION),
            ("SECURITY-APPNAME", self._app_id),
            ("RESPONSE-DATA-FORMAT", "JSON"),
            ("GLOBAL-ID", self.global_id),
        ]

    async def find_items(
        self,
        params: list[tuple[str, str]],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Call ``findItemsAdvanced``.

        Args:
            params: Search parameters in wire order (keywords, item filters,
                sort and pagination).

        Returns:
            Result containing the raw response or MarketplaceError.
        """
        logger.info("Searching eBay", global_id=self.global_id, params=params)
        return await self._request(
            "GET",
            FINDING_API_URL,
            params=[*self.protocol_params(), *params],
            headers={"Accept": "application/json"},
        )
