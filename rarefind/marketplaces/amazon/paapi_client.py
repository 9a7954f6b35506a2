"""HTTP client for the Amazon Product Advertising API 5.0."""

from __future__ import annotations

import json
from typing import Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Result
from rarefind.marketplaces.amazon.signing import RequestSigner, SigningCredentials
from rarefind.marketplaces.errors import MarketplaceError, NotConfiguredError
from rarefind.marketplaces.http import DEFAULT_TIMEOUT, ProviderHTTPClient
from rarefind.marketplaces.rate_limiter import RateLimitSource, TokenBucket

logger = get_logger(__name__)

# AWS region -> Amazon storefront domain suffix
REGION_DOMAINS: dict[str, str] = {
    "us-east-1": "com",
    "us-west-1": "com",
    "us-west-2": "com",
    "eu-west-1": "co.uk",
    "eu-central-1": "de",
    "ap-southeast-1": "com.au",
    "ap-northeast-1": "co.jp",
}

DEFAULT_DOMAIN = "com"

# Resources requested for every item
ITEM_RESOURCES: tuple[str, ...] = (
    "Images.Primary.Large",
    "Images.Variants.Large",
    "ItemInfo.Title",
    "ItemInfo.Features",
    "ItemInfo.Classifications",
    "ItemInfo.ByLineInfo",
    "Offers.Listings.Price",
    "Offers.Listings.Availability.Type",
    "Offers.Listings.Condition",
    "Offers.Listings.MerchantInfo",
)


def domain_for_region(region: str) -> str:
    """Return the storefront domain suffix for a region, ``com`` when unknown."""
    return REGION_DOMAINS.get(region, DEFAULT_DOMAIN)


class PAAPIClient(ProviderHTTPClient):
    """
    HTTP client for PA-API 5.0.

    Every operation is a signed JSON POST to
    ``https://webservices.amazon.<domain>/paapi5/<operation>``.

    Attributes:
        region: AWS region of the endpoint.
        associate_tag: Partner tag sent with every request.
        host: Regional API host.
    """

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        associate_tag: str,
        region: str = "us-east-1",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize PA-API client.

        Args:
            access_key: AWS access key.
            secret_key: AWS secret key.
            associate_tag: Amazon Associates partner tag.
            region: AWS region (selects the storefront domain).
            rate_limiter: Shared PA-API bucket.
            timeout: Request timeout in seconds.

        Raises:
            NotConfiguredError: If any credential is empty.
        """
        missing = [
            name
            for name, value in (
                ("AMAZON_ACCESS_KEY", access_key),
                ("AMAZON_SECRET_KEY", secret_key),
                ("AMAZON_ASSOCIATE_TAG", associate_tag),
            )
            if not value
        ]
        if missing:
            raise NotConfiguredError("amazon", missing)

        super().__init__(RateLimitSource.AMAZON_PAAPI, rate_limiter=rate_limiter, timeout=timeout)
        self.region = region or "us-east-1"
        self.associate_tag = associate_tag
        self.host = f"webservices.amazon.{domain_for_region(self.region)}"
        self.signer = RequestSigner(SigningCredentials(access_key, secret_key, self.region))

    def endpoint(self, operation: str) -> str:
        """Return the URL of a PA-API operation."""
        return f"https://{self.host}/paapi5/{operation.lower()}"

    async def _call(
        self,
        operation: str,
        body: dict[str, Any],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Admit, sign and POST one operation."""
        request_body = {
            **body,
            "PartnerTag": self.associate_tag,
            "PartnerType": "Associates",
        }
        payload = json.dumps(request_body, separators=(",", ":"))
        url = self.endpoint(operation)

        await self.rate_limiter.admit()
        # Sign after admission so the timestamp reflects the actual send time
        headers = self.signer.sign("POST", url, payload, operation)
        return await self._send("POST", url, headers=headers, content=payload.encode("utf-8"))

    async def get_items(
        self,
        item_ids: list[str],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Call ``GetItems``.

        Args:
            item_ids: ASINs (already validated and upper-cased).

        Returns:
            Result containing the raw response or MarketplaceError.
        """
        logger.info("Getting Amazon items", item_ids=item_ids, region=self.region)
        return await self._call(
            "GetItems",
            {
                "ItemIds": item_ids,
                "Resources": list(ITEM_RESOURCES),
                "Condition": "Any",
                "CurrencyOfPreference": "USD",
                "LanguagesOfPreference": ["en_US"],
                "Merchant": "All",
                "OfferCount": 1,
            },
        )

    async def search_items(
        self,
        request: dict[str, Any],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Call ``SearchItems``.

        Args:
            request: Provider-specific search fields (Keywords, SearchIndex...).

        Returns:
            Result containing the raw response or MarketplaceError.
        """
        logger.info("Searching Amazon", request=request, region=self.region)
        return await self._call(
            "SearchItems",
            {**request, "Resources": list(ITEM_RESOURCES)},
        )
