"""Amazon PA-API 5.0 marketplace adapter."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Failure, Result, failure, success
from rarefind.marketplaces.amazon.paapi_client import PAAPIClient, domain_for_region
from rarefind.marketplaces.base import (
    Condition,
    Listing,
    Marketplace,
    SearchResult,
    SortBy,
)
from rarefind.marketplaces.errors import (
    InvalidIdentifierError,
    MarketplaceError,
    ParseError,
    ProviderError,
)

if TYPE_CHECKING:
    from rarefind.marketplaces.base import SearchParams
    from rarefind.marketplaces.rate_limiter import TokenBucket

logger = get_logger(__name__)

ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$", re.IGNORECASE)

# Provider error codes that mean "no such item" rather than a failure
NOT_FOUND_ERROR_CODES = frozenset({"InvalidParameterValue", "ItemNotEligible"})
NO_RESULTS_ERROR_CODE = "NoResults"

# PA-API returns at most 10 items per page
MAX_ITEM_COUNT = 10

_NUMBER = re.compile(r"\d+(?:\.\d+)?")

_SEARCH_INDEX = {
    "antique": "Collectibles",
    "collectible": "Collectibles",
    "vintage": "Collectibles",
}

_CONDITION_FILTER = {
    Condition.NEW: "New",
    Condition.USED: "Used",
    Condition.VINTAGE: "Collectible",
    Condition.COLLECTIBLE: "Collectible",
    Condition.REFURBISHED: "Refurbished",
}

_SORT = {
    SortBy.PRICE: "Price:LowToHigh",
    SortBy.RELEVANCE: "Relevance",
    SortBy.NEWEST: "NewestArrivals",
}

_CONDITION_VALUES = {
    "new": Condition.NEW,
    "used": Condition.USED,
    "refurbished": Condition.REFURBISHED,
    "collectible": Condition.COLLECTIBLE,
}


def is_valid_asin(value: object) -> bool:
    """Return True for a 10-character alphanumeric ASIN (any case)."""
    return isinstance(value, str) and ASIN_PATTERN.match(value) is not None


def parse_display_price(display: str | None) -> Decimal:
    """
    Parse a display price such as ``"$12.99"`` or ``"$1,234.56"``.

    Returns:
        The first number in the string, or ``Decimal(0)`` if there is none.
    """
    if not display:
        return Decimal(0)
    match = _NUMBER.search(display.replace(",", ""))
    if match is None:
        return Decimal(0)
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)


def _dig(data: Any, *keys: str) -> Any:
    """Walk nested dictionaries, returning None at the first missing level."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _to_cents(amount: Decimal) -> int:
    # PA-API expects prices in the lowest currency denomination
    return int(amount * 100)


class PAAPIAdapter:
    """
    Adapter for the Amazon Product Advertising API.

    Validates ASINs locally, translates generic search parameters into PA-API
    fields and maps PA-API items into canonical listings.
    """

    def __init__(
        self,
        access_key: str = "",
        secret_key: str = "",
        associate_tag: str = "",
        region: str = "us-east-1",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float | None = None,
        client: PAAPIClient | None = None,
    ) -> None:
        """
        Initialize PA-API adapter.

        Args:
            access_key: AWS access key.
            secret_key: AWS secret key.
            associate_tag: Amazon Associates partner tag.
            region: AWS region.
            rate_limiter: Shared PA-API bucket.
            timeout: Request timeout in seconds.
            client: Optional pre-configured client for testing.

        Raises:
            NotConfiguredError: If no client is given and credentials are missing.
        """
        if client is None:
            kwargs: dict[str, Any] = {"rate_limiter": rate_limiter}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = PAAPIClient(access_key, secret_key, associate_tag, region, **kwargs)
        self._client = client
        self._domain = domain_for_region(getattr(client, "region", region))

    @property
    def marketplace(self) -> Marketplace:
        """Return the marketplace served."""
        return Marketplace.AMAZON

    async def fetch_by_id(
        self,
        marketplace_id: str,
    ) -> Result[Listing | None, MarketplaceError]:
        """
        Get a listing by ASIN.

        Args:
            marketplace_id: ASIN in any case.

        Returns:
            Result containing the listing, None when Amazon reports the item as
            missing or not eligible, or MarketplaceError.
        """
        if not is_valid_asin(marketplace_id):
            return failure(InvalidIdentifierError(Marketplace.AMAZON.value, str(marketplace_id)))

        asin = marketplace_id.upper()
        result = await self._client.get_items([asin])
        if isinstance(result, Failure):
            return failure(result.error)

        data = result.value
        errors = data.get("Errors") or []
        if errors:
            code = _dig(errors[0], "Code")
            if code in NOT_FOUND_ERROR_CODES:
                logger.info("Amazon item not available", asin=asin, code=code)
                return success(None)
            return failure(self._provider_error(errors[0]))

        items = _dig(data, "ItemsResult", "Items") or []
        if not items:
            return success(None)

        try:
            return success(self._parse_item(items[0], feature_separator="\n"))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Failed to parse Amazon item", asin=asin, error=str(e))
            return failure(
                ParseError(
                    marketplace=Marketplace.AMAZON.value,
                    message="Failed to parse item",
                    details=str(e),
                )
            )

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, MarketplaceError]:
        """
        Search Amazon.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult or MarketplaceError.
        """
        result = await self._client.search_items(self.build_search_request(params))
        if isinstance(result, Failure):
            return failure(result.error)

        data = result.value
        errors = data.get("Errors") or []
        if errors:
            if _dig(errors[0], "Code") == NO_RESULTS_ERROR_CODE:
                return success(SearchResult())
            return failure(self._provider_error(errors[0]))

        items = _dig(data, "SearchResult", "Items") or []
        listings = self._parse_items(items)
        reported = _dig(data, "SearchResult", "TotalResultCount")
        try:
            total = int(reported) if reported else len(listings)
        except (TypeError, ValueError):
            total = len(listings)

        return success(
            SearchResult(
                listings=tuple(listings),
                total=total,
                has_more=total > len(listings),
            )
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    def build_search_request(self, params: SearchParams) -> dict[str, Any]:
        """Translate generic search parameters into SearchItems fields."""
        request: dict[str, Any] = {
            "SearchIndex": _SEARCH_INDEX.get((params.category or "").lower(), "All"),
            "ItemCount": min(params.limit, MAX_ITEM_COUNT),
            "ItemPage": params.page,
            "Condition": _CONDITION_FILTER.get(params.condition, "Any"),
            "SortBy": _SORT.get(params.sort_by, "Relevance"),
        }
        if params.query:
            request["Keywords"] = params.query
        if params.min_price is not None:
            request["MinPrice"] = _to_cents(params.min_price)
        if params.max_price is not None:
            request["MaxPrice"] = _to_cents(params.max_price)
        return request

    def _provider_error(self, error: dict[str, Any]) -> MarketplaceError:
        code = _dig(error, "Code") or "Unknown"
        message = _dig(error, "Message") or "Unknown error"
        logger.error("Amazon API reported an error", code=code, message=message)
        return ProviderError(
            marketplace=Marketplace.AMAZON.value,
            message=f"{code}: {message}",
            status_code=200,
            details=str(error),
        )

    def _parse_items(self, items: list[dict[str, Any]]) -> list[Listing]:
        """Parse search items, skipping any that cannot be parsed."""
        listings = []
        for item in items:
            try:
                listings.append(self._parse_item(item, feature_separator=" "))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Skipping unparseable Amazon item",
                    asin=_dig(item, "ASIN") or "unknown",
                    error=str(e),
                )
        return listings

    def _parse_item(self, item: dict[str, Any], feature_separator: str) -> Listing:
        """
        Parse a PA-API item into a Listing.

        Raises:
            KeyError: If the item has no ASIN.
        """
        asin = str(item["ASIN"]).upper()
        offer = _first(_dig(item, "Offers", "Listings"))

        features = _dig(item, "ItemInfo", "Features", "DisplayValues") or []
        description = feature_separator.join(str(f) for f in features) or None

        return Listing(
            id=asin,
            marketplace=Marketplace.AMAZON,
            marketplace_id=asin,
            title=_dig(item, "ItemInfo", "Title", "DisplayValue") or "Unknown Title",
            description=description,
            price=self._extract_price(offer),
            currency=_dig(offer, "Price", "Currency") or "USD",
            images=tuple(self._extract_images(item)),
            category=_dig(item, "ItemInfo", "Classifications", "ProductGroup", "DisplayValue"),
            condition=self._extract_condition(offer),
            seller_name=_dig(offer, "MerchantInfo", "Name"),
            listing_url=item.get("DetailPageURL") or f"https://www.amazon.{self._domain}/dp/{asin}",
            available=_dig(offer, "Availability", "Type") == "Now",
        )

    def _extract_price(self, offer: dict[str, Any] | None) -> Decimal:
        amount = _dig(offer, "Price", "Amount")
        if amount:
            try:
                return max(Decimal(str(amount)), Decimal(0))
            except InvalidOperation:
                pass
        return parse_display_price(_dig(offer, "Price", "DisplayAmount"))

    def _extract_images(self, item: dict[str, Any]) -> list[str]:
        images = []
        primary = _dig(item, "Images", "Primary", "Large", "URL")
        if primary:
            images.append(primary)
        for variant in _dig(item, "Images", "Variants") or []:
            url = _dig(variant, "Large", "URL")
            if url:
                images.append(url)
        return images

    def _extract_condition(self, offer: dict[str, Any] | None) -> Condition:
        label = _dig(offer, "Condition", "Value") or _dig(offer, "Condition", "DisplayValue")
        if not isinstance(label, str):
            return Condition.NEW
        return _CONDITION_VALUES.get(label.strip().lower(), Condition.NEW)


def _first(values: Any) -> dict[str, Any] | None:
    if isinstance(values, list) and values and isinstance(values[0], dict):
        return values[0]
    return None
