"""eBay Finding API marketplace adapter."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Failure, Result, failure, success
from rarefind.marketplaces.base import Condition, Listing, Marketplace, SearchResult, SortBy
from rarefind.marketplaces.ebay.client import OPERATION_NAME, EbayClient
from rarefind.marketplaces.errors import (
    MarketplaceError,
    ProviderError,
    UnsupportedOperationError,
)

if TYPE_CHECKING:
    from rarefind.marketplaces.base import SearchParams
    from rarefind.marketplaces.rate_limiter import TokenBucket

logger = get_logger(__name__)

RESPONSE_KEY = f"{OPERATION_NAME}Response"

_CONDITION_FILTER = {
    Condition.NEW: "1000",
    Condition.USED: "3000",
    Condition.VINTAGE: "175673",
    Condition.COLLECTIBLE: "2000",
    Condition.REFURBISHED: "2000",
}

_SORT = {
    SortBy.PRICE: "PricePlusShippingLowest",
    SortBy.RELEVANCE: "BestMatch",
    SortBy.NEWEST: "StartTimeNewest",
}

# Display-name keywords, checked in order
_CONDITION_NAMES: tuple[tuple[str, Condition], ...] = (
    ("refurbished", Condition.REFURBISHED),
    ("pre-owned", Condition.USED),
    ("used", Condition.USED),
    ("parts", Condition.USED),
    ("vintage", Condition.VINTAGE),
    ("collectible", Condition.COLLECTIBLE),
)


def unwrap(value: Any) -> Any:
    """
    Strip the singleton array the XML-to-JSON conversion wraps fields in.

    A value that is not wrapped is returned as is; an empty array is None.
    """
    if isinstance(value, list):
        return value[0] if value else None
    return value


def dig(node: Any, *path: str) -> Any:
    """Follow ``path`` through wrapped objects, returning None when absent."""
    current = unwrap(node)
    for key in path:
        if not isinstance(current, dict):
            return None
        current = unwrap(current.get(key))
    return current


def text(node: Any, *path: str) -> str | None:
    """Like ``dig`` but only returns non-empty strings."""
    value = dig(node, *path)
    if isinstance(value, (str, int, float)) and str(value):
        return str(value)
    return None


def integer(node: Any, *path: str, default: int) -> int:
    """Parse an integer field, falling back to ``default``."""
    value = text(node, *path)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def build_item_filters(params: SearchParams) -> list[tuple[str, str]]:
    """
    Build positional ``itemFilter(n)`` parameters.

    The Finding API has no named filter slots, so indices are assigned in
    order of the filters present.
    """
    filters: list[tuple[str, str]] = []
    if params.min_price is not None:
        filters.append(("MinPrice", str(params.min_price)))
    if params.max_price is not None:
        filters.append(("MaxPrice", str(params.max_price)))
    if params.condition is not None:
        filters.append(("Condition", _CONDITION_FILTER.get(params.condition, "1000")))

    wire: list[tuple[str, str]] = []
    for index, (name, value) in enumerate(filters):
        wire.append((f"itemFilter({index}).name", name))
        wire.append((f"itemFilter({index}).value", value))
    return wire


class EbayAdapter:
    """
    Adapter for the eBay Finding API.

    Search only: single-item lookup is not offered, callers use the listing
    from a search result directly.
    """

    def __init__(
        self,
        app_id: str = "",
        site_id: str = "US",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float | None = None,
        client: EbayClient | None = None,
    ) -> None:
        """
        Initialize eBay adapter.

        Args:
            app_id: eBay application ID.
            site_id: eBay site code.
            rate_limiter: Shared eBay bucket.
            timeout: Request timeout in seconds.
            client: Optional pre-configured client for testing.

        Raises:
            NotConfiguredError: If no client is given and app_id is missing.
        """
        if client is None:
            kwargs: dict[str, Any] = {"rate_limiter": rate_limiter}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = EbayClient(app_id, site_id, **kwargs)
        self._client = client

    @property
    def marketplace(self) -> Marketplace:
        """Return the marketplace served."""
        return Marketplace.EBAY

    async def fetch_by_id(
        self,
        marketplace_id: str,
    ) -> Result[Listing | None, MarketplaceError]:
        """Single-item lookup is not supported by this client."""
        logger.warning("eBay single-item lookup requested", marketplace_id=marketplace_id)
        return failure(UnsupportedOperationError(Marketplace.EBAY.value, "fetch_by_id"))

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, MarketplaceError]:
        """
        Search eBay.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult or MarketplaceError.
        """
        result = await self._client.find_items(self.build_query(params))
        if isinstance(result, Failure):
            return failure(result.error)

        response = dig(result.value, RESPONSE_KEY)
        if text(response, "ack") == "Failure":
            message = text(response, "errorMessage", "error", "message") or "Unknown error"
            logger.error("eBay API reported a failure", message=message)
            return failure(
                ProviderError(
                    marketplace=Marketplace.EBAY.value,
                    message=message,
                    status_code=200,
                    details=str(dig(response, "errorMessage")),
                )
            )

        raw_items = dig(response, "searchResult")
        items = raw_items.get("item") if isinstance(raw_items, dict) else None
        if isinstance(items, dict):
            items = [items]
        listings = self._parse_items(items or [])

        total = integer(response, "paginationOutput", "totalEntries", default=len(listings))
        total_pages = integer(response, "paginationOutput", "totalPages", default=1)
        current_page = integer(response, "paginationOutput", "pageNumber", default=1)

        return success(
            SearchResult(
                listings=tuple(listings),
                total=total,
                has_more=current_page < total_pages,
            )
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    def build_query(self, params: SearchParams) -> list[tuple[str, str]]:
        """Translate generic search parameters into Finding API parameters."""
        query: list[tuple[str, str]] = []
        if params.query:
            query.append(("keywords", params.query))
        if params.category:
            query.append(("categoryId", params.category))
        query.extend(build_item_filters(params))
        if params.sort_by is not None:
            query.append(("sortOrder", _SORT.get(params.sort_by, "BestMatch")))
        query.append(("paginationInput.entriesPerPage", str(params.limit)))
        if params.offset:
            query.append(("paginationInput.pageNumber", str(params.page)))
        return query

    def _parse_items(self, items: list[Any]) -> list[Listing]:
        """Parse items, skipping any that cannot be parsed."""
        listings = []
        for item in items:
            try:
                listings.append(self._parse_item(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Skipping unparseable eBay item",
                    item_id=text(item, "itemId") or "unknown",
                    error=str(e),
                )
        return listings

    def _parse_item(self, item: dict[str, Any]) -> Listing:
        """
        Parse a Finding API item into a Listing.

        Raises:
            ValueError: If the item has no identifier.
        """
        item_id = text(item, "itemId")
        if item_id is None:
            msg = "item has no itemId"
            raise ValueError(msg)

        price_node = dig(item, "sellingStatus", "currentPrice")
        currency = text(price_node, "@currencyId") or "USD"

        return Listing(
            id=item_id,
            marketplace=Marketplace.EBAY,
            marketplace_id=item_id,
            title=text(item, "title") or "Unknown Title",
            price=self._extract_price(price_node),
            currency=currency,
            images=tuple(self._extract_images(item)),
            category=text(item, "primaryCategory", "categoryName") or text(item, "categoryName"),
            condition=self._extract_condition(item),
            seller_name=text(item, "sellerInfo", "sellerUserName"),
            seller_rating=self._extract_seller_rating(item),
            listing_url=text(item, "viewItemURL") or f"https://www.ebay.com/itm/{item_id}",
            available=text(item, "sellingStatus", "listingStatus") != "Ended",
        )

    def _extract_price(self, price_node: Any) -> Decimal:
        value = text(price_node, "__value__")
        if value is None:
            return Decimal(0)
        try:
            price = Decimal(value)
        except InvalidOperation:
            return Decimal(0)
        return price if price.is_finite() and price >= 0 else Decimal(0)

    def _extract_images(self, item: dict[str, Any]) -> list[str]:
        images = []
        for key in ("galleryURL", "pictureURLLarge", "pictureURLSuperSize"):
            url = text(item, key)
            if url:
                images.append(url)
        return images

    def _extract_seller_rating(self, item: dict[str, Any]) -> float | None:
        percent = text(item, "sellerInfo", "positiveFeedbackPercent")
        if percent is None:
            return None
        try:
            value = float(percent)
        except ValueError:
            return None
        if math.isnan(value):
            return None
        # Convert percentage to 0-5 scale
        return min(max(value, 0.0), 100.0) / 100 * 5

    def _extract_condition(self, item: dict[str, Any]) -> Condition:
        name = (text(item, "condition", "conditionDisplayName") or "").lower()
        for keyword, condition in _CONDITION_NAMES:
            if keyword in name:
                return condition
        return Condition.NEW
