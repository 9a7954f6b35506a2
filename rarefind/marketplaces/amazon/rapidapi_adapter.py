"""RapidAPI Real-Time Amazon Data marketplace adapter."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from rarefind.core.logging import get_logger
from rarefind.core.result import Failure, Result, failure, success
from rarefind.marketplaces.amazon.paapi_adapter import is_valid_asin
from rarefind.marketplaces.amazon.rapidapi_client import DEFAULT_API_HOST, RapidAPIClient
from rarefind.marketplaces.base import Condition, Listing, Marketplace, SearchResult, SortBy
from rarefind.marketplaces.errors import InvalidIdentifierError, MarketplaceError, ParseError

if TYPE_CHECKING:
    from rarefind.marketplaces.base import SearchParams
    from rarefind.marketplaces.rate_limiter import TokenBucket

logger = get_logger(__name__)

# Attribute keys that add noise to a synthesized description
DESCRIPTION_DENYLIST = frozenset({"ASIN", "Customer Reviews", "Best Sellers Rank"})

UNAVAILABLE_MARKERS = ("out of stock", "unavailable", "currently unavailable")

# Checked in order; the first keyword found in title or description wins
CONDITION_KEYWORDS: tuple[tuple[str, Condition], ...] = (
    ("refurbished", Condition.REFURBISHED),
    ("renewed", Condition.REFURBISHED),
    ("used", Condition.USED),
    ("vintage", Condition.VINTAGE),
    ("collectible", Condition.COLLECTIBLE),
)

_PRICE_NOISE = re.compile(r"[$,\s]")
_RATING = re.compile(r"(\d+(?:\.\d+)?)")

_SORT = {
    SortBy.PRICE: "LOWEST_PRICE",
    SortBy.RELEVANCE: "RELEVANCE",
    SortBy.NEWEST: "NEWEST",
}


def parse_price(value: str | None) -> Decimal:
    """
    Parse ``"$12.99"``, ``"12.99"`` or ``"$1,234.56"``.

    Returns:
        The price, or ``Decimal(0)`` if missing or not numeric.
    """
    if not value:
        return Decimal(0)
    try:
        price = Decimal(_PRICE_NOISE.sub("", str(value)))
    except InvalidOperation:
        return Decimal(0)
    if not price.is_finite() or price < 0:
        return Decimal(0)
    return price


def parse_rating(value: str | None) -> float | None:
    """Parse ``"4.5 out of 5 stars"`` or ``"4.5"`` into 4.5."""
    if not value:
        return None
    match = _RATING.search(str(value))
    if match is None:
        return None
    rating = float(match.group(1))
    return rating if 0 <= rating <= 5 else None


def infer_condition(title: str | None, description: str | None = None) -> Condition:
    """Infer the condition from title then description keywords."""
    haystacks = [(title or "").lower(), (description or "").lower()]
    for keyword, condition in CONDITION_KEYWORDS:
        if any(keyword in text for text in haystacks):
            return condition
    return Condition.NEW


def is_available(message: str | None) -> bool:
    """A missing availability message means available."""
    if not message:
        return True
    lowered = message.lower()
    return not any(marker in lowered for marker in UNAVAILABLE_MARKERS)


def build_description(product: dict[str, Any]) -> str | None:
    """
    Synthesize a description.

    Order: brand line, free text, then bullet lines from ``product_details``
    and ``product_information`` (denylisted keys removed).
    """
    parts: list[str] = []
    if product.get("brand"):
        parts.append(f"Brand: {product['brand']}")
    if product.get("product_description"):
        parts.append(str(product["product_description"]))
    for key in ("product_details", "product_information"):
        attributes = product.get(key)
        if not isinstance(attributes, dict):
            continue
        bullets = "\n".join(
            f"• {name}: {value}"
            for name, value in attributes.items()
            if name not in DESCRIPTION_DENYLIST
        )
        if bullets:
            parts.append(bullets)
    return "\n\n".join(parts) or None


class RapidAPIAdapter:
    """
    Adapter for RapidAPI Real-Time Amazon Data.

    An alternative to PA-API that only needs an API key. Search results are
    lighter than product details: one photo and no description.
    """

    def __init__(
        self,
        api_key: str = "",
        api_host: str = DEFAULT_API_HOST,
        country: str = "US",
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float | None = None,
        client: RapidAPIClient | None = None,
    ) -> None:
        """
        Initialize RapidAPI adapter.

        Args:
            api_key: RapidAPI key.
            api_host: RapidAPI host.
            country: Amazon storefront country code.
            rate_limiter: Shared RapidAPI bucket.
            timeout: Request timeout in seconds.
            client: Optional pre-configured client for testing.

        Raises:
            NotConfiguredError: If no client is given and the key is missing.
        """
        if client is None:
            kwargs: dict[str, Any] = {"rate_limiter": rate_limiter}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = RapidAPIClient(api_key, api_host, country, **kwargs)
        self._client = client

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
            Result containing the listing, None when the API has no data for
            the ASIN, or MarketplaceError.
        """
        if not is_valid_asin(marketplace_id):
            return failure(InvalidIdentifierError(Marketplace.AMAZON.value, str(marketplace_id)))

        asin = marketplace_id.upper()
        result = await self._client.product_details(asin)
        if isinstance(result, Failure):
            return failure(result.error)

        envelope = result.value
        product = envelope.get("data")
        if envelope.get("status") != "OK" or not isinstance(product, dict) or not product:
            logger.info("RapidAPI returned no product", asin=asin, status=envelope.get("status"))
            return success(None)

        try:
            return success(self._parse_product(product, asin))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Failed to parse RapidAPI product", asin=asin, error=str(e))
            return failure(
                ParseError(
                    marketplace=Marketplace.AMAZON.value,
                    message="Failed to parse product",
                    details=str(e),
                )
            )

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, MarketplaceError]:
        """
        Search products.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult or MarketplaceError.
        """
        result = await self._client.search(self.build_search_params(params))
        if isinstance(result, Failure):
            return failure(result.error)

        envelope = result.value
        data = envelope.get("data")
        if envelope.get("status") != "OK" or not isinstance(data, dict):
            return success(SearchResult())

        listings = []
        for product in data.get("products") or []:
            try:
                listings.append(self._parse_search_item(product))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Skipping unparseable RapidAPI product",
                    asin=product.get("asin", "unknown") if isinstance(product, dict) else "unknown",
                    error=str(e),
                )

        try:
            total = int(data.get("total_products") or 0)
        except (TypeError, ValueError):
            total = len(listings)
        total = max(total, len(listings))

        return success(
            SearchResult(
                listings=tuple(listings),
                total=total,
                has_more=len(listings) < total,
            )
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    def build_search_params(self, params: SearchParams) -> dict[str, str]:
        """Translate generic search parameters into query parameters."""
        query = {"query": params.query, "page": str(params.page)}
        if params.min_price:
            query["min_price"] = str(params.min_price)
        if params.max_price:
            query["max_price"] = str(params.max_price)
        if params.sort_by:
            query["sort_by"] = _SORT.get(params.sort_by, "RELEVANCE")
        return query

    def _parse_product(self, product: dict[str, Any], asin: str) -> Listing:
        """Parse a product-details payload into a Listing."""
        marketplace_id = str(product.get("asin") or asin).upper()
        title = product.get("product_title") or "Unknown Title"
        description = build_description(product)
        price = parse_price(product.get("product_price"))
        if price == 0:
            price = parse_price(product.get("product_original_price"))

        return Listing(
            id=marketplace_id,
            marketplace=Marketplace.AMAZON,
            marketplace_id=marketplace_id,
            title=title,
            description=description,
            price=price,
            currency="USD",
            images=tuple(product.get("product_photos") or ()),
            category=product.get("product_category"),
            condition=infer_condition(title, product.get("product_description")),
            seller_name=product.get("seller_name"),
            seller_rating=parse_rating(product.get("product_star_rating")),
            listing_url=product.get("product_url") or f"https://www.amazon.com/dp/{marketplace_id}",
            available=is_available(product.get("product_availability")),
        )

    def _parse_search_item(self, product: dict[str, Any]) -> Listing:
        """Parse a lightweight search result into a Listing."""
        marketplace_id = str(product["asin"]).upper()
        title = product.get("product_title") or "Unknown Title"
        photo = product.get("product_photo")
        return Listing(
            id=marketplace_id,
            marketplace=Marketplace.AMAZON,
            marketplace_id=marketplace_id,
            title=title,
            price=parse_price(product.get("product_price")),
            currency="USD",
            images=(photo,) if photo else (),
            condition=infer_condition(title),
            seller_rating=parse_rating(product.get("product_star_rating")),
            listing_url=product.get("product_url") or f"https://www.amazon.com/dp/{marketplace_id}",
        )
