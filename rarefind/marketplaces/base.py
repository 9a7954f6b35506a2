"""Canonical listing model and the protocol every provider adapter implements."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rarefind.core.result import Result
    from rarefind.marketplaces.errors import MarketplaceError


class Marketplace(str, Enum):
    """Marketplaces a listing can come from."""

    AMAZON = "amazon"
    EBAY = "ebay"


class Condition(str, Enum):
    """Item condition, always inferred by this layer."""

    NEW = "new"
    USED = "used"
    REFURBISHED = "refurbished"
    VINTAGE = "vintage"
    COLLECTIBLE = "collectible"


class SortBy(str, Enum):
    """Sort options for search results."""

    PRICE = "price"
    RELEVANCE = "relevance"
    NEWEST = "newest"


@dataclass(frozen=True, slots=True)
class SearchParams:
    """
    Provider-independent search parameters.

    Attributes:
        keywords: Search terms, joined with spaces on the wire.
        category: Generic category name (or provider category id for eBay).
        min_price: Minimum price filter (optional).
        max_price: Maximum price filter (optional).
        condition: Condition filter (optional).
        sort_by: Sort order (optional, provider default when unset).
        limit: Page size.
        offset: Number of results to skip; converted to a page number.
    """

    keywords: tuple[str, ...] = ()
    category: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    condition: Condition | None = None
    sort_by: SortBy | None = None
    limit: int = 10
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate search parameters."""
        if self.limit < 1:
            msg = "limit must be at least 1"
            raise ValueError(msg)
        if self.limit > 100:
            msg = "limit cannot exceed 100"
            raise ValueError(msg)
        if self.offset < 0:
            msg = "offset cannot be negative"
            raise ValueError(msg)
        if self.min_price is not None and self.min_price < 0:
            msg = "min_price cannot be negative"
            raise ValueError(msg)
        if self.max_price is not None and self.max_price < 0:
            msg = "max_price cannot be negative"
            raise ValueError(msg)
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            msg = "min_price cannot be greater than max_price"
            raise ValueError(msg)

    @property
    def query(self) -> str:
        """Keywords as a single query string."""
        return " ".join(k for k in self.keywords if k)

    @property
    def page(self) -> int:
        """One-based page number derived from offset and limit."""
        return self.offset // self.limit + 1


@dataclass(frozen=True, slots=True)
class Listing:
    """
    A marketplace listing in canonical, provider-independent form.

    A price of zero means the provider exposed no usable price; treat it as
    unknown, not free.

    Attributes:
        id: Listing identifier (same as marketplace_id for current providers).
        marketplace: Marketplace the listing belongs to.
        marketplace_id: Provider-native identifier (ASIN upper-cased, eBay digits).
        title: Listing title.
        price: Non-negative price.
        listing_url: Absolute URL of the listing page.
        currency: ISO 4217 currency code.
        description: Free text, possibly synthesized from attribute maps.
        images: Absolute image URLs in display order.
        category: Provider category label.
        condition: Inferred condition.
        seller_name: Seller display name.
        seller_rating: Seller or product rating on a 0-5 scale.
        available: Whether the listing can currently be bought.
    """

    id: str
    marketplace: Marketplace
    marketplace_id: str
    title: str
    price: Decimal
    listing_url: str
    currency: str = "USD"
    description: str | None = None
    images: tuple[str, ...] = ()
    category: str | None = None
    condition: Condition = Condition.NEW
    seller_name: str | None = None
    seller_rating: float | None = None
    available: bool = True

    def __post_init__(self) -> None:
        """Validate listing invariants."""
        if not self.title:
            msg = "title cannot be empty"
            raise ValueError(msg)
        if self.price < 0:
            msg = "price cannot be negative"
            raise ValueError(msg)
        if self.seller_rating is not None and not 0 <= self.seller_rating <= 5:
            msg = "seller_rating must be between 0 and 5"
            raise ValueError(msg)

    @property
    def has_price(self) -> bool:
        """Return True when a real price was extracted."""
        return self.price > 0


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    Result of a marketplace search.

    Attributes:
        listings: Listings in provider order.
        total: Provider-reported total, may exceed the number returned.
        has_more: Whether further results exist.
    """

    listings: tuple[Listing, ...] = ()
    total: int = 0
    has_more: bool = False

    @property
    def count(self) -> int:
        """Return number of listings in this result."""
        return len(self.listings)


@dataclass(frozen=True, slots=True)
class ListingReference:
    """A marketplace and identifier parsed out of a listing URL."""

    marketplace: Marketplace
    marketplace_id: str
    url: str = field(default="", compare=False)


@runtime_checkable
class MarketplaceClient(Protocol):
    """
    Protocol implemented by every provider adapter.

    Normalization of provider payloads happens entirely inside the
    implementation; callers only ever see canonical values.
    """

    @property
    def marketplace(self) -> Marketplace:
        """Return the marketplace this client serves."""
        ...

    async def fetch_by_id(
        self,
        marketplace_id: str,
    ) -> Result[Listing | None, MarketplaceError]:
        """
        Fetch a single listing.

        Args:
            marketplace_id: Provider-native identifier.

        Returns:
            Result with the listing, ``None`` when the provider reports no such
            item, or a MarketplaceError.
        """
        ...

    async def search(
        self,
        params: SearchParams,
    ) -> Result[SearchResult, MarketplaceError]:
        """
        Run a single-page keyword search.

        Args:
            params: Search parameters.

        Returns:
            Result containing SearchResult or MarketplaceError.
        """
        ...

    async def close(self) -> None:
        """Release network resources held by the client."""
        ...
