"""Facade that routes listing URLs, identifiers and searches to provider clients."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from rarefind.core.logging import get_logger
from rarefind.core.result import Failure, Result, failure, success
from rarefind.marketplaces.base import ListingReference, Marketplace
from rarefind.marketplaces.errors import (
    IdentifierNotFoundError,
    InvalidUrlError,
    MarketplaceError,
    NotConfiguredFailure,
    NotFoundError,
    UnsupportedProviderError,
)
from rarefind.marketplaces.preferences import apply_preference_filters

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rarefind.marketplaces.base import Listing, MarketplaceClient, SearchParams, SearchResult
    from rarefind.marketplaces.preferences import SearchPreference

logger = get_logger(__name__)

AMAZON_HOST_FRAGMENT = "amazon."
EBAY_HOST_FRAGMENT = "ebay."

# /dp/<ASIN>, /gp/product/<ASIN> and /product/<ASIN>
ASIN_PATH_PATTERN = re.compile(
    r"/(?:dp|gp/product|product)/([A-Z0-9]{10})(?=/|$)",
    re.IGNORECASE,
)
# /itm/<digits>, optionally preceded by a title slug
EBAY_ITEM_PATH_PATTERN = re.compile(r"/itm/(?:[^/]+/)?(\d+)(?=/|$)")


class MarketplaceRouter:
    """
    Single entry point for listing lookups and searches.

    Holds one client per marketplace; which implementation serves a
    marketplace is decided when the router is assembled, never per request.

    Example:
        >>> router = MarketplaceRouter([PAAPIAdapter(...), EbayAdapter(...)])
        >>> result = await router.fetch_from_url("https://www.amazon.com/dp/B08XYZ1234")
    """

    def __init__(
        self,
        clients: Iterable[MarketplaceClient] = (),
        default_marketplace: Marketplace = Marketplace.AMAZON,
    ) -> None:
        """
        Initialize the router.

        Args:
            clients: Clients to register, keyed by their ``marketplace``.
            default_marketplace: Marketplace searched when none is given.
        """
        self._clients: dict[Marketplace, MarketplaceClient] = {}
        self.default_marketplace = default_marketplace
        for client in clients:
            self.register(client)

    def register(self, client: MarketplaceClient) -> None:
        """Register (or replace) the client for its marketplace."""
        self._clients[client.marketplace] = client

    def unregister(self, marketplace: Marketplace) -> bool:
        """
        Remove the client for a marketplace.

        Returns:
            True if a client was removed, False if none was registered.
        """
        return self._clients.pop(marketplace, None) is not None

    def is_registered(self, marketplace: Marketplace) -> bool:
        """Check if a marketplace has a client."""
        return marketplace in self._clients

    @property
    def registered_marketplaces(self) -> list[Marketplace]:
        """Return marketplaces with a registered client."""
        return list(self._clients)

    def get_client(
        self,
        marketplace: Marketplace | str,
    ) -> Result[MarketplaceClient, MarketplaceError]:
        """
        Look up the client for a marketplace.

        Returns:
            Result with the client; UNSUPPORTED_PROVIDER for unknown names,
            NOT_CONFIGURED for known marketplaces without a client.
        """
        try:
            key = Marketplace(marketplace)
        except ValueError:
            return failure(UnsupportedProviderError(str(marketplace)))

        client = self._clients.get(key)
        if client is None:
            return failure(NotConfiguredFailure(key.value))
        return success(client)

    def parse_listing_url(self, url: str) -> Result[ListingReference, MarketplaceError]:
        """
        Extract the marketplace and identifier from a listing URL.

        Args:
            url: Absolute http(s) listing URL.

        Returns:
            Result with a ListingReference, or INVALID_URL,
            IDENTIFIER_NOT_FOUND or UNSUPPORTED_PROVIDER.
        """
        if not isinstance(url, str) or not url.strip():
            return failure(InvalidUrlError(str(url), "empty URL"))

        candidate = url.strip()
        try:
            parts = urlsplit(candidate)
            hostname = parts.hostname
        except ValueError as e:
            return failure(InvalidUrlError(candidate, str(e)))

        if parts.scheme.lower() not in {"http", "https"} or not hostname:
            return failure(InvalidUrlError(candidate, "expected an absolute http(s) URL"))

        if AMAZON_HOST_FRAGMENT in hostname:
            match = ASIN_PATH_PATTERN.search(parts.path)
            if match is None:
                return failure(IdentifierNotFoundError(Marketplace.AMAZON.value, candidate))
            return success(ListingReference(Marketplace.AMAZON, match.group(1).upper(), candidate))

        if EBAY_HOST_FRAGMENT in hostname:
            match = EBAY_ITEM_PATH_PATTERN.search(parts.path)
            if match is None:
                return failure(IdentifierNotFoundError(Marketplace.EBAY.value, candidate))
            return success(ListingReference(Marketplace.EBAY, match.group(1), candidate))

        return failure(UnsupportedProviderError(hostname))

    async def resolve(
        self,
        marketplace: Marketplace | str,
        marketplace_id: str,
    ) -> Result[Listing | None, MarketplaceError]:
        """
        Fetch a listing from the given marketplace.

        Returns:
            The client's result; None means the provider has no such item.
        """
        client_result = self.get_client(marketplace)
        if isinstance(client_result, Failure):
            return failure(client_result.error)
        return await client_result.value.fetch_by_id(marketplace_id)

    async def fetch_from_url(self, url: str) -> Result[Listing, MarketplaceError]:
        """
        Parse a listing URL and fetch the listing it points to.

        Returns:
            Result with the listing, NOT_FOUND when the provider has no such
            item, or the parsing/provider error.
        """
        parsed = self.parse_listing_url(url)
        if isinstance(parsed, Failure):
            logger.info("Rejected listing URL", url=url, code=parsed.error.code.value)
            return failure(parsed.error)

        reference = parsed.value
        logger.info(
            "Fetching listing from marketplace",
            marketplace=reference.marketplace.value,
            marketplace_id=reference.marketplace_id,
        )
        result = await self.resolve(reference.marketplace, reference.marketplace_id)
        if isinstance(result, Failure):
            return failure(result.error)
        if result.value is None:
            return failure(NotFoundError(reference.marketplace.value, reference.marketplace_id))
        return success(result.value)

    async def search(
        self,
        params: SearchParams,
        marketplace: Marketplace | str | None = None,
        preferences: Sequence[SearchPreference] | None = None,
    ) -> Result[SearchResult, MarketplaceError]:
        """
        Run a keyword search against one marketplace.

        Args:
            params: Search parameters.
            marketplace: Marketplace to search; the default marketplace if None.
            preferences: Saved preferences filling fields left unset.

        Returns:
            Result containing SearchResult or MarketplaceError.
        """
        client_result = self.get_client(marketplace or self.default_marketplace)
        if isinstance(client_result, Failure):
            return failure(client_result.error)
        return await client_result.value.search(apply_preference_filters(params, preferences))

    async def close(self) -> None:
        """Close every registered client."""
        for client in self._clients.values():
            await client.close()
