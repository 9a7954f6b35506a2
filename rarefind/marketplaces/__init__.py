"""Marketplace adapters package."""

from rarefind.marketplaces.base import (
    Condition,
    Listing,
    ListingReference,
    Marketplace,
    MarketplaceClient,
    SearchParams,
    SearchResult,
    SortBy,
)
from rarefind.marketplaces.errors import (
    ErrorCode,
    MarketplaceError,
    NotConfiguredError,
)
from rarefind.marketplaces.factory import create_router
from rarefind.marketplaces.preferences import SearchPreference, apply_preference_filters
from rarefind.marketplaces.rate_limiter import RateLimiter, RateLimitSource, TokenBucket
from rarefind.marketplaces.router import MarketplaceRouter

__all__ = [
    "Condition",
    "ErrorCode",
    "Listing",
    "ListingReference",
    "Marketplace",
    "MarketplaceClient",
    "MarketplaceError",
    "MarketplaceRouter",
    "NotConfiguredError",
    "RateLimitSource",
    "RateLimiter",
    "SearchParams",
    "SearchPreference",
    "SearchResult",
    "SortBy",
    "TokenBucket",
    "apply_preference_filters",
    "create_router",
]
