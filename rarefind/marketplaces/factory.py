"""Construction of provider adapters and the router from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rarefind.core.config import get_settings
from rarefind.core.logging import configure_logging, get_logger
from rarefind.marketplaces.amazon.paapi_adapter import PAAPIAdapter
from rarefind.marketplaces.amazon.rapidapi_adapter import RapidAPIAdapter
from rarefind.marketplaces.ebay.adapter import EbayAdapter
from rarefind.marketplaces.rate_limiter import RateLimiter, RateLimitSource
from rarefind.marketplaces.router import MarketplaceRouter

if TYPE_CHECKING:
    from rarefind.core.config import Settings
    from rarefind.marketplaces.base import MarketplaceClient

logger = get_logger(__name__)


def create_paapi_adapter(settings: Settings, limiter: RateLimiter) -> PAAPIAdapter:
    """
    Create the PA-API adapter.

    Raises:
        NotConfiguredError: If PA-API credentials are missing.
    """
    amazon = settings.amazon
    return PAAPIAdapter(
        amazon.access_key,
        amazon.secret_key.get_secret_value(),
        amazon.associate_tag,
        amazon.region,
        rate_limiter=limiter.bucket(RateLimitSource.AMAZON_PAAPI),
        timeout=settings.http_timeout,
    )


def create_rapidapi_adapter(settings: Settings, limiter: RateLimiter) -> RapidAPIAdapter:
    """
    Create the RapidAPI adapter.

    Raises:
        NotConfiguredError: If the RapidAPI key is missing.
    """
    rapidapi = settings.rapidapi
    return RapidAPIAdapter(
        rapidapi.key.get_secret_value(),
        rapidapi.host,
        rapidapi.country,
        rate_limiter=limiter.bucket(RateLimitSource.AMAZON_RAPIDAPI),
        timeout=settings.http_timeout,
    )


def create_ebay_adapter(settings: Settings, limiter: RateLimiter) -> EbayAdapter:
    """
    Create the eBay adapter.

    Raises:
        NotConfiguredError: If the eBay App ID is missing.
    """
    return EbayAdapter(
        settings.ebay.app_id,
        settings.ebay.site_id,
        rate_limiter=limiter.bucket(RateLimitSource.EBAY),
        timeout=settings.http_timeout,
    )


def create_amazon_adapter(settings: Settings, limiter: RateLimiter) -> MarketplaceClient:
    """
    Pick the Amazon implementation selected by ``AMAZON_API_SOURCE``.

    When the selected implementation has no credentials but the other one
    does, log a warning and use the other one. When neither is configured the
    selected one is built and raises.

    Raises:
        NotConfiguredError: If no usable Amazon credentials exist.
    """
    if settings.amazon.api_source == "rapidapi":
        if not settings.rapidapi.is_configured and settings.amazon.is_configured:
            logger.warning("RapidAPI selected but not configured, falling back to PA-API")
            return create_paapi_adapter(settings, limiter)
        logger.info("Using RapidAPI Real-Time Amazon Data client")
        return create_rapidapi_adapter(settings, limiter)

    if not settings.amazon.is_configured and settings.rapidapi.is_configured:
        logger.warning("PA-API selected but not configured, falling back to RapidAPI")
        return create_rapidapi_adapter(settings, limiter)
    logger.info("Using Amazon PA-API 5.0 client")
    return create_paapi_adapter(settings, limiter)


def create_router(
    settings: Settings | None = None,
    limiter: RateLimiter | None = None,
) -> MarketplaceRouter:
    """
    Assemble the router for the configured marketplaces.

    Logging is configured from the same settings. Amazon is required; eBay
    is registered only when configured, otherwise eBay lookups return
    NOT_CONFIGURED.

    Args:
        settings: Settings to use; the cached process settings if None.
        limiter: Rate limiter owning the per-provider buckets; a new one if None.

    Raises:
        NotConfiguredError: If Amazon is not configured.
    """
    settings = settings or get_settings()
    limiter = limiter or RateLimiter()
    configure_logging(
        json_format=settings.log_json or settings.is_production,
        log_level=settings.log_level,
    )

    router = MarketplaceRouter()
    router.register(create_amazon_adapter(settings, limiter))

    if settings.ebay.is_configured:
        router.register(create_ebay_adapter(settings, limiter))
    else:
        logger.info("eBay not configured, eBay support disabled")

    logger.info(
        "Marketplace router initialized",
        marketplaces=[m.value for m in router.registered_marketplaces],
        amazon_api_source=settings.amazon.api_source,
    )
    return router
