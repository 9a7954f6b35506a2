"""Shared async HTTP plumbing for provider clients."""

from __future__ import annotations

from typing import Any

import httpx

from rarefind.core.logging import get_logger
from rarefind.core.result import Result, failure, success
from rarefind.marketplaces.errors import (
    MAX_DETAILS_LENGTH,
    MarketplaceError,
    ParseError,
    ProviderError,
)
from rarefind.marketplaces.rate_limiter import DEFAULT_BUCKETS, RateLimitSource, TokenBucket

logger = get_logger(__name__)

# Default timeout for API requests
DEFAULT_TIMEOUT = 30.0


class ProviderHTTPClient:
    """
    Base class for provider HTTP clients.

    Owns the lazily created ``httpx.AsyncClient``, gates every request on the
    provider's token bucket and converts transport failures and non-2xx
    responses into ``ProviderError`` values. Subclasses add authentication
    and endpoint knowledge.

    Attributes:
        source: Rate-limit source (and label used in errors and logs).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        source: RateLimitSource,
        *,
        rate_limiter: TokenBucket | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the client.

        Args:
            source: Rate-limit source this client draws tokens from.
            rate_limiter: Bucket shared with other clients of the same
                source; a private bucket with the default quota otherwise.
            timeout: Request timeout in seconds.
        """
        self.source = source
        self.timeout = timeout
        if rate_limiter is None:
            config = DEFAULT_BUCKETS[source]
            rate_limiter = TokenBucket(config.capacity, config.refill_rate, name=source.value)
        self.rate_limiter = rate_limiter
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Wait for a rate-limit token, then send the request."""
        await self.rate_limiter.admit()
        return await self._send(method, url, params=params, headers=headers, content=content)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Send a request without touching the rate limiter.

        Args:
            method: HTTP method.
            url: Absolute URL.
            params: Query parameters (mapping or list of pairs).
            headers: Request headers.
            content: Raw request body.

        Returns:
            Result containing the decoded JSON object or a MarketplaceError.
        """
        client = await self._get_client()
        label = self.source.value

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                content=content,
            )
        except httpx.TimeoutException:
            logger.error("Provider request timeout", marketplace=label, url=url)
            return failure(ProviderError(marketplace=label, message="Request timeout"))
        except httpx.RequestError as e:
            logger.error("Provider request error", marketplace=label, error=str(e))
            return failure(
                ProviderError(marketplace=label, message="Request failed", details=str(e))
            )

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Result[dict[str, Any], MarketplaceError]:
        """Convert an HTTP response into a Result."""
        label = self.source.value
        status = response.status_code

        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning("Rate limited by provider", marketplace=label, retry_after=retry_after)
            return failure(
                ProviderError(
                    marketplace=label,
                    message="Rate limit exceeded",
                    status_code=status,
                    details=response.text,
                    retry_after=retry_after,
                )
            )

        if not 200 <= status < 300:
            logger.error(
                "Provider API error",
                marketplace=label,
                status_code=status,
                response_text=response.text[:MAX_DETAILS_LENGTH],
            )
            return failure(
                ProviderError(
                    marketplace=label,
                    message=f"API returned status {status}",
                    status_code=status,
                    details=response.text,
                )
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "Failed to parse provider response",
                marketplace=label,
                error=str(e),
                response_text=response.text[:MAX_DETAILS_LENGTH],
            )
            return failure(ParseError(marketplace=label, details=str(e)))

        if not isinstance(data, dict):
            return failure(
                ParseError(
                    marketplace=label,
                    message="Expected a JSON object",
                    details=type(data).__name__,
                )
            )
        return success(data)


def _parse_retry_after(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
