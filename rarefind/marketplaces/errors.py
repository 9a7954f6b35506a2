"""Error types for marketplace operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Raw provider bodies are truncated to this many characters in errors and logs
MAX_DETAILS_LENGTH = 500


class ErrorCode(str, Enum):
    """Error codes for marketplace errors."""

    INVALID_IDENTIFIER = "invalid_identifier"
    INVALID_URL = "invalid_url"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    IDENTIFIER_NOT_FOUND = "identifier_not_found"
    NOT_FOUND = "not_found"
    PROVIDER_ERROR = "provider_error"
    NOT_CONFIGURED = "not_configured"
    PARSE = "parse"
    UNSUPPORTED_OPERATION = "unsupported_operation"


@dataclass(frozen=True, slots=True)
class MarketplaceError:
    """
    Error value returned by marketplace operations.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        marketplace: Marketplace (or provider source) that produced the error.
        details: Raw provider body or exception text, truncated.
        status_code: HTTP status when the error came from a response.
        retry_after: Seconds the provider asked us to wait (429 responses).
    """

    code: ErrorCode
    message: str
    marketplace: str
    details: str | None = None
    status_code: int | None = None
    retry_after: int | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"[{self.marketplace}] {self.code.value}: {self.message}{status}"

    @property
    def is_retryable(self) -> bool:
        """Throttling, server errors and transport failures may succeed later."""
        if self.code is not ErrorCode.PROVIDER_ERROR:
            return False
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class NotConfiguredError(ValueError):
    """Raised at construction time when required credentials are missing."""

    def __init__(self, marketplace: str, missing: list[str]) -> None:
        """Initialize with the marketplace and the names of missing settings."""
        self.marketplace = marketplace
        self.missing = missing
        super().__init__(f"{marketplace} is not configured; missing: {', '.join(missing)}")


def _truncate(text: str | None) -> str | None:
    if text is None:
        return None
    return text[:MAX_DETAILS_LENGTH]


def InvalidIdentifierError(marketplace: str, identifier: str) -> MarketplaceError:
    """Create an invalid identifier error."""
    return MarketplaceError(
        code=ErrorCode.INVALID_IDENTIFIER,
        message=f"Invalid identifier: {identifier!r}",
        marketplace=marketplace,
    )


def InvalidUrlError(url: str, details: str | None = None) -> MarketplaceError:
    """Create an invalid URL error."""
    return MarketplaceError(
        code=ErrorCode.INVALID_URL,
        message=f"Invalid URL: {url!r}",
        marketplace="unknown",
        details=details,
    )


def UnsupportedProviderError(provider: str) -> MarketplaceError:
    """Create an unsupported provider error."""
    return MarketplaceError(
        code=ErrorCode.UNSUPPORTED_PROVIDER,
        message=f"Unsupported marketplace: {provider}",
        marketplace=provider or "unknown",
    )


def IdentifierNotFoundError(marketplace: str, url: str) -> MarketplaceError:
    """Create an error for a recognized URL without a usable identifier."""
    return MarketplaceError(
        code=ErrorCode.IDENTIFIER_NOT_FOUND,
        message=f"Could not extract a listing identifier from {url!r}",
        marketplace=marketplace,
    )


def NotFoundError(marketplace: str, identifier: str) -> MarketplaceError:
    """Create a not found error."""
    return MarketplaceError(
        code=ErrorCode.NOT_FOUND,
        message=f"Listing not found: {identifier}",
        marketplace=marketplace,
    )


def ProviderError(
    marketplace: str,
    message: str = "Provider request failed",
    status_code: int | None = None,
    details: str | None = None,
    retry_after: int | None = None,
) -> MarketplaceError:
    """Create a provider error for non-2xx, transport or provider-reported failures."""
    return MarketplaceError(
        code=ErrorCode.PROVIDER_ERROR,
        message=message,
        marketplace=marketplace,
        details=_truncate(details),
        status_code=status_code,
        retry_after=retry_after,
    )


def ParseError(
    marketplace: str,
    message: str = "Failed to parse response",
    details: str | None = None,
) -> MarketplaceError:
    """Create a parse error."""
    return MarketplaceError(
        code=ErrorCode.PARSE,
        message=message,
        marketplace=marketplace,
        details=_truncate(details),
    )


def NotConfiguredFailure(marketplace: str) -> MarketplaceError:
    """Create an error for a known marketplace that has no configured client."""
    return MarketplaceError(
        code=ErrorCode.NOT_CONFIGURED,
        message=f"{marketplace} is not configured",
        marketplace=marketplace,
    )


def UnsupportedOperationError(marketplace: str, operation: str) -> MarketplaceError:
    """Create an error for an operation a provider client does not offer."""
    return MarketplaceError(
        code=ErrorCode.UNSUPPORTED_OPERATION,
        message=f"{operation} is not supported for {marketplace}",
        marketplace=marketplace,
    )
