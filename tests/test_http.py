"""Tests for the shared provider HTTP client."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import httpx
import pytest
from conftest import make_http, make_response

from rarefind.core.result import Failure, Success
from rarefind.marketplaces.errors import ErrorCode
from rarefind.marketplaces.http import DEFAULT_TIMEOUT, ProviderHTTPClient
from rarefind.marketplaces.rate_limiter import RateLimitSource, TokenBucket

if TYPE_CHECKING:
    from conftest import FakeClock

URL = "https://api.example.com/items"


@pytest.fixture()
def bucket(clock: FakeClock) -> TokenBucket:
    """Create a 1/s bucket driven by the fake clock."""
    return TokenBucket(1, 1, name="ebay", clock=clock, sleep=clock.sleep)


@pytest.fixture()
def client(bucket: TokenBucket) -> ProviderHTTPClient:
    """Create a client using the fake-clock bucket."""
    return ProviderHTTPClient(RateLimitSource.EBAY, rate_limiter=bucket)


class TestProviderHTTPClientInit:
    """Tests for ProviderHTTPClient initialization."""

    def test_defaults(self) -> None:
        """A client without a bucket should get a private default one."""
        client = ProviderHTTPClient(RateLimitSource.AMAZON_RAPIDAPI)

        assert client.timeout == DEFAULT_TIMEOUT
        assert client.rate_limiter.capacity == 5

    @pytest.mark.asyncio
    async def test_get_client_is_lazy_and_reused(self, client: ProviderHTTPClient) -> None:
        """_get_client should create one AsyncClient and reuse it."""
        first = await client._get_client()
        second = await client._get_client()

        assert isinstance(first, httpx.AsyncClient)
        assert first is second
        await client.close()

    @pytest.mark.asyncio
    async def test_close_recreates_on_next_use(self, client: ProviderHTTPClient) -> None:
        """A closed client should be replaced on the next request."""
        first = await client._get_client()
        await client.close()
        second = await client._get_client()

        assert first.is_closed
        assert second is not first
        await client.close()

    @pytest.mark.asyncio
    async def test_close_without_client(self, client: ProviderHTTPClient) -> None:
        """close should be safe before any request."""
        await client.close()


class TestProviderHTTPClientRequest:
    """Tests for ProviderHTTPClient._request."""

    @pytest.mark.asyncio
    async def test_success(self, client: ProviderHTTPClient) -> None:
        """A 2xx JSON object should be returned as Success."""
        http = make_http(make_response(200, {"ok": True}))

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL, params=[("q", "x")])

        assert isinstance(result, Success)
        assert result.value == {"ok": True}
        http.request.assert_awaited_once_with(
            method="GET", url=URL, params=[("q", "x")], headers=None, content=None
        )

    @pytest.mark.asyncio
    async def test_consumes_a_token(
        self, client: ProviderHTTPClient, bucket: TokenBucket, clock: FakeClock
    ) -> None:
        """Every request should be admitted by the bucket first."""
        http = make_http(make_response(200, {}))

        with patch.object(client, "_get_client", return_value=http):
            await client._request("GET", URL)
            await client._request("GET", URL)

        assert clock.sleeps == [1.0]
        assert bucket.can_admit_now() is False

    @pytest.mark.asyncio
    async def test_rate_limited(self, client: ProviderHTTPClient) -> None:
        """429 should become a retryable ProviderError with Retry-After."""
        http = make_http(make_response(429, text="slow down", headers={"Retry-After": "30"}))

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PROVIDER_ERROR
        assert result.error.status_code == 429
        assert result.error.retry_after == 30
        assert result.error.is_retryable is True

    @pytest.mark.asyncio
    async def test_rate_limited_without_retry_after(self, client: ProviderHTTPClient) -> None:
        """A missing or malformed Retry-After should be None."""
        http = make_http(make_response(429, headers={"Retry-After": "soon"}))

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.retry_after is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 500, 503])
    async def test_non_2xx(self, client: ProviderHTTPClient, status: int) -> None:
        """Any non-2xx status should carry the status and body."""
        http = make_http(make_response(status, text="upstream says no"))

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PROVIDER_ERROR
        assert result.error.status_code == status
        assert result.error.details == "upstream says no"
        assert result.error.marketplace == "ebay"

    @pytest.mark.asyncio
    async def test_timeout(self, client: ProviderHTTPClient) -> None:
        """A timeout should become a transport ProviderError."""
        http = make_http()
        http.request.side_effect = httpx.TimeoutException("Timeout")

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.message == "Request timeout"
        assert result.error.status_code is None

    @pytest.mark.asyncio
    async def test_request_error(self, client: ProviderHTTPClient) -> None:
        """Connection failures should become a transport ProviderError."""
        http = make_http()
        http.request.side_effect = httpx.RequestError("Connection failed")

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PROVIDER_ERROR
        assert result.error.details == "Connection failed"

    @pytest.mark.asyncio
    async def test_invalid_json(self, client: ProviderHTTPClient) -> None:
        """An undecodable 2xx body should be a PARSE error."""
        response = make_response(200, text="<html>")
        response.json.side_effect = ValueError("Expecting value")
        http = make_http(response)

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PARSE

    @pytest.mark.asyncio
    async def test_non_object_json(self, client: ProviderHTTPClient) -> None:
        """A JSON array body should be a PARSE error."""
        http = make_http(make_response(200, [1, 2]))

        with patch.object(client, "_get_client", return_value=http):
            result = await client._request("GET", URL)

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.PARSE
        assert result.error.message == "Expected a JSON object"
