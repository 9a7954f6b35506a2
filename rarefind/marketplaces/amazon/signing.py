"""
AWS Signature Version 4 signing for the Product Advertising API.

The signature covers exactly three headers (``host``, ``x-amz-date`` and
``x-amz-target``) plus the SHA-256 of the JSON body; the query string is
always empty. Any change to ordering, casing or newlines breaks verification
server-side, so the strings are assembled literally.

Signatures embed a timestamp: a fresh SigningContext is built for every
request and nothing is cached.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlsplit

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE_NAME = "ProductAdvertisingAPI"
TARGET_NAMESPACE = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1"
SIGNED_HEADERS = "host;x-amz-date;x-amz-target"
TERMINATOR = "aws4_request"
CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class SigningCredentials:
    """
    Credentials for request signing.

    Attributes:
        access_key: AWS access key id.
        secret_key: AWS secret access key.
        region: AWS region of the endpoint.
    """

    access_key: str
    secret_key: str
    region: str = "us-east-1"

    def __repr__(self) -> str:
        """Keep the secret out of reprs and logs."""
        return f"SigningCredentials(access_key={self.access_key!r}, region={self.region!r})"


@dataclass(frozen=True, slots=True)
class SigningContext:
    """
    Every intermediate value of one signing pass.

    Attributes:
        timestamp: ISO-8601 basic timestamp, ``YYYYMMDDTHHMMSSZ``.
        date_stamp: First eight characters of the timestamp.
        credential_scope: ``date/region/service/aws4_request``.
        target: Value of the ``X-Amz-Target`` header.
        canonical_request: Canonical request string.
        string_to_sign: String to sign.
        signing_key: Derived key (raw bytes).
        signature: Hex signature.
    """

    timestamp: str
    date_stamp: str
    credential_scope: str
    target: str
    canonical_request: str
    string_to_sign: str
    signing_key: bytes
    signature: str


def sha256_hex(data: str) -> str:
    """Hex SHA-256 of a UTF-8 string."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def hmac_sha256(key: bytes, data: str) -> bytes:
    """Raw HMAC-SHA256 of a UTF-8 string."""
    return hmac.new(key, data.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """Derive the SigV4 signing key via the date/region/service HMAC chain."""
    k_date = hmac_sha256(f"AWS4{secret_key}".encode(), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


class RequestSigner:
    """
    Computes SigV4 headers for PA-API calls.

    Example:
        >>> signer = RequestSigner(SigningCredentials("AKID", "secret"))
        >>> headers = signer.sign("POST", url, body, "GetItems")
    """

    def __init__(
        self,
        credentials: SigningCredentials,
        service: str = SERVICE_NAME,
        target_namespace: str = TARGET_NAMESPACE,
    ) -> None:
        """
        Initialize the signer.

        Args:
            credentials: Access key, secret key and region.
            service: Service name used in the credential scope.
            target_namespace: Prefix of the ``X-Amz-Target`` operation name.
        """
        self.credentials = credentials
        self.service = service
        self.target_namespace = target_namespace

    def build_context(
        self,
        method: str,
        url: str,
        payload: str,
        operation: str,
        *,
        now: datetime | None = None,
    ) -> SigningContext:
        """
        Run the signing algorithm and return every intermediate value.

        Args:
            method: HTTP method.
            url: Absolute request URL; host and path are signed.
            payload: Exact request body.
            operation: PA-API operation name, e.g. ``SearchItems``.
            now: Signing time; the current UTC time when omitted.

        Returns:
            The populated SigningContext.
        """
        moment = (now or datetime.now(UTC)).astimezone(UTC)
        timestamp = moment.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = timestamp[:8]

        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        path = parts.path or "/"
        target = f"{self.target_namespace}.{operation}"

        canonical_headers = f"host:{host}\nx-amz-date:{timestamp}\nx-amz-target:{target}\n"
        canonical_request = "\n".join(
            [
                method.upper(),
                path,
                "",
                canonical_headers,
                SIGNED_HEADERS,
                sha256_hex(payload),
            ]
        )

        region = self.credentials.region
        credential_scope = f"{date_stamp}/{region}/{self.service}/{TERMINATOR}"
        string_to_sign = "\n".join(
            [ALGORITHM, timestamp, credential_scope, sha256_hex(canonical_request)]
        )

        signing_key = derive_signing_key(
            self.credentials.secret_key, date_stamp, region, self.service
        )
        signature = hmac.new(
            signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        return SigningContext(
            timestamp=timestamp,
            date_stamp=date_stamp,
            credential_scope=credential_scope,
            target=target,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
            signing_key=signing_key,
            signature=signature,
        )

    def sign(
        self,
        method: str,
        url: str,
        payload: str,
        operation: str,
        *,
        now: datetime | None = None,
    ) -> dict[str, str]:
        """
        Return the headers that authenticate one request.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            payload: Exact request body.
            operation: PA-API operation name.
            now: Signing time; the current UTC time when omitted.

        Returns:
            ``X-Amz-Date``, ``X-Amz-Target``, ``Content-Type`` and
            ``Authorization`` headers.
        """
        context = self.build_context(method, url, payload, operation, now=now)
        authorization = (
            f"{ALGORITHM} Credential={self.credentials.access_key}/{context.credential_scope}, "
            f"SignedHeaders={SIGNED_HEADERS}, Signature={context.signature}"
        )
        return {
            "X-Amz-Date": context.timestamp,
            "X-Amz-Target": context.target,
            "Content-Type": CONTENT_TYPE,
            "Authorization": authorization,
        }
