"""HTTP client for the S3 and CloudFront REST APIs."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import BucketConfig, Credentials
from .exceptions import InvalidationError, RemoteError, TransferError
from .models import Header
from .signer import RequestSigner
from .utils import CLOUDFRONT_API_VERSION, CLOUDFRONT_ENDPOINT, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    """Build an error message from a failed response."""
    message = f"status {response.status_code}"
    text = response.text.strip()
    if text:
        message = f"{message}: {text[:500]}"
    return message


class S3Client:
    """Client for the S3 object API of a single bucket."""

    def __init__(
        self,
        bucket: BucketConfig,
        credentials: Credentials,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize S3 client.

        Args:
            bucket: Bucket to talk to
            credentials: Key pair used to sign requests
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.bucket = bucket
        self.timeout = timeout
        self.signer = RequestSigner(credentials, region=bucket.region, service="s3")
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> S3Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def object_url(self, key: str) -> str:
        """Get the path-style URL of an object."""
        return f"{self.bucket.url}/{quote(key, safe='/~')}"

    def _send(
        self,
        method: str,
        url: str,
        headers: list[Header] | None = None,
        body: bytes = b"",
    ) -> httpx.Response:
        """Sign and send a request.

        Raises:
            httpx.RequestError: On network failure
        """
        signed_headers = self.signer.sign(method, url, headers or [], body)
        return self._get_client().request(
            method, url, headers=signed_headers, content=body or None
        )

    def list_objects(self) -> bytes:
        """List the objects of the bucket.

        Returns:
            Raw ListBucketResult XML document

        Raises:
            RemoteError: If the request fails
        """
        url = f"{self.bucket.url}/?list-type=2"
        try:
            response = self._send("GET", url)
        except httpx.RequestError as e:
            raise RemoteError(f"Could not execute request to aws, {e}") from e

        if response.is_error:
            raise RemoteError(
                f"Could not list bucket {self.bucket.name}, {_error_detail(response)}"
            )
        return response.content

    def put_object(self, key: str, body: bytes, headers: list[Header]) -> str:
        """Upload an object in a single request.

        Args:
            key: Object key
            body: Object content
            headers: Headers to send, in order

        Returns:
            Response body text (usually empty)

        Raises:
            TransferError: If the upload fails
        """
        url = self.object_url(key)
        try:
            response = self._send("PUT", url, headers, body)
        except httpx.RequestError as e:
            raise TransferError(f"Could not execute request to aws, {e}") from e

        if response.is_error:
            raise TransferError(
                f"Could not upload {key} to bucket {self.bucket.name}, "
                f"{_error_detail(response)}"
            )
        logger.debug("PUT %s -> %d", key, response.status_code)
        return response.text


class CloudFrontClient:
    """Client for the CloudFront invalidation API."""

    def __init__(
        self,
        credentials: Credentials,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize CloudFront client.

        Args:
            credentials: Key pair used to sign requests
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout
        # CloudFront is a global service signed in us-east-1
        self.signer = RequestSigner(credentials, region="us-east-1", service="cloudfront")
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> CloudFrontClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def create_invalidation(self, distribution_id: str, document: bytes) -> str:
        """Send an invalidation batch.

        Args:
            distribution_id: CloudFront distribution ID
            document: InvalidationBatch XML document

        Returns:
            Response body text

        Raises:
            InvalidationError: If the request fails
        """
        url = (
            f"{CLOUDFRONT_ENDPOINT}/{CLOUDFRONT_API_VERSION}/distribution/"
            f"{quote(distribution_id, safe='')}/invalidation"
        )
        headers = self.signer.sign(
            "POST", url, [("Content-Type", "text/xml")], document
        )
        try:
            response = self._get_client().post(url, headers=headers, content=document)
        except httpx.RequestError as e:
            raise InvalidationError(f"Could not invalidate paths, {e}") from e

        if response.is_error:
            raise InvalidationError(
                f"Could not invalidate paths, {_error_detail(response)}"
            )
        return response.text
