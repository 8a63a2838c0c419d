"""AWS Signature Version 4 request signing."""

from botocore.auth import S3SigV4Auth, SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials as BotoCredentials

from .config import Credentials
from .models import Header
from .utils import DEFAULT_REGION

# Headers added by the signer (compared lowercase)
AUTH_HEADERS = frozenset(
    {"authorization", "x-amz-date", "x-amz-content-sha256", "x-amz-security-token"}
)


class RequestSigner:
    """Adds SigV4 auth headers to an outgoing request.

    The signer never touches the caller's headers: it returns them unchanged,
    in their original order, followed by the authentication headers.
    """

    def __init__(
        self,
        credentials: Credentials,
        region: str = DEFAULT_REGION,
        service: str = "s3",
    ):
        """Initialize request signer.

        Args:
            credentials: Key pair to sign with
            region: AWS region the request is scoped to
            service: AWS service name ("s3" or "cloudfront")
        """
        self.region = region
        self.service = service
        self._credentials = BotoCredentials(
            credentials.access_key, credentials.secret_key
        )

    def _auth(self) -> SigV4Auth:
        if self.service == "s3":
            return S3SigV4Auth(self._credentials, self.service, self.region)
        return SigV4Auth(self._credentials, self.service, self.region)

    def sign(
        self,
        method: str,
        url: str,
        headers: list[Header],
        body: bytes = b"",
    ) -> list[Header]:
        """Sign a request.

        Args:
            method: HTTP method
            url: Full request URL, already percent-encoded
            headers: Headers that will be sent with the request
            body: Request body

        Returns:
            The given headers followed by the authentication headers
        """
        request = AWSRequest(method=method, url=url, data=body)
        for name, value in headers:
            # HTTPHeaders appends on assignment, so repeated names are kept
            request.headers[name] = value
        self._auth().add_auth(request)

        auth_headers = [
            (name, value)
            for name, value in request.headers.items()
            if name.lower() in AUTH_HEADERS
        ]
        return list(headers) + auth_headers
