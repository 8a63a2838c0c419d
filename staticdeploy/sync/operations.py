"""Upload operations bound to a source directory and a bucket."""

import logging
import time
from pathlib import Path
from typing import Union

from ..api import S3Client
from ..exceptions import TransferError
from ..models import Header
from ..output import ProgressSink
from ..utils import get_upload_key

logger = logging.getLogger(__name__)


class DeployOperations:
    """Transfers single files to the bucket."""

    def __init__(
        self,
        client: S3Client,
        source_root: Union[str, Path],
        sink: ProgressSink,
    ):
        """Initialize deploy operations.

        Args:
            client: S3 client of the target bucket
            source_root: Directory the local paths are relative to
            sink: Progress output receiving response bodies
        """
        self.client = client
        self.source_root = Path(source_root)
        self.sink = sink

    def upload(self, local_path: str, headers: list[Header]) -> None:
        """Upload one file with its headers, not chunked.

        Args:
            local_path: Path of the file on disk
            headers: Headers to send, in order

        Raises:
            TransferError: If the file cannot be read or the upload fails
        """
        upload_key = get_upload_key(self.source_root, local_path)
        try:
            with open(local_path, "rb") as f:
                body = f.read()
        except OSError as e:
            raise TransferError(
                f"Could not read file: {local_path}, {e}", local_path=local_path
            ) from e

        start = time.time()
        try:
            response_body = self.client.put_object(upload_key, body, headers)
        except TransferError as e:
            e.local_path = local_path
            raise
        logger.debug("Upload of %s took %.2fs", upload_key, time.time() - start)

        self.sink.write(response_body)
