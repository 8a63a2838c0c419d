"""Remote inventory: the current listing of objects in the bucket."""

import logging
import time
import xml.etree.ElementTree as ET
from typing import Optional

from ..api import S3Client
from ..exceptions import MalformedInventoryError
from ..models import RemoteRecord
from ..utils import parse_rfc3339

logger = logging.getLogger(__name__)

Inventory = dict[str, RemoteRecord]


def _local_name(tag: str) -> str:
    """Strip the XML namespace from a tag ("{ns}Key" -> "Key")."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def parse_listing(document: bytes) -> Inventory:
    """Parse a ListBucketResult document into remote records.

    Args:
        document: Raw XML response of a bucket listing

    Returns:
        Mapping of object key to RemoteRecord

    Raises:
        MalformedInventoryError: If the document or any entry is malformed;
            no partial inventory is returned
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise MalformedInventoryError(
            f"Could not parse response from aws, {e}"
        ) from e

    if _local_name(root.tag) != "ListBucketResult":
        raise MalformedInventoryError(
            "Could not parse response from aws, xml is malformed: "
            "missing ListBucketResult"
        )

    truncated = _child(root, "IsTruncated")
    if truncated is not None and (truncated.text or "").strip().lower() == "true":
        logger.warning(
            "Bucket listing is truncated; objects beyond the first page "
            "are treated as absent"
        )

    inventory: Inventory = {}
    for contents in _children(root, "Contents"):
        key = _child(contents, "Key")
        etag = _child(contents, "ETag")
        last_modified = _child(contents, "LastModified")
        if key is None or etag is None or last_modified is None:
            raise MalformedInventoryError(
                "Could not parse response from aws, xml is malformed: "
                "Contents is missing ETag, Key or LastModified"
            )

        timestamp = (last_modified.text or "").strip()
        try:
            parsed = parse_rfc3339(timestamp)
        except ValueError as e:
            raise MalformedInventoryError(
                f"Could not parse date in response from aws: {timestamp!r}, {e}"
            ) from e

        record = RemoteRecord(
            key=key.text or "",
            content_hash=(etag.text or "").strip().strip('"'),
            last_modified=parsed,
        )
        inventory[record.key] = record

    return inventory


class RemoteInventory:
    """Fetches a snapshot of the bucket contents."""

    def __init__(self, client: S3Client):
        """Initialize remote inventory.

        Args:
            client: S3 client of the target bucket
        """
        self.client = client

    def fetch(self) -> Inventory:
        """Fetch the current listing of remote objects.

        Returns:
            Mapping of object key to RemoteRecord

        Raises:
            RemoteError: If the listing request fails
            MalformedInventoryError: If the response cannot be parsed
        """
        start = time.time()
        document = self.client.list_objects()
        inventory = parse_listing(document)
        logger.debug(
            "Fetched %d remote object(s) in %.2fs",
            len(inventory),
            time.time() - start,
        )
        return inventory
