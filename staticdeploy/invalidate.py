"""CloudFront cache invalidation."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from .api import CloudFrontClient
from .exceptions import ConfigurationError
from .output import ProgressSink

logger = logging.getLogger(__name__)


def build_invalidation_batch(
    distribution_id: str,
    paths: Sequence[str],
    caller_reference: Optional[str] = None,
) -> bytes:
    """Create the request payload of an invalidation request.

    Args:
        distribution_id: CloudFront distribution ID
        paths: Paths to invalidate
        caller_reference: Unique request reference (defaults to id and time)

    Returns:
        UTF-8 encoded InvalidationBatch XML document
    """
    if caller_reference is None:
        caller_reference = f"{distribution_id} - {datetime.now()}"

    batch = ET.Element("InvalidationBatch")
    ET.SubElement(batch, "CallerReference").text = caller_reference
    paths_element = ET.SubElement(batch, "Paths")
    ET.SubElement(paths_element, "Quantity").text = str(len(paths))
    items = ET.SubElement(paths_element, "Items")
    for path in paths:
        ET.SubElement(items, "Path").text = path

    return ET.tostring(batch, encoding="utf-8", xml_declaration=True)


class Invalidator:
    """Sends the configured invalidation paths to CloudFront."""

    def __init__(
        self,
        client: CloudFrontClient,
        distribution_id: str,
        paths: Sequence[str],
        sink: ProgressSink,
    ):
        """Initialize invalidator.

        Args:
            client: CloudFront client
            distribution_id: CloudFront distribution ID
            paths: Paths to invalidate
            sink: Progress output receiving the response body
        """
        self.client = client
        self.distribution_id = distribution_id
        self.paths = list(paths)
        self.sink = sink

    def run(self, dry_run: bool = False) -> bool:
        """Invalidate the configured paths.

        Args:
            dry_run: If True, only print the paths

        Returns:
            True if paths were invalidated (or would be, in a dry run)

        Raises:
            ConfigurationError: If paths are configured without a distribution
            InvalidationError: If the request fails
        """
        if not self.paths:
            logger.debug("No invalidation paths configured, skipping")
            return False
        if not self.distribution_id:
            raise ConfigurationError("No distribution specified")

        self.sink.write_line(f"Invalidating {len(self.paths)} Cloudfront URLs")
        if dry_run:
            for path in self.paths:
                self.sink.write_line(path)
            return True

        document = build_invalidation_batch(self.distribution_id, self.paths)
        response_body = self.client.create_invalidation(self.distribution_id, document)
        self.sink.write(response_body)
        return True
