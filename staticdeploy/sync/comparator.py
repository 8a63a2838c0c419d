"""Change detection between local files and the remote inventory."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..exceptions import SourceUnavailableError
from ..models import RemoteRecord, WorkBatch
from ..utils import calculate_etag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeltaDecision:
    """Represents a decision about whether to transfer a file."""

    transfer: bool
    """True if the file must be uploaded"""

    reason: str
    """Human-readable reason for this decision"""

    upload_key: str
    """Key of the file in the bucket"""


class DeltaEngine:
    """Decides which files changed since the remote snapshot was taken.

    Decisions are pure functions of their inputs; the inventory is only
    read, so one engine can serve concurrent callers.
    """

    def decide(
        self,
        local_mtime: float,
        local_hash: str,
        inventory: Mapping[str, RemoteRecord],
        upload_key: str,
    ) -> bool:
        """Decide whether a file must be transferred.

        Args:
            local_mtime: Local modification time (Unix timestamp)
            local_hash: Lowercase hex MD5 of the local file
            inventory: Remote snapshot keyed by object key
            upload_key: Key of the file in the bucket

        Returns:
            True if the file must be transferred
        """
        return self.explain(local_mtime, local_hash, inventory, upload_key).transfer

    def explain(
        self,
        local_mtime: float,
        local_hash: str,
        inventory: Mapping[str, RemoteRecord],
        upload_key: str,
    ) -> DeltaDecision:
        """Decide whether a file must be transferred, with the reason."""
        record: Optional[RemoteRecord] = inventory.get(upload_key)

        # Case 1: Not in the bucket yet
        if record is None:
            return DeltaDecision(True, "New file", upload_key)

        # Case 2: Same content, whatever the timestamps say
        if local_hash == record.content_hash:
            return DeltaDecision(False, "Content unchanged", upload_key)

        # Case 3: Content differs, only upload if the local copy is newer
        local_modified = datetime.fromtimestamp(local_mtime, tz=timezone.utc)
        if local_modified > record.last_modified:
            return DeltaDecision(True, "Local file is newer", upload_key)

        return DeltaDecision(
            False, "Content differs but remote copy is not older", upload_key
        )

    def filter_batch(
        self, batch: WorkBatch, inventory: Mapping[str, RemoteRecord]
    ) -> WorkBatch:
        """Keep only the files of a batch that must be transferred.

        Args:
            batch: Files selected by the path filter
            inventory: Remote snapshot keyed by object key

        Returns:
            New batch with the unchanged files removed

        Raises:
            SourceUnavailableError: If a local file cannot be read
        """
        changed = []
        for entry in batch.entries():
            try:
                mtime = os.stat(entry.local_path).st_mtime
                etag = calculate_etag(entry.local_path)
            except OSError as e:
                raise SourceUnavailableError(
                    f"Could not read file: {entry.local_path} while calculating "
                    f"its ETag, {e}"
                ) from e

            decision = self.explain(mtime, etag, inventory, entry.upload_key)
            logger.debug(
                "%s: %s (%s)",
                entry.upload_key,
                "transfer" if decision.transfer else "skip",
                decision.reason,
            )
            if decision.transfer:
                changed.append(entry)

        logger.debug("Delta: %d of %d file(s) changed", len(changed), len(batch))
        return WorkBatch(changed)
