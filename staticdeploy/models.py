"""Data types shared by the deploy components."""

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

Header = tuple[str, str]
"""A single HTTP header as (name, value)"""


@dataclass(frozen=True)
class MetadataRule:
    """A precompiled metadata rule: headers applied to keys matching a regex."""

    pattern: re.Pattern
    """Compiled regex matched against the upload key"""

    headers: tuple[Header, ...]
    """Headers appended, in order, when the pattern matches"""

    def matches(self, upload_key: str) -> bool:
        """Check whether this rule applies to an upload key."""
        return self.pattern.search(upload_key) is not None


@dataclass(frozen=True)
class FileEntry:
    """A local file selected for transfer."""

    local_path: str
    """Path of the file on disk (source root joined with the relative path)"""

    upload_key: str
    """Key in the bucket (relative path with forward slashes)"""

    headers: tuple[Header, ...] = ()
    """Headers to send with the file, in rule order, duplicates preserved"""


class WorkBatch(Mapping[str, FileEntry]):
    """Files selected for transfer, keyed by local path.

    The batch is immutable once built; filtering returns a new batch.
    Iteration order carries no meaning.
    """

    def __init__(self, entries: Optional[list[FileEntry]] = None):
        self._entries: dict[str, FileEntry] = {}
        for entry in entries or []:
            self._entries[entry.local_path] = entry

    def __getitem__(self, local_path: str) -> FileEntry:
        return self._entries[local_path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"WorkBatch({list(self._entries.values())!r})"

    def headers_for(self, local_path: str) -> list[Header]:
        """Get the header list for a file in the batch."""
        return list(self._entries[local_path].headers)

    def entries(self) -> list[FileEntry]:
        """Get all entries in the batch."""
        return list(self._entries.values())


@dataclass(frozen=True)
class RemoteRecord:
    """An object currently present in the bucket."""

    key: str
    """Object key"""

    content_hash: str
    """ETag with surrounding quotes stripped"""

    last_modified: datetime
    """Last modification time (timezone-aware)"""


class TransferOutcome(str, Enum):
    """Terminal state of a single transfer."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TransferResult:
    """Result of transferring one file."""

    local_path: str
    outcome: TransferOutcome = TransferOutcome.SUCCEEDED
    error: Optional[BaseException] = None
    elapsed: float = field(default=0.0)

    @property
    def succeeded(self) -> bool:
        return self.outcome == TransferOutcome.SUCCEEDED
