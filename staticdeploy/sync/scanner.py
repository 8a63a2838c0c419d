"""Source directory scanning and header assignment."""

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, Union

from ..config import MetadataConfig
from ..exceptions import ConfigurationError, InvalidPatternError, SourceUnavailableError
from ..models import FileEntry, Header, MetadataRule, WorkBatch
from ..utils import get_upload_key

logger = logging.getLogger(__name__)


def compile_pattern(pattern: str) -> re.Pattern:
    """Compile a regex from the configuration.

    Raises:
        InvalidPatternError: If the pattern is not a valid regex
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e)) from e


def compile_rules(metadata: Sequence[MetadataConfig]) -> tuple[MetadataRule, ...]:
    """Precompile metadata rules, preserving their order."""
    return tuple(
        MetadataRule(pattern=compile_pattern(rule.regex), headers=tuple(rule.headers))
        for rule in metadata
    )


class PathFilter:
    """Selects the files of a source tree and assigns their headers.

    All patterns are compiled up front, so a bad regex fails before the
    tree is touched.

    Examples:
        >>> path_filter = PathFilter(
        ...     ignore_pattern=r"\\.DS_Store",
        ...     metadata=[MetadataConfig(r"\\.html?$", (("Content-Type", "text/html"),))],
        ... )
        >>> batch = path_filter.classify("public")  # doctest: +SKIP
    """

    def __init__(
        self,
        ignore_pattern: str = "",
        metadata: Sequence[MetadataConfig] = (),
    ):
        """Initialize path filter.

        Args:
            ignore_pattern: Regex of full paths to exclude (empty excludes nothing)
            metadata: Header rules, applied in order

        Raises:
            InvalidPatternError: If any pattern is not a valid regex
        """
        self.ignore: Optional[re.Pattern] = (
            compile_pattern(ignore_pattern) if ignore_pattern else None
        )
        self.rules = compile_rules(metadata)

    def should_ignore(self, file_path: str) -> bool:
        """Check whether a file path matches the ignore pattern."""
        return self.ignore is not None and self.ignore.search(file_path) is not None

    def headers_for(self, upload_key: str) -> tuple[Header, ...]:
        """Collect the headers of every rule matching an upload key."""
        headers: list[Header] = []
        for rule in self.rules:
            if rule.matches(upload_key):
                headers.extend(rule.headers)
        return tuple(headers)

    def classify(self, source_root: Union[str, Path]) -> WorkBatch:
        """Walk the source tree and build the batch of files to transfer.

        Args:
            source_root: Directory to upload

        Returns:
            WorkBatch keyed by local path

        Raises:
            ConfigurationError: If no source directory is given
            SourceUnavailableError: If the tree cannot be read
        """
        if not str(source_root):
            raise ConfigurationError("No source specified")

        root = Path(source_root)
        if not root.exists():
            raise SourceUnavailableError(f"Could not read source directory {source_root}")
        if not root.is_dir():
            raise SourceUnavailableError(f"Source is not a directory: {source_root}")

        entries: list[FileEntry] = []
        ignored = 0
        for file_path in self._walk(root):
            local_path = str(file_path)
            if self.should_ignore(local_path):
                logger.debug("Ignoring %s", local_path)
                ignored += 1
                continue
            upload_key = get_upload_key(root, file_path)
            entries.append(
                FileEntry(
                    local_path=local_path,
                    upload_key=upload_key,
                    headers=self.headers_for(upload_key),
                )
            )

        logger.debug(
            "Classified %d file(s) under %s (%d ignored)",
            len(entries),
            source_root,
            ignored,
        )
        return WorkBatch(entries)

    def _walk(self, directory: Path) -> list[Path]:
        """Recursively list the files below a directory.

        Raises:
            SourceUnavailableError: If any directory cannot be read
        """
        files: list[Path] = []
        try:
            items = sorted(directory.iterdir())
        except OSError as e:
            raise SourceUnavailableError(
                f"Could not read source directory: {directory}, {e}"
            ) from e

        for item in items:
            try:
                if item.is_symlink() and item.is_dir():
                    logger.debug("Not following directory symlink %s", item)
                    continue
                if item.is_dir():
                    files.extend(self._walk(item))
                elif item.is_file():
                    files.append(item)
            except OSError as e:
                raise SourceUnavailableError(
                    f"Could not read source directory: {item}, {e}"
                ) from e
        return files
