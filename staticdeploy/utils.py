"""Utility functions for staticdeploy."""

import hashlib
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Union

# =============================================================================
# Constants
# =============================================================================

# Default configuration file location
DEFAULT_CONFIG_PATH: str = "./config.yml"

# Default S3 region and endpoint
DEFAULT_REGION: str = "us-east-1"
DEFAULT_S3_ENDPOINT: str = "https://s3.amazonaws.com"

# CloudFront API endpoint and version
CLOUDFRONT_ENDPOINT: str = "https://cloudfront.amazonaws.com"
CLOUDFRONT_API_VERSION: str = "2016-11-25"

# Request timeout in seconds
DEFAULT_TIMEOUT: float = 60.0

# Read size used when hashing files (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_etag(file_path: Union[str, Path]) -> str:
    """Calculate the content hash S3 reports as ETag for a single-part object.

    Args:
        file_path: Path to the file

    Returns:
        Lowercase hex MD5 digest of the full file content

    Raises:
        OSError: If the file cannot be read

    Examples:
        >>> calculate_etag("empty.txt")  # doctest: +SKIP
        'd41d8cd98f00b204e9800998ecf8427e'
    """
    digest = hashlib.md5()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


# =============================================================================
# Timestamp parsing utilities
# =============================================================================

_RFC3339_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(\.\d+)?"
    r"([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(timestamp_str: str) -> datetime:
    """Parse a strict RFC 3339 timestamp with optional fractional seconds.

    Fractional digits beyond microseconds are truncated.

    Args:
        timestamp_str: Timestamp string (e.g., "2017-03-05T10:12:34.123Z")

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is not a valid RFC 3339 timestamp

    Examples:
        >>> parse_rfc3339("2017-03-05T10:12:34.5Z").isoformat()
        '2017-03-05T10:12:34.500000+00:00'
    """
    match = _RFC3339_RE.match(timestamp_str.strip())
    if not match:
        raise ValueError(f"Invalid RFC 3339 timestamp: {timestamp_str!r}")

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)

    microsecond = 0
    if fraction:
        microsecond = int(fraction[1:7].ljust(6, "0"))

    if zone in ("Z", "z"):
        tzinfo = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid RFC 3339 timestamp: {timestamp_str!r}")
        tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))

    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo)


# =============================================================================
# Path utilities
# =============================================================================


def get_upload_key(source_root: Union[str, Path], file_path: Union[str, Path]) -> str:
    """Strip the source root from a file path and normalize it for uploading.

    Args:
        source_root: Source directory the file was found under
        file_path: Path of the file

    Returns:
        Key with forward slashes and no source prefix

    Examples:
        >>> get_upload_key("public", "public/css/site.css")
        'css/site.css'
        >>> get_upload_key("./public/", "public/index.html")
        'index.html'
    """
    root = Path(source_root)
    path = Path(file_path)
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        # Path was given in a different form than the root (e.g. "./public")
        return Path(path.resolve()).relative_to(root.resolve()).as_posix()
