"""staticdeploy - Upload a static site to S3 and invalidate CloudFront."""

from .api import CloudFrontClient, S3Client
from .config import DeployConfig, load_config
from .exceptions import (
    ConfigurationError,
    DeployError,
    InvalidationError,
    InvalidPatternError,
    MalformedInventoryError,
    RemoteError,
    SourceUnavailableError,
    TransferError,
)
from .models import FileEntry, RemoteRecord, WorkBatch
from .utils import calculate_etag

__version__ = "0.4.0"

__all__ = [
    "CloudFrontClient",
    "S3Client",
    "DeployConfig",
    "load_config",
    "ConfigurationError",
    "DeployError",
    "InvalidationError",
    "InvalidPatternError",
    "MalformedInventoryError",
    "RemoteError",
    "SourceUnavailableError",
    "TransferError",
    "FileEntry",
    "RemoteRecord",
    "WorkBatch",
    "calculate_etag",
]
