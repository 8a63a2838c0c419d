"""Exceptions raised by staticdeploy."""

from typing import Optional


class DeployError(Exception):
    """Base exception for all deploy errors."""


class ConfigurationError(DeployError):
    """Raised when the configuration is missing, unreadable or invalid."""


class InvalidPatternError(ConfigurationError):
    """Raised when an ignore or metadata regex cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"Could not parse regex: {pattern!r}, {reason}")


class SourceUnavailableError(DeployError):
    """Raised when the source directory cannot be read or traversed."""


class RemoteError(DeployError):
    """Raised when a request to the object store fails."""


class MalformedInventoryError(DeployError):
    """Raised when the bucket listing response cannot be parsed."""


class TransferError(DeployError):
    """Raised when a single file transfer fails."""

    def __init__(self, message: str, local_path: Optional[str] = None):
        self.local_path = local_path
        super().__init__(message)


class InvalidationError(DeployError):
    """Raised when the CloudFront invalidation request fails."""
