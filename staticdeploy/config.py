"""Configuration loading for staticdeploy.

The configuration file is YAML with three sections::

    auth:
      accesskey: AKIA...
      key: secret
    s3:
      bucket:
        name: my-bucket
      parallel: 4
      source: ./public
      ignore: "\\.DS_Store"
      metadata:
        - regex: "\\.html?$"
          headers:
            - Content-Type: text/html
    cloudfront:
      distribution:
        id: E123ABC
      invalidation:
        - /index.html

Credentials missing from the file are read from ``AWS_ACCESS_KEY_ID`` and
``AWS_SECRET_ACCESS_KEY``.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import ConfigurationError
from .models import Header
from .utils import DEFAULT_REGION, DEFAULT_S3_ENDPOINT, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"


@dataclass(frozen=True)
class Credentials:
    """AWS key pair used to sign requests."""

    access_key: str
    secret_key: str = field(repr=False)


@dataclass(frozen=True)
class BucketConfig:
    """Target bucket of the upload."""

    name: str
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    """Custom endpoint for S3-compatible stores"""

    @property
    def endpoint_url(self) -> str:
        """Base URL requests are sent to (bucket is addressed path-style)."""
        if self.endpoint:
            return self.endpoint.rstrip("/")
        if self.region == DEFAULT_REGION:
            return DEFAULT_S3_ENDPOINT
        return f"https://s3.{self.region}.amazonaws.com"

    @property
    def url(self) -> str:
        return f"{self.endpoint_url}/{self.name}"


@dataclass(frozen=True)
class MetadataConfig:
    """Headers applied to every upload key matching ``regex``."""

    regex: str
    headers: tuple[Header, ...] = ()


@dataclass(frozen=True)
class DeployConfig:
    """Immutable configuration of a deploy run."""

    credentials: Credentials
    bucket: BucketConfig
    source: str = ""
    parallel: int = 1
    ignore: str = ""
    metadata: tuple[MetadataConfig, ...] = ()
    distribution_id: str = ""
    invalidation: tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT


def load_config(
    path: Union[str, Path], environ: Optional[Mapping[str, str]] = None
) -> DeployConfig:
    """Read and validate a configuration file.

    Args:
        path: Path to the YAML configuration file
        environ: Environment used for credential fallback (defaults to os.environ)

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Could not read config file: {config_path}, {e}") from e
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            location = f"line {mark.line + 1}, column {mark.column + 1}"
            raise ConfigurationError(
                f"Could not parse config {config_path} at {location}: "
                f"{getattr(e, 'problem', e)}"
            ) from e
        raise ConfigurationError(f"Could not parse config {config_path}: {e}") from e

    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Could not parse config {config_path}: expected a mapping at top level"
        )

    logger.debug("Loaded config from %s", config_path)
    return parse_config(data, environ)


def parse_config(
    data: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None
) -> DeployConfig:
    """Build a DeployConfig from already-parsed configuration data.

    Args:
        data: Parsed YAML document
        environ: Environment used for credential fallback (defaults to os.environ)

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If required values are missing or malformed
    """
    env = os.environ if environ is None else environ

    auth = _section(data, "auth")
    s3 = _section(data, "s3")
    cloudfront = _section(data, "cloudfront")
    bucket = _section(s3, "bucket")
    distribution = _section(cloudfront, "distribution")

    access_key = _string(auth, "accesskey") or env.get(ACCESS_KEY_ENV, "")
    secret_key = _string(auth, "key") or env.get(SECRET_KEY_ENV, "")
    if not access_key or not secret_key:
        raise ConfigurationError("No AWS credentials found")

    bucket_name = _string(bucket, "name")
    if not bucket_name:
        raise ConfigurationError("No bucket specified")

    parallel = _get(s3, "parallel")
    if parallel is None:
        parallel = 1
    if isinstance(parallel, bool) or not isinstance(parallel, int):
        raise ConfigurationError(f"s3.parallel must be an integer, got {parallel!r}")
    if parallel <= 0:
        parallel = 1

    timeout = _get(s3, "timeout")
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigurationError(f"s3.timeout must be a number, got {timeout!r}")

    return DeployConfig(
        credentials=Credentials(access_key=access_key, secret_key=secret_key),
        bucket=BucketConfig(
            name=bucket_name,
            region=_string(bucket, "region") or DEFAULT_REGION,
            endpoint=_string(bucket, "endpoint") or None,
        ),
        source=_string(s3, "source"),
        parallel=parallel,
        ignore=_string(s3, "ignore"),
        metadata=_parse_metadata(_get(s3, "metadata")),
        distribution_id=_string(distribution, "id"),
        invalidation=_parse_invalidation(_get(cloudfront, "invalidation")),
        timeout=float(timeout),
    )


def _get(data: Mapping[str, Any], key: str) -> Any:
    """Look up a key case-insensitively."""
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == key:
            return value
    return None


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = _get(data, key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Config section '{key}' must be a mapping")
    return value


def _string(data: Mapping[str, Any], key: str) -> str:
    value = _get(data, key)
    if value is None:
        return ""
    if isinstance(value, (Mapping, list)):
        raise ConfigurationError(f"Config value '{key}' must be a scalar")
    return str(value)


def _parse_headers(raw: Any, regex: str) -> tuple[Header, ...]:
    """Flatten a list of header mappings into ordered (name, value) pairs."""
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        raw = [raw]
    if not isinstance(raw, list):
        raise ConfigurationError(f"Headers for regex {regex!r} must be a list")

    headers: list[Header] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ConfigurationError(
                f"Header entry for regex {regex!r} must be a mapping, got {item!r}"
            )
        for name, value in item.items():
            headers.append((str(name), "" if value is None else str(value)))
    return tuple(headers)


def _parse_metadata(raw: Any) -> tuple[MetadataConfig, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("s3.metadata must be a list")

    rules = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"Metadata rule must be a mapping, got {item!r}")
        regex = _string(item, "regex")
        rules.append(
            MetadataConfig(regex=regex, headers=_parse_headers(_get(item, "headers"), regex))
        )
    return tuple(rules)


def _parse_invalidation(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        raise ConfigurationError("cloudfront.invalidation must be a list of paths")
    return tuple(str(path) for path in raw)
