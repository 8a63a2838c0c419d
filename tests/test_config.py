"""Tests for configuration loading."""

import pytest

from staticdeploy.config import (
    BucketConfig,
    DeployConfig,
    MetadataConfig,
    load_config,
    parse_config,
)
from staticdeploy.exceptions import ConfigurationError

FULL_CONFIG = """
auth:
  accesskey: AKIDEXAMPLE
  key: secret
s3:
  bucket:
    name: my-bucket
  parallel: 4
  source: ./public
  ignore: "\\\\.DS_Store"
  metadata:
    - regex: "\\\\.html?$"
      headers:
        - Content-Type: text/html
    - regex: "\\\\.png$"
      headers:
        - Cache-Control: public
        - Content-Type: image/png
cloudfront:
  distribution:
    id: E123ABC
  invalidation:
    - /index.html
    - /css/*
"""


@pytest.fixture
def config_file(tmp_path):
    """Write a full configuration file."""
    path = tmp_path / "config.yml"
    path.write_text(FULL_CONFIG)
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_full_config(self, config_file):
        """Test that every section is read."""
        config = load_config(config_file, environ={})

        assert isinstance(config, DeployConfig)
        assert config.credentials.access_key == "AKIDEXAMPLE"
        assert config.credentials.secret_key == "secret"
        assert config.bucket.name == "my-bucket"
        assert config.parallel == 4
        assert config.source == "./public"
        assert config.ignore == "\\.DS_Store"
        assert config.distribution_id == "E123ABC"
        assert config.invalidation == ("/index.html", "/css/*")

    def test_metadata_rules_in_order(self, config_file):
        """Test that metadata rules and their headers keep file order."""
        config = load_config(config_file, environ={})

        assert config.metadata == (
            MetadataConfig(r"\.html?$", (("Content-Type", "text/html"),)),
            MetadataConfig(
                r"\.png$",
                (("Cache-Control", "public"), ("Content-Type", "image/png")),
            ),
        )

    def test_missing_file(self, tmp_path):
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="Could not read config file"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        """Test that a YAML syntax error reports its location."""
        path = tmp_path / "config.yml"
        path.write_text("s3:\n  bucket: [unclosed\n")

        with pytest.raises(ConfigurationError, match="line"):
            load_config(path)

    def test_top_level_not_mapping(self, tmp_path):
        """Test that a list document is rejected."""
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_secret_not_in_repr(self, config_file):
        """Test that the secret key is not shown in reprs."""
        config = load_config(config_file, environ={})
        assert "secret" not in repr(config.credentials)


class TestParseConfig:
    """Tests for parse_config."""

    def _base(self, **s3):
        data = {
            "auth": {"accesskey": "AK", "key": "SK"},
            "s3": {"bucket": {"name": "bucket"}, "source": "public"},
        }
        data["s3"].update(s3)
        return data

    def test_credentials_from_environment(self):
        """Test fallback to AWS environment variables."""
        data = self._base()
        del data["auth"]
        env = {"AWS_ACCESS_KEY_ID": "ENVAK", "AWS_SECRET_ACCESS_KEY": "ENVSK"}

        config = parse_config(data, environ=env)

        assert config.credentials.access_key == "ENVAK"
        assert config.credentials.secret_key == "ENVSK"

    def test_config_credentials_win_over_environment(self):
        """Test that credentials in the file take precedence."""
        env = {"AWS_ACCESS_KEY_ID": "ENVAK", "AWS_SECRET_ACCESS_KEY": "ENVSK"}
        config = parse_config(self._base(), environ=env)
        assert config.credentials.access_key == "AK"

    def test_missing_credentials(self):
        """Test that no credentials anywhere is fatal."""
        data = self._base()
        del data["auth"]

        with pytest.raises(ConfigurationError, match="No AWS credentials found"):
            parse_config(data, environ={})

    def test_partial_credentials(self):
        """Test that only one half of the key pair is fatal."""
        data = self._base()
        data["auth"] = {"accesskey": "AK"}

        with pytest.raises(ConfigurationError, match="credentials"):
            parse_config(data, environ={})

    def test_missing_bucket(self):
        """Test that a missing bucket name is fatal."""
        data = self._base()
        data["s3"]["bucket"] = {}

        with pytest.raises(ConfigurationError, match="No bucket specified"):
            parse_config(data, environ={})

    @pytest.mark.parametrize("parallel", [None, 0, -3])
    def test_parallel_defaults_to_one(self, parallel):
        """Test that missing or non-positive parallelism becomes 1."""
        config = parse_config(self._base(parallel=parallel), environ={})
        assert config.parallel == 1

    def test_parallel_must_be_integer(self):
        """Test that a non-integer parallel value is rejected."""
        with pytest.raises(ConfigurationError, match="parallel"):
            parse_config(self._base(parallel="many"), environ={})

    def test_keys_case_insensitive(self):
        """Test that section and field names ignore case."""
        data = {
            "Auth": {"AccessKey": "AK", "Key": "SK"},
            "S3": {"Bucket": {"Name": "bucket"}, "Parallel": 2},
        }
        config = parse_config(data, environ={})
        assert config.bucket.name == "bucket"
        assert config.parallel == 2

    def test_optional_sections(self):
        """Test that ignore, metadata and cloudfront are optional."""
        config = parse_config(self._base(), environ={})
        assert config.ignore == ""
        assert config.metadata == ()
        assert config.distribution_id == ""
        assert config.invalidation == ()

    def test_multiple_headers_in_one_mapping(self):
        """Test that a header mapping with several entries keeps their order."""
        data = self._base(
            metadata=[
                {"regex": ".*", "headers": [{"X-A": "1", "X-B": "2"}, {"X-A": "3"}]}
            ]
        )
        config = parse_config(data, environ={})
        assert config.metadata[0].headers == (("X-A", "1"), ("X-B", "2"), ("X-A", "3"))

    def test_header_values_converted_to_strings(self):
        """Test that non-string YAML values become strings."""
        data = self._base(metadata=[{"regex": ".*", "headers": [{"X-Max": 3600}]}])
        config = parse_config(data, environ={})
        assert config.metadata[0].headers == (("X-Max", "3600"),)

    def test_metadata_must_be_list(self):
        """Test that a malformed metadata section is rejected."""
        with pytest.raises(ConfigurationError, match="metadata"):
            parse_config(self._base(metadata="oops"), environ={})

    def test_section_must_be_mapping(self):
        """Test that a scalar section is rejected."""
        data = self._base()
        data["cloudfront"] = "E123"
        with pytest.raises(ConfigurationError, match="cloudfront"):
            parse_config(data, environ={})

    def test_config_is_immutable(self):
        """Test that the parsed config cannot be modified."""
        config = parse_config(self._base(), environ={})
        with pytest.raises(AttributeError):
            config.parallel = 10


class TestBucketConfig:
    """Tests for BucketConfig URLs."""

    def test_default_endpoint(self):
        """Test the us-east-1 endpoint used by default."""
        bucket = BucketConfig(name="site")
        assert bucket.url == "https://s3.amazonaws.com/site"

    def test_regional_endpoint(self):
        """Test a regional endpoint."""
        bucket = BucketConfig(name="site", region="eu-central-1")
        assert bucket.url == "https://s3.eu-central-1.amazonaws.com/site"

    def test_custom_endpoint(self):
        """Test a custom endpoint for S3-compatible stores."""
        bucket = BucketConfig(name="site", endpoint="http://localhost:9000/")
        assert bucket.url == "http://localhost:9000/site"
