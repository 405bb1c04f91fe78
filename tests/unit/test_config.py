"""
Unit tests for configuration resolution.

Tests cover:
- Precedence of flags, environment and YAML file
- Missing API key
- Malformed config files
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from featurebase_mcp.config import (
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_ORG_URL,
    load_config_file,
    resolve_config,
)
from featurebase_mcp.errors import ConfigurationMissingError
from featurebase_mcp.schema import DEFAULT_BASE_URL


def write_yaml(directory: Path, content: str) -> Path:
    path = directory / "featurebase.yaml"
    path.write_text(content)
    return path


class TestLoadConfigFile:
    """Tests for reading YAML files."""

    def test_mapping(self, temp_dir: Path) -> None:
        """A YAML mapping is returned as a dict."""
        path = write_yaml(temp_dir, "api_key: file-key\norg_url: https://fb.example\n")
        assert load_config_file(path) == {"api_key": "file-key", "org_url": "https://fb.example"}

    def test_empty_file(self, temp_dir: Path) -> None:
        """An empty file yields no values."""
        assert load_config_file(write_yaml(temp_dir, "")) == {}

    def test_missing_file(self, temp_dir: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config_file(temp_dir / "absent.yaml")

    def test_not_a_mapping(self, temp_dir: Path) -> None:
        """A YAML list is rejected."""
        with pytest.raises(ValueError, match="mapping"):
            load_config_file(write_yaml(temp_dir, "- a\n- b\n"))


class TestResolveConfig:
    """Tests for building ServerConfig."""

    def test_environment(self) -> None:
        """Values are read from the environment."""
        config = resolve_config(
            environ={ENV_API_KEY: "env-key", ENV_BASE_URL: "https://api.example/v2/", ENV_ORG_URL: "https://fb.example"}
        )
        assert config.api_key == "env-key"
        assert config.base_url == "https://api.example/v2"
        assert config.org_url == "https://fb.example"

    def test_defaults(self) -> None:
        """Only the API key is mandatory."""
        config = resolve_config(environ={ENV_API_KEY: "env-key"})
        assert config.base_url == DEFAULT_BASE_URL
        assert config.org_url is None
        assert config.timeout_seconds == 30.0

    def test_flag_beats_environment(self) -> None:
        """Command-line values take precedence."""
        config = resolve_config(api_key="flag-key", environ={ENV_API_KEY: "env-key"})
        assert config.api_key == "flag-key"

    def test_environment_beats_file(self, temp_dir: Path) -> None:
        """The environment overrides file values; the file fills the rest."""
        path = write_yaml(temp_dir, "api_key: file-key\norg_url: https://file.example\ntimeout_seconds: 5\n")
        config = resolve_config(config_file=path, environ={ENV_API_KEY: "env-key"})
        assert config.api_key == "env-key"
        assert config.org_url == "https://file.example"
        assert config.timeout_seconds == 5

    def test_file_only(self, temp_dir: Path) -> None:
        """A file alone is enough."""
        path = write_yaml(temp_dir, "api_key: file-key\n")
        assert resolve_config(config_file=path, environ={}).api_key == "file-key"

    def test_missing_api_key(self) -> None:
        """Without a key anywhere, resolution fails."""
        with pytest.raises(ConfigurationMissingError) as exc_info:
            resolve_config(environ={ENV_ORG_URL: "https://fb.example"})

        assert exc_info.value.setting == "api_key"
        assert exc_info.value.message == "API key is required"

    def test_empty_api_key(self) -> None:
        """An empty key is treated as missing."""
        with pytest.raises(ConfigurationMissingError):
            resolve_config(api_key="", environ={ENV_API_KEY: ""})

    def test_unknown_file_key(self, temp_dir: Path) -> None:
        """Typos in the config file fail validation."""
        path = write_yaml(temp_dir, "api_key: k\norg_uri: https://fb.example\n")
        with pytest.raises(ValidationError):
            resolve_config(config_file=path, environ={})
