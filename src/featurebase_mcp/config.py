"""
Configuration resolution.

Settings come from three places, highest precedence first:
    1. Command-line flags (--api-key, --base-url, --org-url)
    2. Environment variables (FEATUREBASE_API_KEY, FEATUREBASE_BASE_URL, FEATUREBASE_ORG_URL)
    3. An optional YAML file (--config)

The result is a frozen ServerConfig built once at startup and passed by
reference to the transport client; nothing reads the environment afterwards.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from featurebase_mcp.errors import ConfigurationMissingError
from featurebase_mcp.schema import ServerConfig

ENV_API_KEY = "FEATUREBASE_API_KEY"
ENV_BASE_URL = "FEATUREBASE_BASE_URL"
ENV_ORG_URL = "FEATUREBASE_ORG_URL"


def load_config_file(path: str | Path) -> dict[str, Any]:
    """
    Load configuration values from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Mapping of setting names to values (possibly empty)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a YAML mapping
    """
    path = Path(path)
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file must contain a YAML mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def resolve_config(
    api_key: str | None = None,
    base_url: str | None = None,
    org_url: str | None = None,
    config_file: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """
    Build the runtime configuration.

    Args:
        api_key: Value of --api-key, if given
        base_url: Value of --base-url, if given
        org_url: Value of --org-url, if given
        config_file: Optional YAML file with fallback values
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Frozen ServerConfig

    Raises:
        ConfigurationMissingError: If no API key is found anywhere
        ValidationError: If the resolved values fail validation
    """
    env = os.environ if environ is None else environ
    file_values = load_config_file(config_file) if config_file else {}

    values: dict[str, Any] = dict(file_values)
    for key, flag_value, env_name in (
        ("api_key", api_key, ENV_API_KEY),
        ("base_url", base_url, ENV_BASE_URL),
        ("org_url", org_url, ENV_ORG_URL),
    ):
        chosen = flag_value or env.get(env_name)
        if chosen:
            values[key] = chosen

    if not values.get("api_key"):
        raise ConfigurationMissingError(
            setting="api_key",
            flag="--api-key",
            env_var=ENV_API_KEY,
            message="API key is required",
        )

    return ServerConfig.model_validate(values)
