"""
Configuration loader with YAML and environment variable support.

Priority (highest to lowest):
1. Environment variables: SERVICE_READY_SERVER__PORT=9200
2. User config: --config-dir path / ~/.service-ready-exporter/config.yaml
3. Built-in defaults: service_ready_exporter/config/defaults/
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from service_ready_exporter.config.models import ExporterConfig

logger = logging.getLogger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".service-ready-exporter"
PACKAGE_DEFAULTS_DIR = Path(__file__).parent / "defaults"

# Environment variable prefix
ENV_PREFIX = "SERVICE_READY_"
ENV_DELIMITER = "__"


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if isinstance(content, dict) else {}
    except yaml.YAMLError as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return {}


def _get_env_overrides(environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Variables are expected as SERVICE_READY_SECTION__KEY=value:
    SERVICE_READY_PROBE__TIMEOUT=2 -> {"probe": {"timeout": 2}}
    SERVICE_READY_SCRAPE__SERIALIZE=false -> {"scrape": {"serialize": False}}
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        key_path = key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER)
        if not all(key_path):
            logger.warning("Ignoring malformed config variable %s", key)
            continue

        current = overrides
        for part in key_path[:-1]:
            current = current.setdefault(part, {})

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate Python type."""
    # Boolean
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    # String (default)
    return value


def load_config(
    config_dir: Optional[str | Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> ExporterConfig:
    """
    Load configuration from multiple sources.

    Args:
        config_dir: Optional path to configuration directory.
                   If not provided, uses ~/.service-ready-exporter/
        environ: Environment mapping to read overrides from (default os.environ)

    Returns:
        ExporterConfig: Validated configuration object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    config_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "settings.yaml")

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    user_config = _load_yaml_file(user_config_dir / "config.yaml")
    config_data = _deep_merge(config_data, user_config)

    # Apply environment variable overrides (highest priority)
    config_data = _deep_merge(config_data, _get_env_overrides(environ))

    return ExporterConfig.model_validate(config_data)
