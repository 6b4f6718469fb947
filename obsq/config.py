"""
Configuration loading.

Settings come from, in increasing precedence: built-in defaults, the YAML
config file (``.obsq.yaml`` in the working directory, or the file named by
``OBSQ_CONFIG``), ``OBSQ_*`` environment variables, and command-line flags.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE = ".obsq.yaml"
CONFIG_PATH_ENV = "OBSQ_CONFIG"

DEFAULT_CONFIG: dict[str, Any] = {
    "api_url": "",
    "otlp_url": "",
    "auth_token": "",
    "dataset": "",
    "timeout": 30.0,
}

# Config key -> environment variable
ENV_OVERRIDES = {
    "api_url": "OBSQ_API_URL",
    "otlp_url": "OBSQ_OTLP_URL",
    "auth_token": "OBSQ_AUTH_TOKEN",
    "dataset": "OBSQ_DATASET",
}


def config_path() -> Path:
    return Path(os.environ.get(CONFIG_PATH_ENV) or CONFIG_FILE)


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the config file merged over the defaults.

    A missing file yields the defaults; an unreadable or malformed one is
    reported as a warning and ignored.
    """
    path = path or config_path()
    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load %s: %s", path, e)
        return DEFAULT_CONFIG.copy()

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a mapping at the top level", path)
        return DEFAULT_CONFIG.copy()
    return {**DEFAULT_CONFIG, **data}


def resolve_config(path: Optional[Path] = None, **overrides: Optional[str]) -> dict[str, Any]:
    """Return the effective configuration.

    Keyword overrides (from command-line flags) win when they are non-empty.

    Raises:
        ValueError: If the configured timeout is not a number
    """
    config = load_config(path)
    for key, env_var in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value
    for key, value in overrides.items():
        if value:
            config[key] = value

    try:
        config["timeout"] = float(config["timeout"])
    except (TypeError, ValueError):
        raise ValueError(
            f"invalid timeout {config['timeout']!r} in configuration: expected a number of seconds"
        ) from None
    return config


def mask_token(token: str) -> str:
    """Hide all but the last four characters of a token."""
    if not token:
        return ""
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]


def save_config(config: dict[str, Any], path: Optional[Path] = None) -> Path:
    """Write ``config`` as YAML and return the path written to."""
    path = path or config_path()
    with open(path, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    logger.debug("Saved configuration to %s", path)
    return path
