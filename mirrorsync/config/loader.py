"""
Config Loader — Load the mirror configuration file.

The file may be JSON or YAML and is validated against MirrorConfig.

## Resolution order

1. Explicit path (``--config``)
2. MIRRORSYNC_CONFIG environment variable
3. ``config.json`` in the working directory

## Environment Variables

- MIRRORSYNC_CONFIG: path to the config file
- MIRRORSYNC_DESTINATION: overrides ``destination`` from the file
- any variable named by a source's ``token_env``
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..models.source import MirrorConfig, Source

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file path from argument, env or default."""
    if path:
        return Path(path)
    env_path = os.environ.get("MIRRORSYNC_CONFIG")
    if env_path:
        return Path(env_path)
    return Path(DEFAULT_CONFIG_FILE)


def load_file(path: Path) -> Dict[str, Any]:
    """Read a JSON or YAML config file into a dict."""
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


def _resolve_token(source: Source) -> Source:
    if source.token or not source.token_env:
        return source
    token = os.environ.get(source.token_env)
    if not token:
        raise ConfigurationError(
            f"Source [{source}]: environment variable {source.token_env} is not set"
        )
    return source.model_copy(update={"token": token})


def parse_config(data: Dict[str, Any]) -> MirrorConfig:
    """Validate raw config data and resolve environment overrides."""
    data = _normalize_keys(data)

    destination = os.environ.get("MIRRORSYNC_DESTINATION")
    if destination:
        data["destination"] = destination

    try:
        config = MirrorConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    sources = [_resolve_token(s) for s in config.sources]
    return config.model_copy(update={"sources": sources})


def load_config(path: Optional[Union[str, Path]] = None) -> MirrorConfig:
    """
    Load and validate the mirror configuration.

    Raises:
        ConfigurationError: if the file is missing, unreadable or invalid
    """
    config_path = resolve_config_path(path)
    logger.debug(f"Loading config from {config_path}")
    config = parse_config(load_file(config_path))
    logger.info(
        f"Loaded {len(config.sources)} source(s), destination={config.destination}"
    )
    return config


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Accept the capitalised keys of older config.json files
    (``Sources``, ``Destination``, ``Domain``, ...).
    """
    def lower(d: Dict[str, Any]) -> Dict[str, Any]:
        return {str(k).lower(): v for k, v in d.items()}

    result = lower(data)
    sources = result.get("sources")
    if isinstance(sources, list):
        result["sources"] = [lower(s) if isinstance(s, dict) else s for s in sources]
    return result
