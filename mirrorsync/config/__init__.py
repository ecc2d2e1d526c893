"""
Config — Loading and validation of the mirror configuration.
"""

from .loader import load_config, parse_config, resolve_config_path

__all__ = ["load_config", "parse_config", "resolve_config_path"]
