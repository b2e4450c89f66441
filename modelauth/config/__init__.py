"""Configuration module for modelauth."""

from modelauth.config.loader import apply_config_patch, get_config_path, load_config, save_config
from modelauth.config.schema import Config

__all__ = ["Config", "load_config", "save_config", "get_config_path", "apply_config_patch"]
