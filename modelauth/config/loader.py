"""Configuration loading utilities."""

import json
import os
import shutil
from pathlib import Path
from typing import Any

from filelock import FileLock
from loguru import logger
from pydantic import ValidationError

from modelauth.config.schema import Config

# Maps whose keys are names (provider ids, header names), not schema fields
_OPAQUE_KEY_MAPS = {"providers", "headers"}


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".modelauth" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            # Use utf-8-sig to tolerate BOM-prefixed JSON written by some tools.
            with open(path, encoding="utf-8-sig") as f:
                data = json.load(f)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file with file locking and atomic writes.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Convert to camelCase format
    data = convert_to_camel(config.to_dict())

    with FileLock(str(path) + ".lock", timeout=10):
        # Write to temp file first for atomic replacement
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

        if path.exists():
            shutil.copy2(path, path.with_suffix(".json.bak"))
        os.replace(temp_path, path)


def deep_merge(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``patch`` into a copy of ``base``. Lists are replaced."""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_config_patch(config: Config, patch: dict[str, Any]) -> Config:
    """
    Merge an auth config patch into ``config``.

    A provider section in the patch replaces the existing section for that
    provider instead of merging into it, so fields written by a previous
    auth method do not survive.

    Returns:
        A new validated Config; ``config`` is left untouched.
    """
    base = config.to_dict()
    for provider_id in (patch.get("models") or {}).get("providers") or {}:
        base["models"]["providers"].pop(provider_id, None)
    return Config.model_validate(deep_merge(base, patch))


def convert_keys(data: Any, _opaque: bool = False) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {
            (k if _opaque else camel_to_snake(k)): convert_keys(v, _opaque=(not _opaque and k in _OPAQUE_KEY_MAPS))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any, _opaque: bool = False) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {
            (k if _opaque else snake_to_camel(k)): convert_to_camel(v, _opaque=(not _opaque and k in _OPAQUE_KEY_MAPS))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
