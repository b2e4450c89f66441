"""
Provider plugin loader.

Two sources of providers:
1. Built-in provider modules shipped with modelauth
2. plugin.json directories: external plugins whose entry point exposes
   ``register(api)``
"""

import importlib
import importlib.util
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from modelauth.plugins.registry import ProviderRegistry

BUILTIN_PROVIDER_MODULES = [
    "modelauth.providers.azure_openai",
]


@dataclass
class PluginManifest:
    """Parsed plugin manifest from plugin.json."""
    id: str
    name: str
    version: str = "1.0.0"
    description: str = ""
    entry_point: str = "main.py"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginManifest":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            version=data.get("version", "1.0.0"),
            description=data.get("description", ""),
            entry_point=data.get("entry_point", "main.py"),
        )

    def validate(self) -> list[str]:
        """Validate manifest and return list of issues."""
        issues = []
        if not self.id:
            issues.append("Missing 'id' field")
        if not self.name:
            issues.append("Missing 'name' field")
        return issues


def load_builtin_providers(registry: ProviderRegistry, disabled: list[str] | None = None) -> list[str]:
    """
    Register the built-in providers.

    Returns:
        Module names that registered successfully.
    """
    disabled = set(disabled or [])
    loaded = []
    for module_name in BUILTIN_PROVIDER_MODULES:
        module = importlib.import_module(module_name)
        plugin = getattr(module, "PLUGIN", None)
        if plugin is not None and plugin.id in disabled:
            logger.debug(f"Provider plugin {plugin.id} disabled")
            continue
        module.register(registry)
        loaded.append(module_name)
    return loaded


def load_provider_plugins(
    plugin_dir: Path,
    registry: ProviderRegistry,
    disabled: list[str] | None = None,
) -> list[PluginManifest]:
    """
    Scan directory for plugin.json manifests and load provider plugins.

    Each plugin's entry point must define ``register(api)``; it is called
    once with the registry. Broken plugins are logged and skipped.

    Args:
        plugin_dir: Directory containing plugin folders
        registry: Provider registry handed to ``register``
        disabled: Plugin ids to skip

    Returns:
        Manifests of successfully loaded plugins
    """
    loaded = []
    disabled = set(disabled or [])
    if not plugin_dir.exists():
        return []

    for item in sorted(plugin_dir.iterdir()):
        if not item.is_dir():
            continue

        manifest_file = item / "plugin.json"
        if not manifest_file.exists():
            continue

        try:
            with open(manifest_file, encoding="utf-8") as f:
                manifest = PluginManifest.from_dict(json.load(f))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid plugin.json in {item.name}: {e}")
            continue

        issues = manifest.validate()
        if issues:
            logger.warning(f"Plugin {item.name} manifest issues: {', '.join(issues)}")
            continue

        if manifest.id in disabled:
            logger.debug(f"Plugin {manifest.id} disabled")
            continue

        entry_file = item / manifest.entry_point
        if not entry_file.exists():
            logger.warning(f"Plugin {manifest.id}: entry point '{manifest.entry_point}' not found")
            continue

        module = _load_module(manifest.id, entry_file)
        if module is None:
            continue

        if not hasattr(module, "register"):
            logger.warning(f"Plugin {manifest.id} has no register() function")
            continue

        try:
            module.register(registry)
        except Exception as e:
            logger.error(f"Plugin {manifest.id} register() failed: {e}")
            continue

        loaded.append(manifest)
        logger.info(f"Loaded provider plugin: {manifest.name} v{manifest.version}")

    return loaded


def _load_module(module_name: str, file_path: Path) -> Any:
    """Dynamically load a Python module from a file path."""
    try:
        spec = importlib.util.spec_from_file_location(
            f"modelauth_plugins.{module_name.replace('-', '_')}",
            str(file_path),
        )
        if spec is None or spec.loader is None:
            logger.error(f"Could not create module spec for {file_path}")
            return None

        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        spec.loader.exec_module(module)
        return module

    except Exception as e:
        logger.error(f"Failed to load module {module_name}: {e}")
        return None
