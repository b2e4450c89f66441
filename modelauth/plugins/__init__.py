"""Provider plugin registry and loading."""

from modelauth.plugins.loader import load_builtin_providers, load_provider_plugins
from modelauth.plugins.registry import HostAPI, ProviderRegistration, ProviderRegistry

__all__ = [
    "HostAPI",
    "ProviderRegistration",
    "ProviderRegistry",
    "load_builtin_providers",
    "load_provider_plugins",
]
