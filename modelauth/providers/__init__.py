"""Built-in provider plugins."""

from modelauth.providers.base import ProviderPlugin
from modelauth.providers.models import ModelCost, ModelDescriptor

__all__ = ["ProviderPlugin", "ModelCost", "ModelDescriptor"]
