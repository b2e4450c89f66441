from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderPlugin:
    """Identity of a provider plugin module."""
    id: str
    name: str
    description: str = ""
    version: str = "1.0.0"
