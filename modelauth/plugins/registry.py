"""Provider registry: the host API plugins register providers with."""

from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from modelauth.auth.errors import RegistrationError
from modelauth.auth.handlers.base import AuthMethod
from modelauth.auth.refresh import TokenRefresher


@dataclass
class ProviderRegistration:
    """Everything a provider plugin hands to the host."""
    id: str
    label: str
    methods: list[AuthMethod]
    refresher: TokenRefresher | None = None
    aliases: list[str] = field(default_factory=list)
    env_vars: list[str] = field(default_factory=list)  # advisory only
    docs_path: str = ""

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise RegistrationError if the registration breaks an invariant."""
        if not self.id:
            raise RegistrationError("Provider registration needs an id")
        if not self.methods:
            raise RegistrationError(f"Provider '{self.id}' registers no auth methods")

        seen: set[str] = set()
        for method in self.methods:
            if method.method_id in seen:
                raise RegistrationError(f"Provider '{self.id}' has duplicate auth method '{method.method_id}'")
            seen.add(method.method_id)

        if self.refresher is None and any(m.yields_refreshable for m in self.methods):
            raise RegistrationError(
                f"Provider '{self.id}' offers refreshable credentials but registers no token refresher"
            )

    def get_method(self, method_id: str) -> AuthMethod | None:
        for method in self.methods:
            if method.method_id == method_id:
                return method
        return None


class HostAPI(Protocol):
    """What a provider plugin's ``register(api)`` may call."""

    def register_provider(self, registration: ProviderRegistration) -> None: ...


class ProviderRegistry:
    """Registry for managing provider registrations."""

    def __init__(self):
        self._providers: dict[str, ProviderRegistration] = {}

    def register_provider(self, registration: ProviderRegistration) -> None:
        """Register a provider. A later registration with the same id wins."""
        registration.validate()
        if registration.id in self._providers:
            logger.warning(f"Provider '{registration.id}' registered twice; keeping the latest")
        self._providers[registration.id] = registration
        logger.debug(f"Registered provider {registration.id} ({len(registration.methods)} auth methods)")

    def get(self, provider_id: str) -> ProviderRegistration | None:
        """Get a provider by id or alias."""
        if provider_id in self._providers:
            return self._providers[provider_id]
        for registration in self._providers.values():
            if provider_id in registration.aliases:
                return registration
        return None

    def list_all(self) -> list[ProviderRegistration]:
        """List all registered providers."""
        return list(self._providers.values())

    def unregister(self, provider_id: str) -> bool:
        """Unregister a provider by id. Returns True if it was found."""
        if provider_id in self._providers:
            del self._providers[provider_id]
            return True
        return False
