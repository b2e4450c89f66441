from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from modelauth.auth.errors import AuthError
from modelauth.auth.profiles import CredentialProfile
from modelauth.auth.prompter import InteractionContext


class AuthMethodKind(str, Enum):
    """Tells the host which UI affordances to show for a method."""
    API_KEY = "api_key"
    CUSTOM = "custom"


@dataclass
class AuthResult:
    """Outcome of a successful auth method run."""
    profiles: List[CredentialProfile]
    config_patch: Dict[str, Any]
    default_model: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    def ensure_no_raw_secrets(self) -> "AuthResult":
        """
        Check that no profile secret appears anywhere in the config patch.

        Raises:
            AuthError: If a raw key or token leaked into the patch.
        """
        values = set(_string_leaves(self.config_patch))
        for profile in self.profiles:
            if profile.secret and profile.secret in values:
                raise AuthError(
                    f"Config patch for profile '{profile.profile_id}' contains a raw secret"
                )
        return self


def _string_leaves(data: Any) -> Iterator[str]:
    """Yield every string key and value of a nested dict/list structure."""
    if isinstance(data, dict):
        for key, value in data.items():
            yield str(key)
            yield from _string_leaves(value)
    elif isinstance(data, (list, tuple)):
        for item in data:
            yield from _string_leaves(item)
    elif isinstance(data, str):
        yield data


class AuthMethod(ABC):
    """
    Abstract base class for all authentication methods.
    A provider offers one or more of these; the user picks exactly one.
    """

    method_id: str
    label: str
    hint: str = ""
    kind: AuthMethodKind = AuthMethodKind.CUSTOM
    yields_refreshable: bool = False

    @abstractmethod
    async def run(self, ctx: InteractionContext) -> AuthResult:
        """
        Execute the authentication flow (interactive).

        Returns:
            AuthResult holding the new credential profiles and the config
            patch that references them.
            Example patch: {'models': {'providers': {'azure-openai': {'api_key': 'profile:...'}}}}

        Raises:
            AuthError: On cancellation or when credentials cannot be obtained.
        """
