"""Authentication methods offered by providers."""

from modelauth.auth.handlers.api_key import ApiKeyMethod
from modelauth.auth.handlers.base import AuthMethod, AuthMethodKind, AuthResult
from modelauth.auth.handlers.endpoint import EndpointAuthMethod, EndpointAuthSettings
from modelauth.auth.handlers.keyless import KeylessMethod

__all__ = [
    "AuthMethod",
    "AuthMethodKind",
    "AuthResult",
    "EndpointAuthMethod",
    "EndpointAuthSettings",
    "ApiKeyMethod",
    "KeylessMethod",
]
