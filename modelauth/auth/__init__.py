"""Credential profiles, auth methods and token refresh."""

from modelauth.auth.errors import (
    AuthCancelledError,
    AuthError,
    BrokerAuthError,
    RefreshError,
)
from modelauth.auth.profiles import (
    CredentialProfile,
    RefreshableToken,
    StaticSecret,
    derive_profile_id,
    profile_reference,
)

__all__ = [
    "AuthError",
    "AuthCancelledError",
    "BrokerAuthError",
    "RefreshError",
    "CredentialProfile",
    "StaticSecret",
    "RefreshableToken",
    "derive_profile_id",
    "profile_reference",
]
