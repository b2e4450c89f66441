"""Credential profile model and profile id derivation."""

from __future__ import annotations

import time
from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field

PROFILE_REF_PREFIX = "profile:"

# Metadata flag set on tokens that the provider's identity broker renews
USE_EXTERNAL_REFRESH = "use_external_refresh"


class StaticSecret(BaseModel):
    """Long-lived API key. Never expires, never refreshed."""
    type: Literal["api_key"] = "api_key"
    provider: str
    key: str
    metadata: dict[str, str] = Field(default_factory=dict)


class RefreshableToken(BaseModel):
    """Short-lived access token renewed by the provider's refresher."""
    type: Literal["token"] = "token"
    provider: str
    access_token: str
    refresh_token: str | None = None   # unused by broker-backed tokens
    expires_at: int                    # ms since epoch
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def uses_external_refresh(self) -> bool:
        return self.metadata.get(USE_EXTERNAL_REFRESH) == "true"


Credential = Annotated[StaticSecret | RefreshableToken, Field(discriminator="type")]


class CredentialProfile(BaseModel):
    """A stored, provider-scoped credential addressed by a stable id."""
    profile_id: str
    credential: Credential

    @property
    def provider(self) -> str:
        return self.credential.provider

    @property
    def metadata(self) -> dict[str, str]:
        return self.credential.metadata

    @property
    def secret(self) -> str:
        """The value a request should carry for this profile."""
        if isinstance(self.credential, StaticSecret):
            return self.credential.key
        return self.credential.access_token

    def is_expiring(self, buffer_ms: int = 0, now_ms: int | None = None) -> bool:
        """True when a token is expired or will expire within ``buffer_ms``."""
        if not isinstance(self.credential, RefreshableToken):
            return False  # API keys don't expire
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return now_ms >= self.credential.expires_at - buffer_ms


def endpoint_host(endpoint: str) -> str:
    """Return the lower-cased host of an absolute URL.

    Raises:
        ValueError: If ``endpoint`` has no scheme or host.
    """
    parsed = urlparse(endpoint.strip())
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"Not an absolute URL: {endpoint!r}")
    return parsed.hostname


def derive_profile_id(provider_id: str, endpoint: str) -> str:
    """Build the profile id for a provider/endpoint pair.

    The id only depends on the provider and the endpoint host, so logging in
    again against the same resource overwrites the existing profile.

    >>> derive_profile_id("azure-openai", "https://Acme.openai.azure.com/")
    'azure-openai:acme.openai.azure.com'
    """
    return f"{provider_id}:{endpoint_host(endpoint)}"


def profile_reference(profile_id: str) -> str:
    """Symbolic reference placed in config instead of the secret itself."""
    return f"{PROFILE_REF_PREFIX}{profile_id}"


def parse_profile_reference(value: str) -> str | None:
    """Return the profile id of a ``profile:<id>`` reference, else None."""
    if value.startswith(PROFILE_REF_PREFIX) and len(value) > len(PROFILE_REF_PREFIX):
        return value[len(PROFILE_REF_PREFIX):]
    return None
