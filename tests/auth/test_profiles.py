"""Tests for credential profiles and profile id derivation."""
import time

import pytest

from modelauth.auth.profiles import (
    CredentialProfile,
    RefreshableToken,
    StaticSecret,
    derive_profile_id,
    parse_profile_reference,
    profile_reference,
)


def test_profile_id_is_provider_plus_host():
    assert derive_profile_id("azure-openai", "https://acme.openai.azure.com") == "azure-openai:acme.openai.azure.com"


def test_profile_id_is_idempotent():
    first = derive_profile_id("azure-openai", "https://acme.example.com")
    second = derive_profile_id("azure-openai", "https://acme.example.com")
    assert first == second


def test_profile_id_ignores_path_and_case():
    """Only the host matters, so re-login with another path overwrites."""
    a = derive_profile_id("p", "https://ACME.example.com/")
    b = derive_profile_id("p", "https://acme.example.com/openai/deployments/gpt-4o")
    assert a == b


def test_profile_id_differs_for_different_endpoint():
    a = derive_profile_id("azure-openai", "https://acme.example.com")
    b = derive_profile_id("azure-openai", "https://other.example.com")
    assert a != b


def test_profile_id_differs_for_different_provider():
    assert derive_profile_id("a", "https://x.example.com") != derive_profile_id("b", "https://x.example.com")


@pytest.mark.parametrize("endpoint", ["", "not a url", "acme.example.com", "/relative/path"])
def test_profile_id_rejects_non_absolute_urls(endpoint):
    with pytest.raises(ValueError):
        derive_profile_id("p", endpoint)


def test_profile_reference_round_trip():
    ref = profile_reference("azure-openai:acme.example.com")
    assert ref == "profile:azure-openai:acme.example.com"
    assert parse_profile_reference(ref) == "azure-openai:acme.example.com"


def test_parse_profile_reference_rejects_plain_values():
    assert parse_profile_reference("AZURE_OPENAI_API_KEY") is None
    assert parse_profile_reference("profile:") is None


def test_credential_union_parses_by_type():
    raw = {
        "profile_id": "p:h",
        "credential": {"type": "token", "provider": "p", "access_token": "at", "expires_at": 1},
    }
    profile = CredentialProfile.model_validate(raw)
    assert isinstance(profile.credential, RefreshableToken)
    assert profile.credential.refresh_token is None

    raw["credential"] = {"type": "api_key", "provider": "p", "key": "k"}
    assert isinstance(CredentialProfile.model_validate(raw).credential, StaticSecret)


def test_secret_property_by_kind():
    static = CredentialProfile(profile_id="p:h", credential=StaticSecret(provider="p", key="sk-1"))
    token = CredentialProfile(
        profile_id="p:h",
        credential=RefreshableToken(provider="p", access_token="at-1", expires_at=0),
    )
    assert static.secret == "sk-1"
    assert token.secret == "at-1"


def test_static_secret_never_expires():
    static = CredentialProfile(profile_id="p:h", credential=StaticSecret(provider="p", key="sk"))
    assert static.is_expiring(buffer_ms=10**12) is False


def test_token_expiry_respects_buffer():
    now = int(time.time() * 1000)
    profile = CredentialProfile(
        profile_id="p:h",
        credential=RefreshableToken(provider="p", access_token="at", expires_at=now + 60_000),
    )
    assert profile.is_expiring(buffer_ms=0, now_ms=now) is False
    assert profile.is_expiring(buffer_ms=120_000, now_ms=now) is True
    assert profile.is_expiring(buffer_ms=0, now_ms=now + 60_000) is True
