"""Shared fixtures: a fake identity broker, stores and registries on tmp paths."""

import time
from pathlib import Path

import pytest

from modelauth.auth.broker import BrokerToken, IdentityBroker
from modelauth.auth.store import ProfileStore
from modelauth.config.schema import Config
from modelauth.plugins.registry import ProviderRegistry


class FakeBroker(IdentityBroker):
    """Identity broker returning canned tokens or raising a canned error."""

    def __init__(self, tokens=None, error: Exception | None = None):
        self.tokens = list(tokens or [])
        self.error = error
        self.scopes: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.scopes)

    async def get_token(self, scope: str) -> BrokerToken:
        self.scopes.append(scope)
        if self.error is not None:
            raise self.error
        if self.tokens:
            return self.tokens.pop(0)
        return BrokerToken(token=f"token-{self.calls}", expires_at=int(time.time() * 1000) + 3600_000)


@pytest.fixture(autouse=True)
def _clean_provider_env(monkeypatch):
    """Keep a developer's Azure env vars from prefilling prompts."""
    for var in ("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_DEPLOYMENT_NAME", "AZURE_OPENAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def store(tmp_path: Path):
    return ProfileStore(tmp_path / "auth-profiles.json")


@pytest.fixture
def config(tmp_path: Path):
    cfg = Config()
    cfg.auth.profiles_path = str(tmp_path / "auth-profiles.json")
    cfg.plugins.plugin_dir = str(tmp_path / "plugins")
    cfg.logging.enabled = False
    return cfg


@pytest.fixture
def registry(broker):
    from modelauth.providers import azure_openai

    reg = ProviderRegistry()
    azure_openai.register(reg, broker=broker)
    return reg


@pytest.fixture
def make_broker():
    """Factory for brokers with canned tokens or errors."""
    return FakeBroker
