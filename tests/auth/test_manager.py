# tests/auth/test_manager.py
import io
import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from modelauth.auth.broker import BrokerToken
from modelauth.auth.errors import ProfileNotFoundError
from modelauth.auth.manager import AuthManager
from modelauth.auth.profiles import RefreshableToken, StaticSecret
from modelauth.auth.prompter import ScriptedPrompter
from modelauth.auth.store import ProfileStore
from modelauth.config.loader import load_config

ENDPOINT = "https://acme.openai.azure.com"
PROFILE_ID = "azure-openai:acme.openai.azure.com"


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def manager(config, registry, store, config_path, output):
    return AuthManager(
        config=config,
        registry=registry,
        store=store,
        config_path=config_path,
        out=Console(file=output, force_terminal=False, width=200),
    )


def test_manager_lists_registered_providers(manager):
    assert [p.id for p in manager.list_providers()] == ["azure-openai"]


@pytest.mark.asyncio
async def test_api_key_login_persists_profile_and_config(manager, config_path, store):
    ok = await manager.login_async("azure-openai", "api-key", ScriptedPrompter([ENDPOINT, "gpt-4o", "sk-live-999"]))

    assert ok is True
    stored = ProfileStore(store.path).load().get(PROFILE_ID)
    assert isinstance(stored.credential, StaticSecret)
    assert stored.credential.key == "sk-live-999"

    raw = config_path.read_text()
    assert "sk-live-999" not in raw
    data = json.loads(raw)
    section = data["models"]["providers"]["azure-openai"]
    assert section["baseUrl"] == f"{ENDPOINT}/openai/deployments/gpt-4o"
    assert section["apiKey"] == f"profile:{PROFILE_ID}"
    assert section["headers"] == {"api-key": f"profile:{PROFILE_ID}"}
    assert data["defaultModel"] == "azure-openai/gpt-4o"

    reloaded = load_config(config_path)
    assert reloaded.provider_section("azure-openai").headers["api-key"] == f"profile:{PROFILE_ID}"


@pytest.mark.asyncio
async def test_login_accepts_alias(manager):
    assert await manager.login_async("azure", "api-key", ScriptedPrompter([ENDPOINT, "", "sk-1"])) is True


@pytest.mark.asyncio
async def test_keyless_login_stores_refreshable_token(manager, store, broker):
    ok = await manager.login_async("azure-openai", "keyless", ScriptedPrompter([ENDPOINT, ""]))

    assert ok is True
    assert broker.calls == 1
    stored = ProfileStore(store.path).load().get(PROFILE_ID)
    assert isinstance(stored.credential, RefreshableToken)
    assert manager.config.provider_section("azure-openai").auth == "token"


@pytest.mark.asyncio
async def test_switch_from_api_key_to_keyless_drops_static_reference(manager, broker):
    await manager.login_async("azure-openai", "api-key", ScriptedPrompter(["https://a.openai.azure.com", "", "sk-old"]))
    await manager.login_async("azure-openai", "keyless", ScriptedPrompter(["https://b.openai.azure.com", ""]))

    section = manager.config.provider_section("azure-openai")
    assert section.base_url == "https://b.openai.azure.com"
    assert section.auth == "token"
    assert section.api_key is None
    assert section.headers == {}

    secret = await manager.resolve_secret_async("azure-openai")
    assert secret != "sk-old"
    assert secret == manager.store.get("azure-openai:b.openai.azure.com").secret


@pytest.mark.asyncio
async def test_switch_from_keyless_to_api_key_drops_token_auth(manager, config_path):
    await manager.login_async("azure-openai", "keyless", ScriptedPrompter(["https://b.openai.azure.com", ""]))
    await manager.login_async("azure-openai", "api-key", ScriptedPrompter(["https://a.openai.azure.com", "", "sk-new"]))

    section = manager.config.provider_section("azure-openai")
    assert section.auth is None
    assert section.api_key == "profile:azure-openai:a.openai.azure.com"
    assert await manager.resolve_secret_async("azure-openai") == "sk-new"

    on_disk = load_config(config_path).provider_section("azure-openai")
    assert on_disk.auth is None


@pytest.mark.asyncio
async def test_keyless_failure_returns_false_and_stores_nothing(manager, registry, store, make_broker, output, config_path):
    registry.get("azure-openai").get_method("keyless").broker = make_broker(error=ConnectionError("no route"))

    ok = await manager.login_async("azure-openai", "keyless", ScriptedPrompter([ENDPOINT, ""]))

    assert ok is False
    assert store.list() == []
    assert not store.path.exists()
    assert not config_path.exists()
    assert "Ensure you have:" in output.getvalue()


@pytest.mark.asyncio
async def test_cancelled_login_returns_false(manager, output):
    ok = await manager.login_async("azure-openai", "api-key", ScriptedPrompter([ENDPOINT]))
    assert ok is False
    assert "cancelled" in output.getvalue()


@pytest.mark.asyncio
async def test_unknown_provider_and_method(manager, output):
    assert await manager.login_async("nope", "api-key", ScriptedPrompter()) is False
    assert await manager.login_async("azure-openai", "oauth", ScriptedPrompter()) is False
    assert "Provider 'nope' not found" in output.getvalue()
    assert "Method 'oauth' not found" in output.getvalue()


@pytest.mark.asyncio
async def test_login_without_method_shows_menu(manager):
    question = MagicMock()
    question.ask_async = AsyncMock(return_value="api-key")

    with patch("modelauth.auth.manager.questionary.select", return_value=question) as mock_select:
        ok = await manager.login_async("azure-openai", None, ScriptedPrompter([ENDPOINT, "", "sk-1"]))

    assert ok is True
    choices = mock_select.call_args.kwargs["choices"]
    assert [c.value for c in choices] == ["api-key", "keyless"]


@pytest.mark.asyncio
async def test_login_times_out(manager, output):
    manager.config.auth.login_timeout_seconds = 0.05

    class NeverAnswers(ScriptedPrompter):
        async def text(self, spec):
            import asyncio
            await asyncio.sleep(3600)

    assert await manager.login_async("azure-openai", "api-key", NeverAnswers()) is False
    assert "timed out" in output.getvalue()


@pytest.mark.asyncio
async def test_resolve_secret_for_api_key(manager):
    await manager.login_async("azure-openai", "api-key", ScriptedPrompter([ENDPOINT, "", "sk-resolve"]))
    assert await manager.resolve_secret_async("azure-openai") == "sk-resolve"


@pytest.mark.asyncio
async def test_resolve_secret_refreshes_expiring_token(manager, registry, make_broker):
    now_ms = int(time.time() * 1000)
    broker = make_broker(tokens=[
        BrokerToken(token="stale", expires_at=now_ms - 1000),
        BrokerToken(token="fresh", expires_at=now_ms + 3600_000),
    ])
    registry.get("azure-openai").get_method("keyless").broker = broker
    registry.get("azure-openai").refresher.broker = broker

    await manager.login_async("azure-openai", "keyless", ScriptedPrompter([ENDPOINT, "gpt-4o"]))

    assert await manager.resolve_secret_async("azure-openai") == "fresh"
    assert broker.calls == 2
    assert ProfileStore(manager.store.path).load().get(PROFILE_ID).credential.access_token == "fresh"


@pytest.mark.asyncio
async def test_resolve_secret_unconfigured_provider(manager):
    with pytest.raises(ProfileNotFoundError):
        await manager.resolve_secret_async("azure-openai")


@pytest.mark.asyncio
async def test_logout_removes_profile(manager, store):
    await manager.login_async("azure-openai", "api-key", ScriptedPrompter([ENDPOINT, "", "sk-1"]))

    assert manager.logout(PROFILE_ID) is True
    assert ProfileStore(store.path).load().get(PROFILE_ID) is None
    assert manager.logout(PROFILE_ID) is False


@pytest.mark.asyncio
async def test_status_lists_profiles(manager, output):
    await manager.login_async("azure-openai", "api-key", ScriptedPrompter([ENDPOINT, "", "sk-hidden"]))
    manager.get_status()

    text = output.getvalue()
    assert PROFILE_ID in text
    assert "api_key" in text
    assert "sk-hidden" not in text
