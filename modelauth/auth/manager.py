"""Authentication manager: runs auth methods and persists their results."""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import questionary
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from modelauth.auth.errors import AuthCancelledError, AuthError, BrokerAuthError, ProfileNotFoundError
from modelauth.auth.handlers.base import AuthMethod, AuthResult
from modelauth.auth.profiles import RefreshableToken, derive_profile_id
from modelauth.auth.prompter import ConsolePrompter, InteractionContext
from modelauth.auth.refresh import TokenRefreshService
from modelauth.auth.store import ProfileStore
from modelauth.auth.utils import mask_secret
from modelauth.config.loader import apply_config_patch, load_config, save_config
from modelauth.config.schema import Config
from modelauth.plugins.loader import load_builtin_providers, load_provider_plugins
from modelauth.plugins.registry import ProviderRegistration, ProviderRegistry

console = Console()


def build_registry(config: Config) -> ProviderRegistry:
    """Registry with built-in providers plus plugins from the plugin dir."""
    registry = ProviderRegistry()
    load_builtin_providers(registry, disabled=config.plugins.disabled)
    load_provider_plugins(config.plugins.plugin_path, registry, disabled=config.plugins.disabled)
    return registry


class AuthManager:
    """Manages authentication for multiple providers with multiple methods."""

    def __init__(
        self,
        config: Optional[Config] = None,
        registry: Optional[ProviderRegistry] = None,
        store: Optional[ProfileStore] = None,
        config_path: Optional[Path] = None,
        out: Optional[Console] = None,
    ):
        self.config_path = config_path
        self.config = config or load_config(config_path)
        self.registry = registry or build_registry(self.config)
        self.store = store or ProfileStore(self.config.auth.profiles_file).load()
        self.console = out or console
        self.refresh_service = TokenRefreshService(
            self.registry,
            buffer_ms=self.config.auth.refresh_buffer_ms,
            timeout_seconds=self.config.auth.refresh_timeout_seconds,
        )

    def list_providers(self) -> List[ProviderRegistration]:
        """Return the registered providers."""
        return self.registry.list_all()

    def login(
        self,
        provider_id: str,
        method_id: Optional[str] = None,
        prompter: Optional[InteractionContext] = None,
    ) -> bool:
        """Synchronous wrapper around :meth:`login_async`."""
        return asyncio.run(self.login_async(provider_id, method_id, prompter))

    async def login_async(
        self,
        provider_id: str,
        method_id: Optional[str] = None,
        prompter: Optional[InteractionContext] = None,
    ) -> bool:
        """
        Execute login flow with method selection.

        Args:
            provider_id: Provider id or alias (e.g., "azure-openai", "azure")
            method_id: Optional method (e.g., "keyless"). If None, show menu.
            prompter: Interaction context; the terminal prompter by default.

        Returns:
            True if authentication successful, False otherwise
        """
        # 1. Validate provider
        provider = self.registry.get(provider_id)
        if provider is None:
            self.console.print(f"[bold red]Error:[/bold red] Provider '{provider_id}' not found.")
            return False

        # 2. Method selection
        method = await self._select_method(provider, method_id)
        if method is None:
            return False

        # 3. Execute authentication
        try:
            result = await asyncio.wait_for(
                method.run(prompter or ConsolePrompter(self.console)),
                timeout=self.config.auth.login_timeout_seconds,
            )
        except AuthCancelledError:
            self.console.print("\n│  [yellow]Authentication cancelled.[/yellow]")
            return False
        except asyncio.TimeoutError:
            self.console.print("\n│  [red]Authentication timed out.[/red]")
            return False
        except BrokerAuthError as e:
            logger.warning(f"{provider.id}/{method.method_id} login failed ({e.kind.value}): {e.cause}")
            self.console.print(f"\n│  [bold red]{escape(str(e))}[/bold red]")
            return False
        except AuthError as e:
            self.console.print(f"\n│  [bold red]Authentication failed:[/bold red] {escape(str(e))}")
            return False

        # 4. Save credentials
        if not self._save_result(result):
            return False

        for note in result.notes:
            self.console.print(f"│  [dim]{note}[/dim]")
        return True

    async def _select_method(self, provider: ProviderRegistration, method_id: Optional[str]) -> Optional[AuthMethod]:
        if method_id is not None:
            method = provider.get_method(method_id)
            if method is None:
                self.console.print(f"[bold red]Error:[/bold red] Method '{method_id}' not found for {provider.id}.")
            return method

        # If only 1 method, use it directly (no menu)
        if len(provider.methods) == 1:
            method = provider.methods[0]
            self.console.print(f"│  [dim]Using {method.label}[/dim]")
            return method

        return await self._prompt_method_selection(provider)

    async def _prompt_method_selection(self, provider: ProviderRegistration) -> Optional[AuthMethod]:
        """Show interactive method selection menu using arrow keys."""
        self.console.print("│")
        choices = [
            questionary.Choice(title=f"{m.label} - {m.hint}" if m.hint else m.label, value=m.method_id)
            for m in provider.methods
        ]
        selected = await questionary.select(
            f"◇  Select authentication method for {provider.label}",
            choices=choices,
            style=questionary.Style([
                ('qmark', 'fg:cyan bold'),
                ('question', 'bold'),
                ('pointer', 'fg:cyan bold'),
                ('highlighted', 'fg:cyan bold'),
                ('selected', 'fg:green'),
            ])
        ).ask_async()

        if not selected:
            return None
        return provider.get_method(selected)

    def _save_result(self, result: AuthResult) -> bool:
        """Persist profiles and merge the config patch."""
        try:
            for profile in result.profiles:
                if self.store.upsert(profile):
                    logger.info(f"Replaced existing profile {profile.profile_id}")
            self.store.save()

            config = apply_config_patch(self.config, result.config_patch)
            if result.default_model:
                config.default_model = result.default_model
            save_config(config, self.config_path)
            self.config = config
            return True

        except (OSError, ValueError) as e:
            self.console.print(f"│  [bold red]Error saving credentials:[/bold red] {e}")
            return False

    async def resolve_secret_async(self, provider_id: str) -> str:
        """
        Resolve the secret a request to ``provider_id`` should carry.

        Static keys resolve through their ``profile:<id>`` reference. Token
        providers use the profile of the configured endpoint, refreshed first
        when it is about to expire.

        Raises:
            ProfileNotFoundError: If nothing is configured for the provider.
            RefreshError: If an expiring token cannot be renewed.
        """
        section = self.config.provider_section(provider_id)
        if section is None:
            raise ProfileNotFoundError(f"Provider '{provider_id}' is not configured")

        if section.api_key:
            return self.store.resolve_reference(section.api_key)

        profile = self.store.get(derive_profile_id(provider_id, section.base_url))
        if profile is None:
            raise ProfileNotFoundError(f"No credential profile for provider '{provider_id}'")

        if self.refresh_service.needs_refresh(profile):
            refreshed = await self.refresh_service.refresh_profile(profile)
            if refreshed is not profile:
                self.store.upsert(refreshed)
                self.store.save()
            profile = refreshed
        return profile.secret

    async def refresh_async(self, force: bool = False) -> Dict[str, AuthError]:
        """
        Refresh expiring profiles, or every token profile when ``force``.

        Returns:
            Errors keyed by profile id.
        """
        return await self.refresh_service.refresh_due(self.store, force=force)

    def logout(self, profile_id: str) -> bool:
        """Revoke a stored profile. Returns True if it existed."""
        if not self.store.remove(profile_id):
            return False
        self.store.save()
        logger.info(f"Removed profile {profile_id}")
        return True

    def get_status(self):
        """Print the stored credential profiles."""
        table = Table(title="Auth Status")
        table.add_column("Profile", style="cyan")
        table.add_column("Provider", style="green")
        table.add_column("Kind", style="yellow")
        table.add_column("Secret", style="dim")
        table.add_column("Expires", style="dim")

        for profile in sorted(self.store.list(), key=lambda p: p.profile_id):
            cred = profile.credential
            if isinstance(cred, RefreshableToken):
                expires = datetime.fromtimestamp(cred.expires_at / 1000).strftime("%Y-%m-%d %H:%M:%S")
                if profile.is_expiring(self.config.auth.refresh_buffer_ms):
                    expires = f"[red]{expires}[/red]"
            else:
                expires = "never"
            table.add_row(profile.profile_id, profile.provider, cred.type, mask_secret(profile.secret), expires)

        if not self.store.list():
            table.add_row("-", "-", "-", "-", "-")
        self.console.print(table)
