"""CLI commands for modelauth."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from modelauth import __logo__, __version__

app = typer.Typer(
    name="modelauth",
    help=f"{__logo__} modelauth - credential profiles for model providers",
    no_args_is_help=True,
)

console = Console()

_state: dict = {"config_path": None}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} modelauth v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
):
    """modelauth - credential profiles for model providers."""
    from modelauth.config.loader import load_config
    from modelauth.core.logger import configure_logger

    _state["config_path"] = config
    configure_logger(load_config(config))


def _manager():
    from modelauth.auth.manager import AuthManager
    return AuthManager(config_path=_state["config_path"])


# ============================================================================
# Auth Commands
# ============================================================================

auth_app = typer.Typer(help="Manage authentication")
app.add_typer(auth_app, name="auth")


@auth_app.command("list")
def auth_list():
    """List supported authentication providers."""
    manager = _manager()

    table = Table(title="Supported Providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Aliases", style="dim")
    table.add_column("Methods", style="yellow")

    for provider in manager.list_providers():
        methods = ", ".join(m.method_id for m in provider.methods)
        table.add_row(provider.id, provider.label, ", ".join(provider.aliases), methods)

    console.print(table)


@auth_app.command("methods")
def auth_methods(
    provider: str = typer.Argument(..., help="Provider ID"),
):
    """List available authentication methods for a provider."""
    manager = _manager()
    registration = manager.registry.get(provider)

    if registration is None:
        console.print(f"[red]Provider '{provider}' not found[/red]")
        console.print("\nAvailable providers:")
        for p in manager.list_providers():
            console.print(f"  - {p.id}")
        raise typer.Exit(1)

    table = Table(title=f"{registration.label} - Authentication Methods")
    table.add_column("Method ID", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Kind", style="yellow")
    table.add_column("Description", style="dim")

    for method in registration.methods:
        table.add_row(method.method_id, method.label, method.kind.value, method.hint)

    console.print("\n")
    console.print(table)
    if registration.env_vars:
        console.print(f"\n[dim]Environment variables: {', '.join(registration.env_vars)}[/dim]")
    console.print(f"[dim]Usage: modelauth auth login {provider} --method <method_id>[/dim]")


@auth_app.command("login")
def auth_login(
    provider: str = typer.Argument(..., help="Provider ID (e.g., azure-openai)"),
    method: str = typer.Option(None, "--method", "-m", help="Auth method (e.g., api-key, keyless)"),
    endpoint: str = typer.Option(None, "--endpoint", help="Endpoint URL (non-interactive)"),
    deployment: str = typer.Option("", "--deployment", help="Deployment name (non-interactive)"),
    api_key: str = typer.Option(None, "--api-key", help="API key (non-interactive, api-key method)"),
):
    """Login to a provider with optional method selection."""
    from modelauth.auth.prompter import ScriptedPrompter

    manager = _manager()

    prompter = None
    if endpoint:
        if method is None:
            console.print("[red]--method is required with --endpoint[/red]")
            raise typer.Exit(1)
        answers = [endpoint, deployment]
        if api_key:
            answers.append(api_key)
        prompter = ScriptedPrompter(answers)

    success = manager.login(provider, method_id=method, prompter=prompter)

    if success:
        console.print(f"\n[green]✓ Successfully configured {provider}![/green]")
        if manager.config.default_model:
            console.print(f"[dim]Default model: {manager.config.default_model}[/dim]")
    else:
        console.print("\n[red]✗ Authentication failed[/red]")
        raise typer.Exit(1)


@auth_app.command("status")
def auth_status():
    """Show stored credential profiles."""
    _manager().get_status()


@auth_app.command("refresh")
def auth_refresh(
    force: bool = typer.Option(False, "--all", "-a", help="Refresh every token, not only expiring ones"),
):
    """Refresh expiring tokens now."""
    manager = _manager()
    failures = asyncio.run(manager.refresh_async(force=force))

    if not failures:
        console.print("[green]✓ Tokens up to date[/green]")
        return

    for profile_id, error in failures.items():
        console.print(f"[red]✗ {profile_id}[/red]\n{escape(str(error))}")
    raise typer.Exit(1)


@auth_app.command("logout")
def auth_logout(
    profile_id: str = typer.Argument(..., help="Profile ID (e.g., azure-openai:acme.openai.azure.com)"),
):
    """Remove a stored credential profile."""
    if not _manager().logout(profile_id):
        console.print(f"[red]Profile '{profile_id}' not found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Removed {profile_id}[/green]")


@auth_app.command("watch")
def auth_watch(
    interval: int = typer.Option(None, "--interval", "-i", help="Seconds between refresh sweeps"),
):
    """Keep refreshing expiring tokens until interrupted."""
    manager = _manager()
    seconds = interval or manager.config.auth.refresh_interval_seconds
    console.print(f"[dim]Refreshing tokens every {seconds}s. Press Ctrl+C to stop.[/dim]")
    try:
        asyncio.run(manager.refresh_service.run_periodic(manager.store, seconds))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")


if __name__ == "__main__":
    app()
