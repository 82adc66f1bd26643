"""CLI commands for Gogs branch source.

This module provides Typer commands for listing repositories and branches
of a Gogs server, managing the receiver webhook of a repository and running
the webhook receiver.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .api.client import GogsConnector
from .api.exceptions import GogsError
from .config import DEFAULT_CONFIG_PATH, Settings, apply_env_overrides, load_settings
from .scm.discovery import BranchDiscovery, MarkerFileCriteria
from .scm.navigator import GogsSCMNavigator
from .scm.registry import InMemorySourceRegistry, SourceOwner
from .scm.source import GogsSCMSource
from .webhook.dispatcher import WebhookDispatcher
from .webhook.registration import WebhookRegistrationManager
from .webhook.server import WebhookServer


app = typer.Typer(help="Discover Gogs repositories and manage push webhooks")
hooks_app = typer.Typer(help="Manage the receiver webhook of a repository")
app.add_typer(hooks_app, name="hooks")

console = Console()
error_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Settings file"),
    server_url: Optional[str] = typer.Option(None, "--server-url", "-s", help="Gogs server URL"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Scan username"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Scan password"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {
        "config": config,
        "server_url": server_url,
        "username": username,
        "password": password,
    }


def _get_settings(ctx: typer.Context) -> Settings:
    """Resolve settings from the file, the environment and the options."""
    options: Dict[str, Any] = ctx.obj or {}
    path: Path = options.get("config") or DEFAULT_CONFIG_PATH
    try:
        if path.exists():
            payload = load_settings(path).model_dump(mode="python")
            payload["server"]["password"] = (
                payload["server"]["password"].get_secret_value()
                if payload["server"].get("password")
                else None
            )
        else:
            payload = apply_env_overrides({})
        server = payload.setdefault("server", {})
        for key in ("server_url", "username", "password"):
            if options.get(key):
                server[key] = options[key]
        if not server.get("server_url"):
            error_console.print(
                "Error: No Gogs server URL. Use --server-url, GOGS_SERVER_URL or a settings file"
            )
            raise typer.Exit(1)
        return Settings.model_validate(payload)
    except ValueError as e:
        error_console.print(f"Error: {e}")
        raise typer.Exit(1)


def _parse_owner_repo(repo_spec: str) -> tuple[str, str]:
    """Parse owner/repo specification."""
    parts = repo_spec.split("/")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        error_console.print("Error: Repository must be in format 'owner/repo'")
        raise typer.Exit(1)
    return parts[0].strip(), parts[1].strip()


def _build_source(settings: Settings, repo: str, **kwargs: Any) -> GogsSCMSource:
    owner, repo_name = _parse_owner_repo(repo)
    return GogsSCMSource(
        repo_owner=owner,
        repository=repo_name,
        server_url=settings.server.server_url,
        credentials=settings.server.credentials(),
        **kwargs,
    )


class _Collector:
    """Observer gathering whatever discovery proposes."""

    def __init__(self) -> None:
        self.items: List[Any] = []

    def observe(self, *item: Any) -> None:
        self.items.append(item)


# ---------------------------------------------------------------------------
# CLI Commands
# ---------------------------------------------------------------------------


@app.command("repos")
def list_repositories(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Organization or user name"),
    pattern: str = typer.Option(".*", "--pattern", help="Regular expression for repository names"),
) -> None:
    """List the repositories of an organization or user."""
    settings = _get_settings(ctx)
    try:
        navigator = GogsSCMNavigator(
            repo_owner=owner,
            server_url=settings.server.server_url,
            credentials=settings.server.credentials(),
            pattern=pattern,
        ).use_connector(GogsConnector.from_settings(settings.server))
        collector = _Collector()
        navigator.visit_sources(collector)
    except (GogsError, ValueError) as e:
        error_console.print(f"Error: {e}")
        raise typer.Exit(1)

    table = Table(title=f"Repositories of {owner}")
    table.add_column("Repository", style="cyan")
    table.add_column("Clone URL", style="green")
    for name, source in collector.items:
        table.add_row(name, source.remote_url())
    console.print(table)


@app.command("branches")
def list_branches(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository in format 'owner/repo'"),
    includes: str = typer.Option("*", "--includes", help="Space separated wildcards to build"),
    excludes: str = typer.Option("", "--excludes", help="Space separated wildcards to skip"),
    marker: Optional[List[str]] = typer.Option(
        None, "--marker", "-m", help="Path that must exist in a branch (repeatable)"
    ),
) -> None:
    """List the branches discovery would build."""
    settings = _get_settings(ctx)
    try:
        source = _build_source(settings, repo, includes=includes, excludes=excludes)
        criteria = MarkerFileCriteria(*marker) if marker else None
        collector = _Collector()
        result = BranchDiscovery(source, GogsConnector.from_settings(settings.server)).retrieve(
            collector, criteria=criteria
        )
    except (GogsError, ValueError) as e:
        error_console.print(f"Error: {e}")
        raise typer.Exit(1)

    table = Table(title=f"Branches of {source.full_name}")
    table.add_column("Branch", style="cyan")
    table.add_column("Commit", style="green")
    for head, revision in collector.items:
        table.add_row(head.name, revision.hash)
    console.print(table)
    if result.skipped:
        console.print(f"[yellow]Skipped:[/yellow] {', '.join(result.skipped)}")


def _hook_manager(settings: Settings, root_url: Optional[str]) -> WebhookRegistrationManager:
    connector = GogsConnector.from_settings(settings.server)
    return WebhookRegistrationManager(
        InMemorySourceRegistry(),
        connector_factory=lambda source: source.build_client(connector),
        root_url=root_url or settings.receiver.root_url,
    )


def _hook_owner(settings: Settings, repo: str) -> SourceOwner:
    try:
        source = _build_source(settings, repo, auto_register_hook=True)
    except ValueError as e:
        error_console.print(f"Error: {e}")
        raise typer.Exit(1)
    return SourceOwner(name=repo, sources=[source])


@hooks_app.command("register")
def register_hook(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository in format 'owner/repo'"),
    root_url: Optional[str] = typer.Option(None, "--root-url", help="Public root URL of the receiver"),
) -> None:
    """Register the receiver webhook on a repository."""
    settings = _get_settings(ctx)
    manager = _hook_manager(settings, root_url)
    if manager.hook_url is None:
        error_console.print("Error: No root URL. Use --root-url, GOGS_ROOT_URL or a settings file")
        raise typer.Exit(1)
    owner = _hook_owner(settings, repo)
    registered = manager.register_hooks(owner)
    if registered:
        console.print(f"[green]✓[/green] Registered {manager.hook_url} on {repo}")
    else:
        console.print(f"[yellow]No hook registered on {repo}[/yellow] (already present or failed)")


@hooks_app.command("remove")
def remove_hook(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository in format 'owner/repo'"),
    root_url: Optional[str] = typer.Option(None, "--root-url", help="Public root URL of the receiver"),
) -> None:
    """Remove the receiver webhook from a repository."""
    settings = _get_settings(ctx)
    manager = _hook_manager(settings, root_url)
    owner = _hook_owner(settings, repo)
    if manager.remove_hooks(owner):
        console.print(f"[green]✓[/green] Removed {manager.hook_url} from {repo}")
    else:
        console.print(f"[yellow]No hook removed from {repo}[/yellow]")


@hooks_app.command("list")
def list_hooks(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository in format 'owner/repo'"),
) -> None:
    """List the webhooks of a repository."""
    settings = _get_settings(ctx)
    try:
        source = _build_source(settings, repo)
        hooks = source.build_client(GogsConnector.from_settings(settings.server)).get_web_hooks()
    except (GogsError, ValueError) as e:
        error_console.print(f"Error: {e}")
        raise typer.Exit(1)

    table = Table(title=f"Webhooks of {repo}")
    table.add_column("ID", style="green")
    table.add_column("URL", style="yellow")
    table.add_column("Active", style="magenta")
    table.add_column("Events", style="blue")
    for hook in hooks:
        table.add_row(
            str(hook.id) if hook.id is not None else "-",
            hook.config.url,
            "yes" if hook.active else "no",
            ", ".join(hook.events),
        )
    console.print(table)


@app.command("serve")
def serve(
    ctx: typer.Context,
    repos: Optional[List[str]] = typer.Option(
        None, "--repo", "-r", help="Repository to watch, 'owner/repo' (repeatable)"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Listen address"),
    port: Optional[int] = typer.Option(None, "--port", help="Listen port"),
) -> None:
    """Run the webhook receiver and report re-index requests."""
    settings = _get_settings(ctx)
    receiver = settings.receiver
    if host:
        receiver = receiver.model_copy(update={"listen_host": host})
    if port:
        receiver = receiver.model_copy(update={"listen_port": port})

    def report(source: GogsSCMSource) -> None:
        console.print(f"[cyan]Re-index requested:[/cyan] {source.full_name}")

    registry = InMemorySourceRegistry()
    for repo in repos or []:
        registry.add(SourceOwner(name=repo, sources=[_build_source(settings, repo)], on_reindex=report))

    server = WebhookServer(WebhookDispatcher(registry), receiver)
    console.print(
        f"Listening on http://{receiver.listen_host}:{receiver.listen_port}/ "
        f"for {len(registry)} repositories. Press Ctrl+C to stop."
    )
    try:
        asyncio.run(_run_server(server))
    except KeyboardInterrupt:
        console.print("Stopped")


async def _run_server(server: WebhookServer) -> None:
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


__all__ = ["app"]
