"""Entry point: python -m swipeflow_connector."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from swipeflow_connector.api.client import SwipeFlowClient
from swipeflow_connector.config import DOCS_URL, ConnectorConfig, load_config
from swipeflow_connector.errors import ConfigError, SwipeFlowError
from swipeflow_connector.logging_config import setup_logging
from swipeflow_connector.trigger import SwipeFlowTrigger, TriggerSettings
from swipeflow_connector.webhook.models import DEFAULT_EVENTS, EventKind
from swipeflow_connector.webhook.server import WebhookServer
from swipeflow_connector.webhook.store import JsonSubscriptionStore

logger = logging.getLogger(__name__)

_console = Console()

CONFIG_ENV = "SWIPEFLOW_CONFIG"
_DEFAULT_CONFIG = Path("~/.swipeflow/config.json")


def resolve_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV) or _DEFAULT_CONFIG).expanduser()


def _client(config: ConnectorConfig) -> SwipeFlowClient:
    if not config.api.api_key:
        _console.print(
            "[bold yellow]No API key configured. Set api.api_key or SWIPEFLOW_API_KEY.[/bold yellow]"
        )
        sys.exit(1)
    return SwipeFlowClient(
        config.api.api_key,
        base_url=config.api.base_url,
        timeout=config.api.timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_check(config: ConnectorConfig, _args: list[str]) -> int:
    async with _client(config) as client:
        result = await client.check_credentials()
    style = "green" if result.ok else "red"
    _console.print(f"[bold {style}]{result.message}[/bold {style}]")
    return 0 if result.ok else 1


async def _cmd_projects(config: ConnectorConfig, _args: list[str]) -> int:
    table = Table(title="Projects")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Description", style="dim")
    async with _client(config) as client:
        async for project in client.iter_projects(limit=config.api.page_limit):
            table.add_row(
                str(project.get("id", "")),
                str(project.get("name", "")),
                str(project.get("description") or ""),
            )
    _console.print(table)
    return 0


async def _cmd_subscriptions(config: ConnectorConfig, args: list[str]) -> int:
    if not args:
        _console.print("[bold yellow]Usage: subscriptions <project_id>[/bold yellow]")
        return 2
    project_id = args[0]
    async with _client(config) as client:
        subscriptions = await client.list_subscriptions(project_id)
    table = Table(title=f"Webhooks for {project_id}")
    table.add_column("ID", style="bold")
    table.add_column("URL")
    table.add_column("Events")
    table.add_column("Ours", justify="center")
    for sub in subscriptions:
        table.add_row(sub.id, sub.url, ", ".join(sub.events), "yes" if sub.is_ours else "")
    _console.print(table)
    return 0


async def _cmd_activate(config: ConnectorConfig, args: list[str]) -> int:
    if len(args) < 3:
        _console.print(
            "[bold yellow]Usage: activate <workflow_id> <project_id> <callback_url>"
            " \\[event ...][/bold yellow]"
        )
        return 2
    workflow_id, project_id, callback_url, *events = args
    known = {str(kind) for kind in EventKind}
    unknown = [e for e in events if e not in known]
    if unknown:
        _console.print(f"[bold red]Unknown event(s): {', '.join(unknown)}[/bold red]")
        return 2

    settings = TriggerSettings(
        project_id=project_id,
        callback_url=callback_url,
        workflow_id=workflow_id,
        events=events or list(DEFAULT_EVENTS),
        instance_base_url=config.instance_base_url,
    )
    store = JsonSubscriptionStore(config.resolved_state_path, workflow_id)
    async with _client(config) as client:
        created = await SwipeFlowTrigger(client, store, settings).activate()
    record = store.load()
    verb = "Created" if created else "Reusing"
    _console.print(f"[bold green]{verb} webhook {record.subscription_id}[/bold green]")
    return 0


async def _cmd_deactivate(config: ConnectorConfig, args: list[str]) -> int:
    if not args:
        _console.print("[bold yellow]Usage: deactivate <workflow_id>[/bold yellow]")
        return 2
    workflow_id = args[0]
    store = JsonSubscriptionStore(config.resolved_state_path, workflow_id)
    record = store.load()
    if not record.is_set:
        _console.print(f"[dim]No webhook remembered for {workflow_id}[/dim]")
        return 0
    settings = TriggerSettings(
        project_id=record.project_id or "",
        callback_url="",
        workflow_id=workflow_id,
        instance_base_url=config.instance_base_url,
    )
    async with _client(config) as client:
        await SwipeFlowTrigger(client, store, settings).deactivate()
    _console.print(f"[bold green]Deleted webhook {record.subscription_id}[/bold green]")
    return 0


async def _print_record(record: dict[str, Any]) -> None:
    _console.print_json(data=record)


async def _cmd_serve(config: ConnectorConfig, _args: list[str]) -> int:
    server = WebhookServer(config.receiver)
    server.set_dispatch_handler(_print_record)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()
    return 0


_COMMANDS = {
    "check": _cmd_check,
    "projects": _cmd_projects,
    "subscriptions": _cmd_subscriptions,
    "serve": _cmd_serve,
    "activate": _cmd_activate,
    "deactivate": _cmd_deactivate,
}


def _print_usage() -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold green", min_width=36, no_wrap=True)
    table.add_column()
    table.add_row("swipeflow check", "Test the configured API key")
    table.add_row("swipeflow projects", "List all projects")
    table.add_row("swipeflow subscriptions <project_id>", "List webhook subscriptions")
    table.add_row("swipeflow serve", "Receive webhook deliveries and print them")
    table.add_row(
        "swipeflow activate <workflow_id> <project_id> <url>",
        "Ensure the workflow's webhook exists; event names may follow <url>",
    )
    table.add_row("swipeflow deactivate <workflow_id>", "Delete the workflow's webhook")
    table.add_row("", "")
    table.add_row("-v, --verbose", "Debug logging")
    _console.print(
        Panel(
            table,
            title="[bold]SwipeFlow Connector[/bold]",
            subtitle=f"[dim]{DOCS_URL}[/dim]",
            border_style="blue",
            padding=(1, 0),
        ),
    )


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    verbose = "--verbose" in args or "-v" in args
    positional = [a for a in args if not a.startswith("-")]

    if not positional or positional[0] not in _COMMANDS or "--help" in args or "-h" in args:
        _print_usage()
        return

    config_path = resolve_config_path()
    setup_logging(verbose=verbose, log_dir=config_path.parent / "logs")
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        _console.print(f"[bold red]{exc}[/bold red]")
        sys.exit(1)
    if not verbose:
        level = getattr(logging, config.log_level.upper(), logging.INFO)
        if level != logging.INFO:
            setup_logging(level=level, log_dir=config_path.parent / "logs")

    command = _COMMANDS[positional[0]]
    try:
        exit_code = asyncio.run(command(config, positional[1:]))
    except KeyboardInterrupt:
        exit_code = 0
    except SwipeFlowError as exc:
        _console.print(f"[bold red]{exc}[/bold red]")
        exit_code = 1
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
