"""config command: show the effective configuration."""

from __future__ import annotations

import copy

import click
import yaml
from rich.console import Console

from crossreview_cli.auth import resolve_host_token
from crossreview_core.agents import describe_backends

console = Console()

SECRET_KEYS = ("token", "api_key")


def mask_secrets(config: dict) -> dict:
    """Return a deep copy with every non-empty secret value replaced by ``***``."""
    masked = copy.deepcopy(config)

    def _walk(node):
        if isinstance(node, dict):
            for key, value in node.items():
                if key in SECRET_KEYS and value:
                    node[key] = "***"
                else:
                    _walk(value)
        elif isinstance(node, list):
            for item in node:
                _walk(item)

    _walk(masked)
    return masked


def _platform_for_host(host: str) -> str:
    return "gitlab" if "gitlab" in host else "github"


@click.command("config")
@click.pass_context
def config_cmd(ctx):
    """Print the merged configuration, agent backends and token sources.

    Secrets (token, api_key) are masked.
    """
    config = ctx.obj["config"]

    console.rule("[bold cyan]Configuration[/bold cyan]")
    click.echo(yaml.safe_dump(mask_secrets(config), sort_keys=False, allow_unicode=True).rstrip())

    console.rule("[bold cyan]Agents[/bold cyan]")
    for provider_id, backend in describe_backends(config).items():
        console.print(f"  [bold]{provider_id:<10}[/bold] {backend}")

    hosts = config.get("hosts") or {}
    if hosts:
        console.rule("[bold cyan]Hosts[/bold cyan]")
    for host, host_cfg in hosts.items():
        token, source = resolve_host_token(_platform_for_host(host), host, host_cfg)
        status = "[green]ok[/green]" if token else "[red]missing[/red]"
        console.print(f"  [bold]{host}[/bold] {status} ({source or 'no source'})")
