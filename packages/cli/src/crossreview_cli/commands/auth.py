"""auth command: log in to a VCS host or a provider CLI through its own login flow."""

from __future__ import annotations

import shutil
import subprocess

import click
from rich.console import Console

from crossreview_cli.auth import CLI_TOOLS, DEFAULT_HOSTS, provider_login_command
from crossreview_core.agents import PROVIDERS

console = Console()

PROVIDER_TARGETS = {info.default_command: info for info in PROVIDERS}

# Shown before handing the terminal to CLIs whose login happens inside a session.
_LOGIN_HINTS = {
    "claude": "Claude login is interactive. Type /login, finish auth, then exit.",
    "gemini": "Gemini login is interactive. Choose Login with Google, finish auth, then exit.",
}


@click.command("auth")
@click.argument("target", type=click.Choice([*CLI_TOOLS, *PROVIDER_TARGETS]))
@click.option("--host", default=None, help="Hostname for GitHub Enterprise or self-hosted GitLab.")
@click.pass_context
def auth_cmd(ctx: click.Context, target: str, host: str | None):
    """Log in so tokens and provider CLIs work without secrets in the config.

    github/gitlab run `gh auth login` / `glab auth login`. codex, claude and
    gemini run providers.<id>.auth_command, or `<command> login` by default.
    """
    if target in PROVIDER_TARGETS:
        if host:
            raise click.UsageError("--host only applies to github and gitlab.")
        info = PROVIDER_TARGETS[target]
        provider_cfg = ctx.obj["config"].get("providers", {}).get(info.id)
        command = provider_login_command(provider_cfg, info.default_command)
        if target in _LOGIN_HINTS:
            console.print(f"[yellow]{_LOGIN_HINTS[target]}[/yellow]")
        _run_login(command, f"{info.name} login")
        console.print(f"[green]{info.name} login completed.[/green]")
        return

    command = [CLI_TOOLS[target], "auth", "login"]
    if host and host != DEFAULT_HOSTS[target]:
        command += ["--hostname", host]
    _run_login(command, f"{CLI_TOOLS[target]} auth login")
    console.print(f"[green]Logged in to {host or DEFAULT_HOSTS[target]}.[/green]")


def _run_login(command: list[str], label: str) -> None:
    if shutil.which(command[0]) is None:
        raise click.ClickException(f"'{command[0]}' is not installed or not on PATH.")
    console.print(f"[dim]Running: {' '.join(command)}[/dim]")
    result = subprocess.run(command)
    if result.returncode != 0:
        raise click.ClickException(f"{label} failed with exit code {result.returncode}.")
