"""VCS token resolution with gh / glab CLI fallback, and provider CLI login commands.

Resolution order (stops at first success):
  1. hosts.<host>.token in the config
  2. the variable named by hosts.<host>.token_env
  3. hosts.<host>.token_command (stdout, trimmed)
  4. GITHUB_TOKEN / GITLAB_TOKEN, depending on the target's platform
  5. `gh auth token` / `glab auth token` (CLI session after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess

from crossreview_core.config import resolve_configured_token
from crossreview_core.target import GitHubChange, ReviewTarget

logger = logging.getLogger(__name__)

DEFAULT_HOSTS = {"github": "github.com", "gitlab": "gitlab.com"}
TOKEN_ENV_VARS = {"github": "GITHUB_TOKEN", "gitlab": "GITLAB_TOKEN"}
CLI_TOOLS = {"github": "gh", "gitlab": "glab"}


def platform_for(target: ReviewTarget) -> str:
    return "github" if isinstance(target, GitHubChange) else "gitlab"


def resolve_host_token(platform: str, host: str, host_cfg: dict | None) -> tuple[str | None, str | None]:
    """Return ``(token, source)``; token is None if no source produced one.

    source is a short label such as ``inline``, ``env:GITHUB_TOKEN``,
    ``cmd:gh auth token`` or, when nothing worked, the last source tried with
    a ``(missing)`` / ``(failed)`` suffix. Never raises.
    """
    host_cfg = host_cfg or {}

    token, hint = resolve_configured_token(host_cfg)
    if token:
        return token, hint

    command = host_cfg.get("token_command")
    if isinstance(command, str):
        command = shlex.split(command)
    if command:
        label = f"cmd:{' '.join(command)}"
        token = _run_token_command(command)
        if token:
            return token, label
        hint = f"{label} (failed)"

    env_name = TOKEN_ENV_VARS[platform]
    token = os.environ.get(env_name, "").strip()
    if token:
        return token, f"env:{env_name}"

    cli_command = [CLI_TOOLS[platform], "auth", "token"]
    if host != DEFAULT_HOSTS[platform]:
        cli_command += ["--hostname", host]
    token = _run_token_command(cli_command)
    if token:
        logger.debug("Resolved %s token via %s CLI session.", host, CLI_TOOLS[platform])
        return token, f"cmd:{' '.join(cli_command)}"

    return None, hint


def resolve_target_token(target: ReviewTarget, host_cfg: dict | None) -> str | None:
    token, _ = resolve_host_token(platform_for(target), target.host, host_cfg)
    return token


def _run_token_command(command: list[str]) -> str | None:
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("Token command %s unavailable: %s", command[0], e)
        return None

    if result.returncode != 0:
        logger.debug("Token command %s exited with %d", command[0], result.returncode)
        return None
    return result.stdout.strip() or None


def provider_login_command(provider_cfg: dict | None, default_command: str) -> list[str]:
    """Command that logs a provider CLI in.

    ``auth_command`` wins when set (a list, or a string split shell-style);
    otherwise it is ``<command> login`` using the provider's configured command.
    """
    provider_cfg = provider_cfg or {}
    command = provider_cfg.get("auth_command")
    if isinstance(command, str):
        command = shlex.split(command)
    if command:
        return list(command)
    return [provider_cfg.get("command") or default_command, "login"]
