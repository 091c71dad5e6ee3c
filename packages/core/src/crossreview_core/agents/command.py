"""CLI backend: run a locally installed agent CLI (codex, claude, gemini).

The prompt is delivered one of three ways, decided by the command spec:
  - on stdin (use_stdin: true, the default)
  - substituted into any argument containing "{prompt}"
  - appended as the final argument when neither of the above applies
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field, replace

from crossreview_core.agents.base import BaseAgent
from crossreview_core.agents.usage import parse_usage
from crossreview_core.errors import AgentError
from crossreview_core.models import ProviderResponse

logger = logging.getLogger(__name__)

_PROMPT_PLACEHOLDER = "{prompt}"
_DEFAULT_TIMEOUT = 600


@dataclass(frozen=True)
class CommandSpec:
    command: str
    args: list[str] = field(default_factory=list)
    use_stdin: bool = True
    timeout: int = _DEFAULT_TIMEOUT

    @classmethod
    def from_config(cls, provider_cfg: dict, default_command: str) -> CommandSpec:
        return cls(
            command=provider_cfg.get("command") or default_command,
            args=list(provider_cfg.get("args") or []),
            use_stdin=provider_cfg.get("use_stdin", True),
            timeout=provider_cfg.get("timeout") or _DEFAULT_TIMEOUT,
        )

    def build_argv(self, prompt: str) -> list[str]:
        argv = [self.command]
        prompt_in_args = False
        for arg in self.args:
            if _PROMPT_PLACEHOLDER in arg:
                prompt_in_args = True
                argv.append(arg.replace(_PROMPT_PLACEHOLDER, prompt))
            else:
                argv.append(arg)
        if not self.use_stdin and not prompt_in_args:
            argv.append(prompt)
        return argv


def command_exists(command: str) -> bool:
    return shutil.which(command) is not None


def run_command(provider_name: str, spec: CommandSpec, prompt: str) -> ProviderResponse:
    """Run the CLI once, retrying with argument input if it refuses piped stdin."""
    try:
        return _run_once(provider_name, spec, prompt)
    except AgentError as e:
        # Some CLIs insist on a TTY for stdin and accept the prompt as an argument instead.
        if spec.use_stdin and "stdin is not a terminal" in str(e).lower():
            logger.info("%s rejected piped stdin; retrying with the prompt as an argument.", provider_name)
            return _run_once(provider_name, replace(spec, use_stdin=False), prompt)
        raise


def _run_once(provider_name: str, spec: CommandSpec, prompt: str) -> ProviderResponse:
    argv = spec.build_argv(prompt)
    try:
        result = subprocess.run(
            argv,
            input=prompt if spec.use_stdin else None,
            capture_output=True,
            text=True,
            timeout=spec.timeout,
        )
    except FileNotFoundError as e:
        raise AgentError(f"{provider_name}: command not found: {spec.command}") from e
    except subprocess.TimeoutExpired as e:
        raise AgentError(f"{provider_name}: command timed out after {spec.timeout}s") from e

    stdout = (result.stdout or "").strip()
    stderr = (result.stderr or "").strip()
    usage = parse_usage(stdout, stderr)

    if result.returncode != 0:
        raise AgentError(
            f"{provider_name} command failed (exit {result.returncode}): {stderr or 'no stderr output'}"
        )

    if not stdout:
        if not stderr:
            raise AgentError(f"{provider_name} command returned empty output")
        # Some CLIs print the answer on stderr when stdout is not a terminal.
        return ProviderResponse(content=stderr, usage=usage)

    return ProviderResponse(content=stdout, usage=usage)


class CommandAgent(BaseAgent):
    """Agent backed by a local CLI. Each prompt is a single invocation, never retried."""

    MAX_RETRIES = 1

    def __init__(self, provider_id: str, name: str, spec: CommandSpec):
        super().__init__(provider_id, name)
        self.spec = spec

    @property
    def backend(self) -> str:
        return "cli"

    def _call_api(self, prompt: str) -> ProviderResponse:
        return run_command(self.name, self.spec, prompt)
