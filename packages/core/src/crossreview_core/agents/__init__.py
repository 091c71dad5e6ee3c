"""Review agents and the factory that turns config into an ordered agent list.

Each provider gets exactly one backend, chosen at construction time:
  1. API backend, when an API key resolves (api_key, then api_key_env)
  2. CLI backend, when the configured command is on PATH
  3. skipped otherwise, with a warning
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from crossreview_core.agents.base import BaseAgent
from crossreview_core.agents.command import CommandAgent, CommandSpec, command_exists
from crossreview_core.config import provider_config, resolve_api_key

logger = logging.getLogger(__name__)

__all__ = ["BaseAgent", "PROVIDERS", "build_agents", "describe_backends"]


@dataclass(frozen=True)
class ProviderInfo:
    id: str
    name: str
    default_command: str
    default_key_env: str


# Order is significant: it is the publish order for per-agent comments.
PROVIDERS: tuple[ProviderInfo, ...] = (
    ProviderInfo("openai", "OpenAI/Codex", "codex", "OPENAI_API_KEY"),
    ProviderInfo("anthropic", "Claude", "claude", "ANTHROPIC_API_KEY"),
    ProviderInfo("gemini", "Gemini", "gemini", "GEMINI_API_KEY"),
)


def _api_key_for(info: ProviderInfo, cfg: dict) -> str | None:
    return resolve_api_key({"api_key_env": info.default_key_env, **cfg})


def _build_api_agent(info: ProviderInfo, api_key: str, cfg: dict) -> BaseAgent:
    model = cfg.get("model")
    api_base = cfg.get("api_base")
    if info.id == "openai":
        from crossreview_core.agents.openai import OpenAIAgent

        return OpenAIAgent(api_key=api_key, model=model, api_base=api_base)
    if info.id == "anthropic":
        from crossreview_core.agents.anthropic import AnthropicAgent

        return AnthropicAgent(api_key=api_key, model=model, api_base=api_base)
    from crossreview_core.agents.gemini import GeminiAgent

    return GeminiAgent(api_key=api_key, model=model, api_base=api_base)


def build_agents(config: dict) -> list[BaseAgent]:
    """Return the enabled agents in PROVIDERS order."""
    agents: list[BaseAgent] = []
    for info in PROVIDERS:
        cfg = provider_config(config, info.id)
        if cfg is None:
            continue

        api_key = _api_key_for(info, cfg)
        if api_key:
            try:
                agents.append(_build_api_agent(info, api_key, cfg))
                continue
            except ImportError as e:
                logger.warning("%s: %s Falling back to the CLI backend.", info.name, e)

        spec = CommandSpec.from_config(cfg, info.default_command)
        if command_exists(spec.command):
            agents.append(CommandAgent(info.id, info.name, spec))
        else:
            logger.warning("%s: no API key and command '%s' not found in PATH; skipping.", info.name, spec.command)

    return agents


def describe_backends(config: dict) -> dict[str, str]:
    """Report which backend each provider would use, without constructing clients."""
    report: dict[str, str] = {}
    for info in PROVIDERS:
        cfg = config.get("providers", {}).get(info.id)
        if cfg is None:
            report[info.id] = "not configured"
        elif provider_config(config, info.id) is None:
            report[info.id] = "disabled"
        elif _api_key_for(info, cfg):
            report[info.id] = "api"
        else:
            spec = CommandSpec.from_config(cfg, info.default_command)
            report[info.id] = f"cli ({spec.command})" if command_exists(spec.command) else "unavailable"
    return report
